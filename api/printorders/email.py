import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("EMAIL_PORT", "587"))
SMTP_USER = os.getenv("EMAIL_USER")
SMTP_PASSWORD = os.getenv("EMAIL_PASSWORD")
DEFAULT_SENDER = os.getenv("EMAIL_SENDER", SMTP_USER or "orders@example.com")
DEFAULT_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Print Orders")

def format_sender_name(brand_name: str | None = None) -> str:
    base_label = (DEFAULT_SENDER_NAME or "Print Orders").strip() or "Print Orders"
    if brand_name:
        plain = brand_name.strip()
        if plain:
            return f"{plain} via {base_label}"
    return base_label

def _join(addresses) -> str:
    if isinstance(addresses, str):
        return addresses
    return ", ".join(a for a in (addresses or []) if a)

def send_email(
    to,
    subject: str,
    body: str,
    html_body: str | None = None,
    attachments: list | None = None,
    sender_name: str | None = None,
    reply_to: str | None = None,
    cc: list | None = None,
    bcc: list | None = None,
):
    attachments = attachments or []
    display_name = (sender_name or DEFAULT_SENDER_NAME).strip()
    from_value = formataddr((display_name, DEFAULT_SENDER)) if display_name else DEFAULT_SENDER
    if SMTP_USER and SMTP_PASSWORD:
        msg = EmailMessage()
        msg["From"] = from_value
        if reply_to:
            msg["Reply-To"] = reply_to
        msg["To"] = _join(to)
        if cc:
            msg["Cc"] = _join(cc)
        msg["Subject"] = subject
        msg.set_content(body or "")
        if html_body:
            msg.add_alternative(html_body, subtype="html")
        for attachment in attachments:
            if not attachment:
                continue
            filename = attachment.get("filename") or "attachment"
            content = attachment.get("content")
            maintype = attachment.get("maintype", "application")
            subtype = attachment.get("subtype", "octet-stream")
            if content is None:
                continue
            msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)
        recipients = [a for group in (to, cc or [], bcc or []) for a in ([group] if isinstance(group, str) else group) if a]
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as smtp:
            smtp.starttls()
            smtp.login(SMTP_USER, SMTP_PASSWORD)
            smtp.send_message(msg, to_addrs=recipients)
    else:
        logger.info(
            "EMAIL (stub) from=%s reply_to=%s to=%s cc=%s bcc=%s subject=%s attachments=%d\n%s",
            from_value,
            reply_to or "(not set)",
            _join(to),
            _join(cc),
            _join(bcc),
            subject,
            len(attachments),
            body,
        )
