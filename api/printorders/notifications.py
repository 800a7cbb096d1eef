from html import escape
from typing import List

from .config import ORDER_FALLBACK_EMAIL
from .email import send_email, format_sender_name
from .models import Brand, Submission
from .pdf import OrderDocument
from .utils import load_json


def order_recipients(brand: Brand, submission: Submission):
    to = load_json(brand.to_emails_json, [])
    if not to and ORDER_FALLBACK_EMAIL:
        to = [ORDER_FALLBACK_EMAIL]
    cc = list(load_json(brand.cc_emails_json, []))
    if brand.cc_submitter and submission.email and submission.email not in cc and submission.email not in to:
        cc.append(submission.email)
    bcc = load_json(brand.bcc_emails_json, [])
    return to, cc, bcc


def send_order_notification(brand: Brand, submission: Submission, order: OrderDocument, pdf_bytes: bytes):
    to, cc, bcc = order_recipients(brand, submission)
    if not to:
        raise RuntimeError(f"brand {brand.slug} has no order recipients configured")

    subject = f"New order #{submission.id} - {brand.name}"
    item_lines: List[str] = [
        f"- {f'{line.code} ' if line.code else ''}{line.name}: {line.quantity}" for line in order.lines
    ]
    pdf_line = f"PDF: {submission.pdf_url}" if submission.pdf_url else "PDF attached."
    plain_body = (
        f"A new order was placed for {brand.name}.\n\n"
        f"Ordered by: {submission.ordered_by} <{submission.email}>\n"
        f"Bill to: {order.bill_to.name}\n"
        f"Deliver to: {order.deliver_to.name}\n\n"
        "Items:\n" + "\n".join(item_lines) + "\n\n"
        + (f"Notes: {submission.notes}\n\n" if submission.notes else "")
        + pdf_line
    )
    rows = "".join(
        f"<tr><td style=\"padding: 4px 8px; color: #475569;\">{escape(line.code or '')}</td>"
        f"<td style=\"padding: 4px 8px;\">{escape(line.name)}</td>"
        f"<td style=\"padding: 4px 8px; text-align: right;\">{escape(line.quantity)}</td></tr>"
        for line in order.lines
    )
    link = (
        f'<p style="font-size: 13px;"><a href="{escape(submission.pdf_url)}">Download the order PDF</a></p>'
        if submission.pdf_url
        else ""
    )
    notes = (
        f'<p style="font-size: 13px; color: #475569; background: #f8fafc; padding: 12px 16px; border-radius: 8px;">'
        f"{escape(submission.notes)}</p>"
        if submission.notes
        else ""
    )
    html_body = f"""
<html>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: #f5f6f8; padding: 24px;">
    <div style="max-width: 560px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 24px; box-shadow: 0 10px 25px rgba(15,23,42,0.08);">
      <h2 style="margin-top: 0; font-size: 20px; color: #0f172a;">Order #{submission.id}</h2>
      <p style="font-size: 14px; color: #1e293b; line-height: 1.5;">
        <strong>{escape(submission.ordered_by)}</strong> ({escape(submission.email)}) placed an order for <strong>{escape(brand.name)}</strong>.
      </p>
      <p style="font-size: 13px; color: #475569;">Bill to {escape(order.bill_to.name)} &middot; Deliver to {escape(order.deliver_to.name)}</p>
      <table style="width: 100%; font-size: 13px; border-collapse: collapse;">{rows}</table>
      {notes}
      {link}
    </div>
  </body>
</html>
"""
    attachments = [{
        "filename": f"order-{submission.id}.pdf",
        "content": pdf_bytes,
        "maintype": "application",
        "subtype": "pdf",
    }]
    send_email(
        to,
        subject,
        plain_body,
        html_body=html_body,
        attachments=attachments,
        sender_name=format_sender_name(brand.name),
        reply_to=submission.email,
        cc=cc,
        bcc=bcc,
    )
