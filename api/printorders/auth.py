import ipaddress
import logging
from typing import Optional
from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from . import config
from .db import get_session
from .errors import AccessDeniedError
from .models import AllowedIp
from .utils import read_token

logger = logging.getLogger(__name__)

ADMIN_COOKIE = "admin-auth"


class AccessContext(BaseModel):
    role: str


def resolve_admin_access(
    x_access_token: Optional[str] = Header(default=None, alias="X-Access-Token"),
    admin_cookie: Optional[str] = Cookie(default=None, alias=ADMIN_COOKIE),
) -> AccessContext:
    if admin_cookie:
        data = read_token(admin_cookie)
        if data and data.get("role") == "admin":
            return AccessContext(role="admin")
    if not x_access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    if config.ADMIN_PASSWORD and x_access_token == config.ADMIN_PASSWORD:
        return AccessContext(role="admin")
    raise AccessDeniedError("Invalid access token")


def require_admin_access(context: AccessContext = Depends(resolve_admin_access)) -> AccessContext:
    if context.role != "admin":
        raise AccessDeniedError("Admin access required")
    return context


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.client.host if request.client else None


def ip_is_allowed(session: Session, ip: Optional[str]) -> bool:
    entries = session.exec(select(AllowedIp.ip_address)).all()
    if not entries:
        return True
    if not ip:
        return False
    try:
        candidate = ipaddress.ip_address(ip)
    except ValueError:
        return False
    for entry in entries:
        try:
            if candidate in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False


def require_allowed_ip(request: Request, session: Session = Depends(get_session)):
    if not config.IP_ALLOWLIST_ENABLED:
        return
    ip = client_ip(request)
    try:
        allowed = ip_is_allowed(session, ip)
    except SQLAlchemyError:
        logger.exception("allow-list lookup failed")
        allowed = config.IP_ALLOWLIST_FAIL_OPEN
    if not allowed:
        logger.warning("blocked form request from %s", ip)
        raise AccessDeniedError("Access denied")
