import ipaddress
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from ..auth import require_admin_access
from ..db import get_session
from ..models import AllowedIp
from ..schemas import AllowedIpCreate

router = APIRouter(dependencies=[Depends(require_admin_access)])

@router.get("")
def list_allowed_ips(session: Session = Depends(get_session)):
    return session.exec(select(AllowedIp).order_by(AllowedIp.created_at.desc(), AllowedIp.id.desc())).all()

@router.post("", status_code=201)
def add_allowed_ip(payload: AllowedIpCreate, session: Session = Depends(get_session)):
    raw = payload.ip_address.strip()
    try:
        address = str(ipaddress.ip_network(raw, strict=False)) if "/" in raw else str(ipaddress.ip_address(raw))
    except ValueError:
        raise HTTPException(400, "IP address is invalid")
    existing = session.exec(select(AllowedIp).where(AllowedIp.ip_address == address)).first()
    if existing:
        raise HTTPException(409, "This IP address is already on the list.")
    entry = AllowedIp(ip_address=address, description=payload.description)
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry

@router.delete("")
def delete_allowed_ip(id: int, session: Session = Depends(get_session)):
    entry = session.get(AllowedIp, id)
    if not entry:
        raise HTTPException(404, "allowed IP not found")
    session.delete(entry)
    session.commit()
    return {"success": True}
