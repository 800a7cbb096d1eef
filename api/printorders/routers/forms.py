from fastapi import APIRouter, Depends
from sqlmodel import Session
from ..auth import require_allowed_ip
from ..db import get_session
from ..forms import load_form_definition
from ..schemas import OrderSubmit
from ..submissions import submit_order

router = APIRouter(dependencies=[Depends(require_allowed_ip)])

@router.get("/forms/{brand_slug}")
def get_form(brand_slug: str, session: Session = Depends(get_session)):
    return load_form_definition(session, brand_slug)

@router.post("/submit-order")
def create_order(payload: OrderSubmit, session: Session = Depends(get_session)):
    submission = submit_order(session, payload)
    return {
        "success": True,
        "submissionId": submission.id,
        "pdfUrl": submission.pdf_url,
        "deliveryStatus": submission.delivery_status,
    }
