from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Response
from sqlmodel import Session
from ..auth import require_admin_access
from ..db import get_session
from ..models import Brand, utcnow
from ..schemas import IdList, SubmissionComplete
from ..submissions import (
    delete_submissions,
    get_submission,
    list_submissions,
    mark_complete,
    retry_delivery,
    retry_failed_deliveries,
    serialize_submission,
    submissions_csv,
)

router = APIRouter(dependencies=[Depends(require_admin_access)])

def _with_brand(session: Session, submission):
    brand = session.get(Brand, submission.brand_id)
    return serialize_submission(submission, brand.name if brand else None)

@router.get("")
def list_all(
    brand_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
):
    return list_submissions(session, brand_id=brand_id, status=status, date_from=date_from, date_to=date_to)

@router.get("/export")
def export_csv(
    brand_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
):
    rows = list_submissions(session, brand_id=brand_id, status=status, date_from=date_from, date_to=date_to)
    filename = f"submissions-{utcnow().strftime('%Y%m%dT%H%M%SZ')}.csv"
    return Response(
        content=submissions_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.post("/retry-failed")
def retry_failed(session: Session = Depends(get_session)):
    retried = retry_failed_deliveries(session)
    return {
        "success": True,
        "retried": len(retried),
        "delivered": sum(1 for s in retried if s.delivery_status == "delivered"),
    }

@router.post("/bulk-delete")
def bulk_delete(payload: IdList, session: Session = Depends(get_session)):
    return {"success": True, "deleted": delete_submissions(session, payload.ids)}

@router.get("/{submission_id}")
def get_one(submission_id: int, session: Session = Depends(get_session)):
    return _with_brand(session, get_submission(session, submission_id))

@router.put("/{submission_id}/complete")
def complete(submission_id: int, payload: SubmissionComplete, session: Session = Depends(get_session)):
    return _with_brand(session, mark_complete(session, submission_id, payload))

@router.post("/{submission_id}/retry")
def retry(submission_id: int, session: Session = Depends(get_session)):
    return _with_brand(session, retry_delivery(session, submission_id))
