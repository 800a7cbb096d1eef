from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from sqlmodel import Session
from ..auth import require_admin_access
from ..db import get_session
from ..files import auto_assign_samples, delete_files, list_files, store_upload
from ..schemas import IdList
from ..storage import get_blob

router = APIRouter()

@router.post("/api/admin/upload", status_code=201, dependencies=[Depends(require_admin_access)])
async def upload_file(
    file: UploadFile = File(...),
    brand_id: Optional[int] = Form(default=None),
    session: Session = Depends(get_session),
):
    data = await file.read()
    return store_upload(session, file.filename or "file", data, file.content_type, brand_id=brand_id)

@router.get("/api/admin/files", dependencies=[Depends(require_admin_access)])
def list_uploaded_files(
    brand_id: Optional[int] = None,
    shared: bool = False,
    session: Session = Depends(get_session),
):
    return list_files(session, brand_id=brand_id, shared=shared)

@router.post("/api/admin/files/bulk-delete", dependencies=[Depends(require_admin_access)])
def bulk_delete_files(payload: IdList, session: Session = Depends(get_session)):
    return {"success": True, "deleted": delete_files(session, payload.ids)}

@router.post("/api/admin/files/auto-assign", dependencies=[Depends(require_admin_access)])
def auto_assign(session: Session = Depends(get_session)):
    return auto_assign_samples(session)

@router.delete("/api/admin/files/{file_id}", dependencies=[Depends(require_admin_access)])
def delete_file(file_id: int, session: Session = Depends(get_session)):
    if not delete_files(session, [file_id]):
        raise HTTPException(404, "file not found")
    return {"success": True}

@router.get("/files/{pathname:path}")
def serve_file(pathname: str):
    data, content_type = get_blob(pathname)
    if pathname.lower().endswith(".svg"):
        content_type = "image/svg+xml"
    return Response(content=data, media_type=content_type or "application/octet-stream")
