import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlmodel import Session

from app.api.deps import current_user
from app.api.schemas import file_out
from app.db.session import get_db
from app.models.account import User
from app.models.order import Order
from app.services.errors import AccessDenied
from app.services.files import FileStore
from app.services.orders import OrderService, can_view

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/upload/{order_id}")
async def upload_files(
    order_id: str,
    files: List[UploadFile] = File(...),
    user: User = Depends(current_user),
    session: Session = Depends(get_db),
):
    order = OrderService(session).get(order_id)
    if order.customer_id != user.id:
        raise AccessDenied("Access denied")

    uploads = []
    for upload in files:
        try:
            content = await upload.read()
        except Exception as e:
            logger.exception("Error reading uploaded file %s: %s", upload.filename, e)
            raise HTTPException(status_code=400, detail="Failed to process uploaded file")
        uploads.append((upload.filename, upload.content_type, content))
    saved = FileStore(session).save_many(order_id, uploads)
    return {"files": [file_out(f) for f in saved]}


@router.get("/order/{order_id}")
def order_files(order_id: str, user: User = Depends(current_user), session: Session = Depends(get_db)):
    service = OrderService(session)
    service.get_for(order_id, user)
    return [file_out(f) for f in service.files(order_id)]


@router.get("/download/{file_id}")
def download(file_id: int, user: User = Depends(current_user), session: Session = Depends(get_db)):
    record = FileStore(session).get(file_id)
    order = session.get(Order, record.order_id)
    if order is None or not can_view(session, order, user):
        raise AccessDenied("Access denied")
    path = Path(record.file_path)
    if not path.exists():
        logger.error("File record id=%s points at missing path %s", record.id, path)
        raise HTTPException(status_code=404, detail="File not found on server")
    return FileResponse(path, filename=record.original_name, media_type=record.mime_type)


@router.delete("/{file_id}")
def delete_file(file_id: int, user: User = Depends(current_user), session: Session = Depends(get_db)):
    store = FileStore(session)
    record = store.get(file_id)
    store.check_owner(record, user)
    store.delete(record)
    return {"ok": True, "file_id": file_id}
