import logging
import os
import time
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Tuple
from uuid import uuid4

from sqlmodel import Session

from app.models.account import User
from app.models.order import Order, OrderFile
from app.services.errors import AccessDenied, NotFound

logger = logging.getLogger(__name__)

# (original name, mime type, bytes) as read from an upload
Upload = Tuple[str, Optional[str], bytes]


class StoredFile(NamedTuple):
    path: Path
    original_name: str
    mime_type: str
    size: int


def upload_dir() -> Path:
    path = Path(os.getenv("UPLOAD_DIR", "uploads")) / "orders"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _stored_name(original_name: str) -> str:
    suffix = Path(original_name or "").suffix
    return f"files-{int(time.time() * 1000)}-{uuid4().hex[:12]}{suffix}"


class FileStore:
    """Files attached to orders: bytes on disk, metadata in the `files` table."""

    def __init__(self, session: Session):
        self.session = session

    def write(self, uploads: Iterable[Upload]) -> List[StoredFile]:
        """Put upload bytes on disk. Nothing is recorded in the database yet."""
        stored: List[StoredFile] = []
        try:
            for original_name, mime_type, content in uploads:
                path = upload_dir() / _stored_name(original_name)
                path.write_bytes(content)
                stored.append(StoredFile(
                    path=path,
                    original_name=original_name or path.name,
                    mime_type=mime_type or "application/octet-stream",
                    size=len(content),
                ))
        except Exception:
            self.discard(stored)
            raise
        return stored

    def record(self, order_id: str, stored: StoredFile) -> OrderFile:
        row = OrderFile(
            order_id=order_id,
            filename=stored.path.name,
            original_name=stored.original_name,
            file_path=str(stored.path),
            file_size=stored.size,
            mime_type=stored.mime_type,
        )
        self.session.add(row)
        return row

    def discard(self, stored: Iterable[StoredFile]) -> None:
        for f in stored:
            if f.path.exists():
                f.path.unlink()
                logger.info("Removed unrecorded upload %s", f.path)

    def save_many(self, order_id: str, uploads: Iterable[Upload]) -> List[OrderFile]:
        """Store all uploads for an order, or none of them."""
        stored = self.write(uploads)
        rows = [self.record(order_id, f) for f in stored]
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            self.discard(stored)
            raise
        for row in rows:
            self.session.refresh(row)
        logger.info("Stored %s file(s) for order_id=%s", len(rows), order_id)
        return rows

    def get(self, file_id: int) -> OrderFile:
        record = self.session.get(OrderFile, file_id)
        if record is None:
            raise NotFound("File not found")
        return record

    def check_owner(self, record: OrderFile, user: User) -> Order:
        order = self.session.get(Order, record.order_id)
        if order is None or order.customer_id != user.id:
            raise AccessDenied("Access denied")
        return order

    def delete(self, record: OrderFile) -> None:
        path = Path(record.file_path)
        if path.exists():
            path.unlink()
        else:
            logger.warning("File missing on disk id=%s path=%s", record.id, path)
        self.session.delete(record)
        self.session.commit()
        logger.info("Deleted file id=%s order_id=%s", record.id, record.order_id)
