"""
storage.py
Disk storage for project background images, plus a small unit of work that
keeps file effects in step with the SQLAlchemy session.

Files written during a request are removed if the session rolls back; files
a request replaces or deletes are removed only once the session has committed.
A crash between the commit and the delete leaves an orphan file on disk, never
a record that points at a missing file.
"""
import logging
import os
import random
import time
from pathlib import Path

import aiofiles
from fastapi import Depends, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


class ImageStore:
    def __init__(self, root: str, max_size: int, subdir: str = "projects", url_prefix: str = "/uploads"):
        self.root = root
        self.max_size = max_size
        self.subdir = subdir
        self.url_prefix = url_prefix

    @property
    def directory(self) -> str:
        return os.path.join(self.root, self.subdir)

    def unique_name(self, original_name: str) -> str:
        ext = Path(original_name or "").suffix
        return f"project-{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}{ext}"

    async def save(self, upload: UploadFile) -> dict:
        """Stream ``upload`` to disk and return the backgroundImage record for it."""
        if not (upload.content_type or "").startswith("image/"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed!")

        os.makedirs(self.directory, exist_ok=True)
        filename = self.unique_name(upload.filename)
        location = os.path.join(self.directory, filename)

        size = 0
        try:
            async with aiofiles.open(location, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_size:
                        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large")
                    await f.write(chunk)
        except Exception:
            self.remove(location)
            raise

        logger.info("Stored upload %s as %s (%d bytes)", upload.filename, location, size)
        return {
            "filename": filename,
            "original_name": upload.filename,
            "mime_type": upload.content_type,
            "size_bytes": size,
            "storage_path": location,
            "public_url": f"{self.url_prefix}/{self.subdir}/{filename}",
        }

    def remove(self, storage_path: str | None) -> bool:
        """Delete a stored file; paths outside the upload root are never touched."""
        if not storage_path:
            return False
        target = Path(storage_path).resolve()
        root = Path(self.root).resolve()
        if root not in target.parents:
            logger.warning("Refusing to remove %s outside of %s", target, root)
            return False
        if not target.is_file():
            return False
        target.unlink()
        return True


class UploadUnitOfWork:
    def __init__(self, db: Session, store: ImageStore):
        self.db = db
        self.store = store
        self._staged: list[str] = []
        self._discarded: list[str] = []

    async def stage(self, upload: UploadFile) -> dict:
        image = await self.store.save(upload)
        self._staged.append(image["storage_path"])
        return image

    def discard(self, image: dict | None) -> None:
        if image and image.get("storage_path"):
            self._discarded.append(image["storage_path"])

    def _remove_all(self, paths: list[str], reason: str) -> None:
        for path in paths:
            try:
                self.store.remove(path)
            except OSError as e:
                logger.warning("Could not remove %s file %s: %s", reason, path, e)

    def commit(self) -> None:
        self.db.commit()
        self._remove_all(self._discarded, "replaced")
        self._staged.clear()
        self._discarded.clear()

    def rollback(self) -> None:
        self.db.rollback()
        self._remove_all(self._staged, "orphaned")
        self._staged.clear()
        self._discarded.clear()


def get_image_store() -> ImageStore:
    return ImageStore(settings.upload_dir, settings.max_upload_size)


def get_unit_of_work(
    db: Session = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
) -> UploadUnitOfWork:
    return UploadUnitOfWork(db, store)
