"""
Upload storage.

Files are written under an upload root (one sub-folder per kind of upload)
and exposed through the static ``/uploads`` mount. Callers only ever see the
returned URL, so a remote object store can replace this class without
touching the routers.
"""

import logging
import os
from pathlib import Path
from typing import Optional
from uuid import uuid4

import aiofiles
from fastapi import HTTPException, UploadFile, status

from app.core.config import MAX_DOCUMENT_BYTES, MAX_IMAGE_BYTES

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".txt", ".jpeg", ".jpg", ".png", ".webp"}

KIND_IMAGE = "image"
KIND_DOCUMENT = "document"

_RULES = {
    KIND_IMAGE: (
        IMAGE_EXTENSIONS,
        MAX_IMAGE_BYTES,
        "Only image files are allowed (jpeg, jpg, png, gif, webp)",
    ),
    KIND_DOCUMENT: (
        DOCUMENT_EXTENSIONS,
        MAX_DOCUMENT_BYTES,
        "Only PDF, Word, Text, or Image files are allowed for documents",
    ),
}


class LocalFileStorage:
    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def check(uploads: list[UploadFile], kind: str = KIND_DOCUMENT) -> None:
        """Reject the batch if any filename has a disallowed extension."""
        allowed, _, message = _RULES[kind]
        for upload in uploads:
            if _extension(upload) not in allowed:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    async def save(self, upload: UploadFile, folder: str, kind: str = KIND_DOCUMENT) -> str:
        """Validate and store one upload, returning its public URL."""
        _, max_bytes, _ = _RULES[kind]
        self.check([upload], kind)
        ext = _extension(upload)

        content = await upload.read()
        if len(content) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large (max {max_bytes // (1024 * 1024)}MB)",
            )

        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        name = f"{uuid4().hex}{ext}"

        try:
            async with aiofiles.open(target_dir / name, "wb") as out_file:
                await out_file.write(content)
        except OSError:
            logger.exception("Failed to store upload %s", upload.filename)
            raise HTTPException(status_code=500, detail="Failed to save file")

        return f"{self.base_url}/{folder}/{name}"

    async def save_many(
        self, uploads: list[UploadFile], folder: str, kind: str = KIND_DOCUMENT
    ) -> list[str]:
        self.check(uploads, kind)
        urls: list[str] = []
        try:
            for upload in uploads:
                urls.append(await self.save(upload, folder, kind))
        except Exception:
            self.discard(urls)
            raise
        return urls

    def path_for(self, url: str) -> Optional[Path]:
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            return None
        path = (self.root / url[len(prefix):]).resolve()
        if self.root.resolve() not in path.parents:
            return None
        return path

    def discard(self, urls: list[Optional[str]]) -> None:
        """Remove files stored by this instance; unknown URLs are ignored."""
        for url in urls:
            path = self.path_for(url) if url else None
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove stored upload %s", path)


def _extension(upload: UploadFile) -> str:
    return os.path.splitext(upload.filename or "")[1].lower()
