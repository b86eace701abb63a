import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.core.config import MAX_COMIC_DOCUMENTS
from app.core.current_user import get_current_principal
from app.core.deps import get_db, get_storage
from app.core.permissions import require_admin
from app.core.principal import Principal
from app.core.storage import KIND_DOCUMENT, KIND_IMAGE, LocalFileStorage
from app.models.admin import Admin
from app.models.comic import Comic
from app.models.kid import Kid
from app.models.submission import Submission
from app.schemas.comic import ComicListRow, ComicRead

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_comic_exists(db: Session, comic_id: int) -> Comic:
    comic = db.query(Comic).filter(Comic.id == comic_id).first()
    if not comic:
        raise HTTPException(status_code=404, detail="Comic not found")
    return comic


def _check_uploads(
    storage: LocalFileStorage,
    cover_image: Optional[UploadFile],
    documents: list[UploadFile],
) -> None:
    if len(documents) > MAX_COMIC_DOCUMENTS:
        raise HTTPException(
            status_code=400,
            detail=f"At most {MAX_COMIC_DOCUMENTS} documents per comic",
        )
    # nothing is written until every file has passed
    if cover_image is not None:
        storage.check([cover_image], KIND_IMAGE)
    storage.check(documents, KIND_DOCUMENT)


# Readable by any signed-in user (admin or kid)
@router.get("", response_model=list[ComicListRow])
def list_comics(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = (
        db.query(Comic, func.count(Submission.id).label("submission_count"))
        .outerjoin(Submission, Submission.comic_id == Comic.id)
        .group_by(Comic.id)
        .order_by(Comic.created_at.desc(), Comic.id.desc())
        .all()
    )
    total_kids = db.query(func.count(Kid.id)).scalar() or 0

    result: list[dict] = []
    for comic, submission_count in rows:
        data = ComicRead.model_validate(comic).model_dump()
        data["submission_count"] = int(submission_count or 0)
        data["total_kids"] = int(total_kids)
        result.append(data)
    return result


@router.get("/{comic_id}", response_model=ComicRead)
def get_comic(
    comic_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return _ensure_comic_exists(db, comic_id)


@router.post("", response_model=ComicRead, status_code=status.HTTP_201_CREATED)
async def create_comic(
    title: str = Form(..., min_length=1),
    subtitle: str = Form(..., min_length=1),
    description: str = Form(..., min_length=1),
    category: Optional[str] = Form(None),
    submission_deadline: Optional[datetime] = Form(None),
    bonus: int = Form(0, ge=0),
    total_marks: int = Form(0, ge=0),
    max_uploads: int = Form(1, ge=1),
    cover_image: Optional[UploadFile] = File(None),
    documents: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    admin: Admin = Depends(require_admin),
):
    _check_uploads(storage, cover_image, documents)

    image_url = None
    if cover_image is not None:
        image_url = await storage.save(cover_image, "comics", KIND_IMAGE)
    try:
        document_urls = await storage.save_many(documents, "documents", KIND_DOCUMENT)
    except Exception:
        storage.discard([image_url])
        raise

    comic = Comic(
        title=title,
        subtitle=subtitle,
        description=description,
        category=category or None,
        image=image_url,
        documents=document_urls,
        submission_deadline=as_utc(submission_deadline),
        bonus=bonus,
        total_marks=total_marks,
        max_uploads=max_uploads,
    )
    db.add(comic)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.discard([image_url, *document_urls])
        raise

    db.refresh(comic)
    logger.info("Admin %s created comic %s", admin.id, comic.id)
    return comic


@router.put("/{comic_id}", response_model=ComicRead)
async def update_comic(
    comic_id: int,
    title: Optional[str] = Form(None),
    subtitle: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    submission_deadline: Optional[datetime] = Form(None),
    bonus: Optional[int] = Form(None, ge=0),
    total_marks: Optional[int] = Form(None, ge=0),
    max_uploads: Optional[int] = Form(None, ge=1),
    cover_image: Optional[UploadFile] = File(None),
    documents: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    admin: Admin = Depends(require_admin),
):
    comic = _ensure_comic_exists(db, comic_id)
    _check_uploads(storage, cover_image, documents)

    # only fields that were sent are changed; 0 is a valid value for ints
    for name, value in (
        ("title", title),
        ("subtitle", subtitle),
        ("description", description),
        ("category", category),
        ("bonus", bonus),
        ("total_marks", total_marks),
        ("max_uploads", max_uploads),
    ):
        if value is not None:
            setattr(comic, name, value)

    if submission_deadline is not None:
        comic.submission_deadline = as_utc(submission_deadline)

    stored: list[str] = []
    try:
        if cover_image is not None:
            comic.image = await storage.save(cover_image, "comics", KIND_IMAGE)
            stored.append(comic.image)
        if documents:
            comic.documents = await storage.save_many(documents, "documents", KIND_DOCUMENT)
            stored.extend(comic.documents)
        db.commit()
    except Exception:
        db.rollback()
        storage.discard(stored)
        raise

    db.refresh(comic)
    return comic


@router.delete("/{comic_id}")
def delete_comic(
    comic_id: int,
    db: Session = Depends(get_db),
    admin: Admin = Depends(require_admin),
):
    comic = _ensure_comic_exists(db, comic_id)

    # submissions go with it (relationship cascade)
    db.delete(comic)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Admin %s deleted comic %s", admin.id, comic_id)
    return {"msg": "Comic deleted successfully"}
