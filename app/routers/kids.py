import logging
import secrets
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.avatars import default_avatar
from app.core.clock import as_utc, utcnow
from app.core.config import MAX_SUBMISSION_ATTACHMENTS, PROFILE_TOKEN_EXPIRE, VERIFICATION_CODE_TTL
from app.core.deps import get_db, get_mailer, get_storage
from app.core.email import Mailer
from app.core.permissions import require_kid
from app.core.principal import KidPrincipal
from app.core.security import create_access_token, hash_password, verify_password
from app.core.storage import KIND_DOCUMENT, KIND_IMAGE, LocalFileStorage
from app.models.comic import Comic
from app.models.kid import Kid
from app.models.submission import SUBMISSION_PENDING, Submission
from app.schemas.auth import LoginRequest, UserSummary
from app.schemas.dashboard import KidDashboard
from app.schemas.kid import (
    CompleteProfileRequest,
    KidCheckRequest,
    KidCreateRequest,
    KidLoginResponse,
    KidRead,
    KidSignupRequest,
    KidSignupResponse,
    KidTokenResponse,
    VerifyEmailRequest,
)
from app.schemas.submission import SubmissionRead
from app.services.errors import InvalidStateError, KidNotFoundError
from app.services.ranking import compute_kid_standing
from app.services.stats_repository import StatsRepository, get_stats_repository

logger = logging.getLogger(__name__)

router = APIRouter()


def _new_verification_code() -> str:
    return str(secrets.randbelow(900000) + 100000)


def _kid_by_email(db: Session, email: str) -> Kid | None:
    return db.query(Kid).filter(Kid.email == email).first()


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Registration and sign-in
# ---------------------------------------------------------------------------


@router.post("/check", response_model=KidTokenResponse)
def check_kid_profile(
    payload: KidCheckRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    """Sign in with parent phone + date of birth."""
    kid = db.query(Kid).filter(Kid.parent_phone == payload.parent_phone).first()
    if not kid:
        raise HTTPException(status_code=404, detail="This phone number is not registered")

    if kid.date_of_birth is None:
        raise HTTPException(status_code=400, detail="Date of birth missing in record")
    if kid.date_of_birth != payload.date_of_birth:
        raise HTTPException(status_code=401, detail="Invalid date of birth")

    kid.last_login = now
    _commit(db)
    db.refresh(kid)

    token = create_access_token(KidPrincipal(id=kid.id), PROFILE_TOKEN_EXPIRE)
    return {"access_token": token, "kid": kid}


@router.post("/create", response_model=KidTokenResponse, status_code=status.HTTP_201_CREATED)
def create_kid_profile(
    payload: KidCreateRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    if not payload.confirm:
        raise HTTPException(status_code=400, detail="Profile creation must be confirmed")

    if db.query(Kid).filter(Kid.parent_phone == payload.parent_phone).first():
        raise HTTPException(
            status_code=409,
            detail="A profile with this parent phone already exists",
        )

    kid = Kid(
        name=payload.name,
        parent_phone=payload.parent_phone,
        date_of_birth=payload.date_of_birth,
        created_at=now,
    )
    db.add(kid)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="A profile with this parent phone already exists",
        )

    db.refresh(kid)
    token = create_access_token(KidPrincipal(id=kid.id), PROFILE_TOKEN_EXPIRE)
    return {"access_token": token, "kid": kid}


@router.post("/signup", response_model=KidSignupResponse, status_code=status.HTTP_201_CREATED)
def kid_signup(
    payload: KidSignupRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    now: datetime = Depends(utcnow),
):
    """Step 1: create an unverified account and email a 6-digit code."""
    if _kid_by_email(db, payload.email):
        raise HTTPException(status_code=409, detail="A kid with this email already exists")

    code = _new_verification_code()
    kid = Kid(
        name=payload.full_name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        is_verified=False,
        verification_code=code,
        verification_code_expires=now + VERIFICATION_CODE_TTL,
        created_at=now,
    )
    db.add(kid)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A kid with this email already exists")

    if not mailer.send_verification_email(payload.email, code):
        logger.warning("Failed to send verification email to %s", payload.email)

    return {"email": payload.email, "message": "Please verify your email"}


@router.post("/verify-email")
def verify_email(
    payload: VerifyEmailRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    """Step 2: confirm the emailed code."""
    kid = _kid_by_email(db, payload.email)
    if not kid:
        raise HTTPException(status_code=404, detail="Kid not found")
    if kid.is_verified:
        raise HTTPException(status_code=400, detail="Email already verified")
    if kid.verification_code != payload.code:
        raise HTTPException(status_code=400, detail="Invalid verification code")

    expires = as_utc(kid.verification_code_expires)
    if expires is not None and expires < as_utc(now):
        raise HTTPException(status_code=400, detail="Verification code expired")

    kid.is_verified = True
    kid.verification_code = None
    kid.verification_code_expires = None
    _commit(db)

    return {"msg": "Email verified successfully"}


@router.post("/complete-profile", response_model=KidTokenResponse)
def complete_profile(
    payload: CompleteProfileRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    """Step 3: family details; signs the kid in."""
    kid = _kid_by_email(db, payload.email)
    if not kid or not kid.is_verified:
        raise HTTPException(status_code=400, detail="User not found or not verified")

    kid.father_name = payload.father_name
    kid.mother_name = payload.mother_name
    kid.gender = payload.gender
    kid.date_of_birth = payload.date_of_birth
    kid.last_login = now
    _commit(db)
    db.refresh(kid)

    token = create_access_token(KidPrincipal(id=kid.id))
    return {"access_token": token, "kid": kid}


@router.post(
    "/login",
    response_model=KidLoginResponse,
    responses={401: {"description": "Invalid credentials"}},
)
def kid_login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    kid = _kid_by_email(db, payload.email)
    if not kid or not verify_password(payload.password, kid.password_hash):
        logger.warning("Failed kid login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    StatsRepository(db).touch_last_login(kid.id, now)
    token = create_access_token(KidPrincipal(id=kid.id))
    return {"access_token": token, "kid": UserSummary.model_validate(kid)}


# ---------------------------------------------------------------------------
# Signed-in kid
# ---------------------------------------------------------------------------


@router.get("/dashboard", response_model=KidDashboard)
def kid_dashboard(
    me: Kid = Depends(require_kid),
    repo: StatsRepository = Depends(get_stats_repository),
    now: datetime = Depends(utcnow),
):
    try:
        standing = compute_kid_standing(me.id, repo.kids_with_submissions(), repo.comics())
    except KidNotFoundError:
        raise HTTPException(status_code=404, detail="Kid not found in records")
    except InvalidStateError as e:
        logger.error("Dashboard for kid %s: %s", me.id, e)
        raise HTTPException(status_code=500, detail="Inconsistent submission data")

    kid = standing.kid
    result = {
        "kid_name": kid.name,
        "email": kid.email,
        "avatar": kid.avatar or default_avatar(kid.name),
        "parent_phone": kid.parent_phone,
        "date_of_birth": kid.date_of_birth,
        "standing": standing.rank,
        "rank": standing.rank,
        "score": standing.score,
        "overall_percentage": standing.overall_percentage,
        "comics_read": standing.comics_read,
        "recent_progress": [
            {
                "id": p.comic_id,
                "submission_id": p.submission_id,
                "title": p.title,
                "cover": p.cover,
                "progress": p.progress,
                "status": p.status,
                "submission_date": p.submission_date,
                "marks": p.marks,
                "total_marks": p.total_marks,
            }
            for p in standing.recent_progress
        ],
    }

    # after the read; not transactional with it
    repo.touch_last_login(me.id, now)
    return result


@router.get("/submissions/{comic_id}", response_model=list[SubmissionRead])
def my_comic_submissions(
    comic_id: int,
    db: Session = Depends(get_db),
    me: Kid = Depends(require_kid),
):
    return (
        db.query(Submission)
        .filter(Submission.kid_id == me.id, Submission.comic_id == comic_id)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .all()
    )


@router.post("/submit", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
async def submit_comic(
    comic_id: int = Form(...),
    description: Optional[str] = Form(None),
    comments: Optional[str] = Form(None),
    attachments: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    now: datetime = Depends(utcnow),
    me: Kid = Depends(require_kid),
):
    comic = db.query(Comic).filter(Comic.id == comic_id).first()
    if not comic:
        raise HTTPException(status_code=404, detail="Comic not found")

    limit = min(comic.max_uploads, MAX_SUBMISSION_ATTACHMENTS)
    if len(attachments) > limit:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum {limit} files allowed for this comic",
        )

    existing = (
        db.query(Submission)
        .filter(Submission.kid_id == me.id, Submission.comic_id == comic_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="You have already submitted for this comic.")

    file_urls = await storage.save_many(attachments, "submissions", KIND_DOCUMENT)

    s = Submission(
        kid_id=me.id,
        comic_id=comic_id,
        description=description,
        comments=comments,
        files=file_urls,
        status=SUBMISSION_PENDING,
        created_at=now,
    )
    db.add(s)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        storage.discard(file_urls)
        raise HTTPException(status_code=409, detail="You have already submitted for this comic.")

    db.refresh(s)
    return s


@router.put("/profile", response_model=KidRead)
async def update_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    parent_phone: Optional[str] = Form(None),
    date_of_birth: Optional[date] = Form(None),
    old_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None, min_length=8, max_length=72),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    me: Kid = Depends(require_kid),
):
    if name:
        me.name = name
    if email:
        me.email = email
    if parent_phone:
        me.parent_phone = parent_phone
    if date_of_birth:
        me.date_of_birth = date_of_birth

    if new_password:
        if not old_password:
            raise HTTPException(status_code=400, detail="Old password is required")
        if not me.password_hash:
            raise HTTPException(status_code=400, detail="No password set for this account")
        if not verify_password(old_password, me.password_hash):
            raise HTTPException(status_code=401, detail="Invalid old password")
        me.password_hash = hash_password(new_password)

    avatar_url = None
    if avatar is not None:
        avatar_url = me.avatar = await storage.save(avatar, "avatars", KIND_IMAGE)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        storage.discard([avatar_url])
        raise HTTPException(status_code=409, detail="Email or Parent Phone already exists")

    db.refresh(me)
    return me
