import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.avatars import default_avatar
from app.core.clock import as_utc, local_tz, utcnow
from app.core.config import ACTIVE_WINDOW_DAYS
from app.core.deps import get_db, get_storage
from app.core.permissions import require_admin
from app.core.principal import AdminPrincipal
from app.core.security import create_access_token, hash_password, verify_password
from app.core.storage import KIND_IMAGE, LocalFileStorage
from app.models.admin import Admin
from app.models.kid import Kid
from app.models.submission import SUBMISSION_GRADED, Submission
from app.schemas.admin import AdminRead
from app.schemas.auth import LoginRequest, LoginResponse, UserSummary
from app.schemas.dashboard import AdminDashboardStats, NotificationStats
from app.schemas.kid import KidListRow, KidRead
from app.schemas.submission import SubmissionAdminRow, SubmissionGradeUpdate, SubmissionRead
from app.services.activity import activity_chart
from app.services.errors import InvalidStateError
from app.services.ranking import build_leaderboard, index_comics
from app.services.stats_repository import StatsRepository, get_stats_repository

logger = logging.getLogger(__name__)

router = APIRouter()


def _greeting(local_now: datetime) -> str:
    if local_now.hour < 12:
        return "Good Morning"
    if local_now.hour < 18:
        return "Good Afternoon"
    return "Good Evening"


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid credentials"}},
)
def admin_login(payload: LoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == payload.email).first()
    if not admin or not verify_password(payload.password, admin.password_hash):
        logger.warning("Failed admin login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token = create_access_token(AdminPrincipal(id=admin.id))
    return {"access_token": token, "user": UserSummary.model_validate(admin)}


@router.get("/stats", response_model=AdminDashboardStats)
def dashboard_stats(
    repo: StatsRepository = Depends(get_stats_repository),
    now: datetime = Depends(utcnow),
    admin: Admin = Depends(require_admin),
):
    tz = local_tz()
    return {
        **repo.totals(),
        "greeting": _greeting(as_utc(now).astimezone(tz)),
        "chart_data": activity_chart(repo.kid_activity_rows(), now, tz),
    }


@router.get("/notifications", response_model=NotificationStats)
def notifications(
    repo: StatsRepository = Depends(get_stats_repository),
    admin: Admin = Depends(require_admin),
):
    return {"pending_count": repo.pending_submissions()}


@router.get("/kids", response_model=list[KidListRow])
def list_kids(
    repo: StatsRepository = Depends(get_stats_repository),
    now: datetime = Depends(utcnow),
    admin: Admin = Depends(require_admin),
):
    kids = repo.kids_with_submissions()
    try:
        board = build_leaderboard(kids, index_comics(repo.comics()))
    except InvalidStateError as e:
        logger.error("Kid list: %s", e)
        raise HTTPException(status_code=500, detail="Inconsistent submission data")
    leaderboard = {e.kid_id: e for e in board}

    # active = logged in since the start of the day ACTIVE_WINDOW_DAYS ago (local time)
    tz = local_tz()
    window_day: date = as_utc(now).astimezone(tz).date() - timedelta(days=ACTIVE_WINDOW_DAYS)
    active_since = datetime.combine(window_day, time.min, tzinfo=tz)

    result: list[dict] = []
    for kid in sorted(kids, key=lambda k: (k.name.lower(), k.id)):
        last_login = as_utc(kid.last_login)
        data = KidRead.model_validate(kid).model_dump()
        data.update(
            {
                "avatar": kid.avatar or default_avatar(kid.name),
                "status": "Active" if last_login and last_login >= active_since else "Inactive",
                "submissions": len(kid.submissions),
                "comics_read": len({s.comic_id for s in kid.submissions}),
                "rank": leaderboard[kid.id].rank,
            }
        )
        result.append(data)
    return result


@router.post("/kids", response_model=KidRead, status_code=status.HTTP_201_CREATED)
async def create_kid(
    name: str = Form(..., min_length=1),
    parent_phone: str = Form(..., min_length=1),
    email: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    father_name: Optional[str] = Form(None),
    mother_name: Optional[str] = Form(None),
    date_of_birth: Optional[date] = Form(None),
    password: Optional[str] = Form(None, min_length=8, max_length=72),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    now: datetime = Depends(utcnow),
    admin: Admin = Depends(require_admin),
):
    avatar_url = None
    if avatar is not None:
        avatar_url = await storage.save(avatar, "avatars", KIND_IMAGE)

    kid = Kid(
        name=name,
        email=email or None,
        gender=gender,
        father_name=father_name,
        mother_name=mother_name,
        parent_phone=parent_phone,
        date_of_birth=date_of_birth,
        password_hash=hash_password(password) if password else None,
        avatar=avatar_url or default_avatar(name),
        created_at=now,
    )
    db.add(kid)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        storage.discard([avatar_url])
        raise HTTPException(status_code=409, detail="Email or Parent Phone already exists")

    db.refresh(kid)
    logger.info("Admin %s created kid %s", admin.id, kid.id)
    return kid


@router.get("/submissions", response_model=list[SubmissionAdminRow])
def list_submissions(
    db: Session = Depends(get_db),
    admin: Admin = Depends(require_admin),
):
    return (
        db.query(Submission)
        .options(joinedload(Submission.kid), joinedload(Submission.comic))
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .all()
    )


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
    admin: Admin = Depends(require_admin),
):
    sub = db.query(Submission).filter(Submission.id == submission_id).first()
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")

    if sub.status == SUBMISSION_GRADED:
        raise HTTPException(status_code=409, detail="Submission already graded")

    total_marks = sub.comic.total_marks
    if total_marks and payload.marks > total_marks:
        raise HTTPException(
            status_code=400,
            detail=f"marks must be between 0 and {total_marks}",
        )

    sub.marks = payload.marks
    sub.status = SUBMISSION_GRADED
    sub.graded_at = now

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    logger.info("Admin %s graded submission %s: %s marks", admin.id, sub.id, sub.marks)
    return sub


@router.put("/profile", response_model=AdminRead)
async def update_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    old_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None, min_length=8, max_length=72),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    admin: Admin = Depends(require_admin),
):
    if name:
        admin.name = name
    if email:
        admin.email = email

    if new_password:
        if not old_password:
            raise HTTPException(
                status_code=400,
                detail="Old password is required to set a new one",
            )
        if not verify_password(old_password, admin.password_hash):
            raise HTTPException(status_code=401, detail="Invalid old password")
        admin.password_hash = hash_password(new_password)

    avatar_url = None
    if avatar is not None:
        avatar_url = admin.avatar = await storage.save(avatar, "avatars", KIND_IMAGE)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        storage.discard([avatar_url])
        raise HTTPException(status_code=409, detail="Email already in use")

    db.refresh(admin)
    return admin
