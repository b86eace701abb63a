"""
Kid scores, leaderboard and dashboard standing.

Everything here is a pure function of the records passed in: a snapshot of
kids (with their submissions) and comics fetched by the caller. Nothing is
cached between calls.

Score rules:
- score(kid) = sum over the kid's submissions of marks + bonus
- marks count as 0 until graded
- bonus is the comic's bonus when the comic has a deadline and the
  submission was created on or before it
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from app.core.clock import as_utc
from app.services.errors import InvalidStateError, KidNotFoundError

DEFAULT_PROGRESS_DENOMINATOR = 100
_CENT = Decimal("0.01")


@dataclass(frozen=True)
class LeaderboardEntry:
    kid_id: int
    score: int
    rank: int


@dataclass(frozen=True)
class ProgressEntry:
    submission_id: int
    comic_id: int
    title: str
    cover: str | None
    progress: float
    status: str
    submission_date: object
    marks: int
    total_marks: int


@dataclass
class KidStanding:
    kid: object
    score: int
    rank: int
    overall_percentage: float
    comics_read: int
    recent_progress: list[ProgressEntry] = field(default_factory=list)


def percent(numerator: int, denominator: int) -> float:
    """100 * numerator / denominator, rounded half-up to 2 places; 0 when denominator is 0."""
    if not denominator:
        return 0.0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def index_comics(comics: Iterable) -> dict:
    return {c.id: c for c in comics}


def _comic_for(submission, comics_by_id: Mapping):
    comic = comics_by_id.get(submission.comic_id)
    if comic is None:
        raise InvalidStateError(submission.id, submission.comic_id)
    return comic


def submission_bonus(submission, comic) -> int:
    if not comic.bonus or comic.submission_deadline is None:
        return 0
    if as_utc(submission.created_at) <= as_utc(comic.submission_deadline):
        return comic.bonus
    return 0


def kid_score(kid, comics_by_id: Mapping) -> int:
    total = 0
    for sub in kid.submissions:
        comic = _comic_for(sub, comics_by_id)
        total += (sub.marks or 0) + submission_bonus(sub, comic)
    return total


def build_leaderboard(kids: Iterable, comics_by_id: Mapping) -> list[LeaderboardEntry]:
    """
    Score every kid and rank them.

    Order: score descending, then kid id ascending so equal scores always
    come out the same way. Rank is 1 + the number of kids with a strictly
    greater score, so tied kids share a rank.
    """
    scored = sorted(
        ((kid.id, kid_score(kid, comics_by_id)) for kid in kids),
        key=lambda pair: (-pair[1], pair[0]),
    )

    entries: list[LeaderboardEntry] = []
    rank = 0
    previous_score = None
    for position, (kid_id, score) in enumerate(scored, start=1):
        if score != previous_score:
            rank = position
            previous_score = score
        entries.append(LeaderboardEntry(kid_id=kid_id, score=score, rank=rank))
    return entries


def grand_total_marks(comics: Iterable) -> int:
    return sum(c.total_marks or 0 for c in comics)


def overall_percentage(score: int, grand_total: int) -> float:
    # not capped: on-time bonus can lift a kid above 100%
    return percent(score, grand_total)


def recent_progress(kid, comics_by_id: Mapping) -> list[ProgressEntry]:
    """Per-submission marks / comic total, most recent submission first."""
    subs = sorted(
        kid.submissions,
        key=lambda s: (as_utc(s.created_at), s.id),
        reverse=True,
    )

    rows: list[ProgressEntry] = []
    for sub in subs:
        comic = _comic_for(sub, comics_by_id)
        max_marks = comic.total_marks or DEFAULT_PROGRESS_DENOMINATOR
        obtained = sub.marks or 0
        rows.append(
            ProgressEntry(
                submission_id=sub.id,
                comic_id=comic.id,
                title=comic.title,
                cover=comic.image,
                progress=percent(obtained, max_marks),
                status=sub.status,
                submission_date=sub.created_at,
                marks=obtained,
                total_marks=max_marks,
            )
        )
    return rows


def compute_kid_standing(kid_id: int, kids: Iterable, comics: Iterable) -> KidStanding:
    """
    Dashboard numbers for one kid, computed from a full snapshot.

    Raises KidNotFoundError if kid_id is not among ``kids`` and
    InvalidStateError if any submission references a comic not in ``comics``.
    """
    kids = list(kids)
    comics = list(comics)
    comics_by_id = index_comics(comics)

    leaderboard = build_leaderboard(kids, comics_by_id)
    entry = next((e for e in leaderboard if e.kid_id == kid_id), None)
    if entry is None:
        raise KidNotFoundError(kid_id)

    kid = next(k for k in kids if k.id == kid_id)

    return KidStanding(
        kid=kid,
        score=entry.score,
        rank=entry.rank,
        overall_percentage=overall_percentage(entry.score, grand_total_marks(comics)),
        comics_read=len({s.comic_id for s in kid.submissions}),
        recent_progress=recent_progress(kid, comics_by_id),
    )
