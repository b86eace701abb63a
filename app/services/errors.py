class StatsError(Exception):
    """Base class for dashboard statistics failures."""


class KidNotFoundError(StatsError):
    def __init__(self, kid_id: int):
        self.kid_id = kid_id
        super().__init__(f"Kid {kid_id} not found in records")


class InvalidStateError(StatsError):
    """A submission points at a comic that is not in the fetched comic set."""

    def __init__(self, submission_id: int, comic_id: int):
        self.submission_id = submission_id
        self.comic_id = comic_id
        super().__init__(
            f"Submission {submission_id} references missing comic {comic_id}"
        )
