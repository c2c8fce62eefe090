"""
Access Policy - decides who may read or change movies and reviews

Rules:
- Public movies are readable by anyone, private movies only by their owner.
- Any authenticated user may create a private movie owned by themselves;
  only Admins may create public top-rated movies.
- A movie can be updated or deleted only while it is private, and only by
  its owner.
- Any authenticated user may review an existing movie; only the author may
  update or delete a review, whatever their role.

Known gap: because public movies are never modifiable, an Admin cannot
update or delete a top-rated movie, not even one they just added. This
matches the behaviour clients rely on today and is pinned by
tests/test_access_policy.py. Revisit if product asks for admin edits.

Every check returns a Decision; enforce() turns a denial into the matching
application error.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.models.movie import Movie
from app.models.review import Review
from app.schemas.auth import Identity
from app.utils.exceptions import Forbidden, NotFound, Unauthorized


class DenyReason(str, Enum):
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)
UNAUTHORIZED = Decision(False, DenyReason.UNAUTHORIZED)
FORBIDDEN = Decision(False, DenyReason.FORBIDDEN)
NOT_FOUND = Decision(False, DenyReason.NOT_FOUND)

_ERRORS = {
    DenyReason.UNAUTHORIZED: Unauthorized,
    DenyReason.FORBIDDEN: Forbidden,
    DenyReason.NOT_FOUND: NotFound,
}


def enforce(decision: Decision, detail: str = None) -> None:
    """Raise the error matching a denied decision; do nothing if allowed."""
    if decision.allowed:
        return
    raise _ERRORS[decision.reason](detail)


def _is_owner(identity: Optional[Identity], owner_id: Optional[int]) -> bool:
    return identity is not None and owner_id is not None and identity.id == owner_id


# ==================== MOVIES ====================

def can_read_movie(identity: Optional[Identity], movie: Optional[Movie]) -> Decision:
    if movie is None:
        return NOT_FOUND
    if movie.is_public or _is_owner(identity, movie.user_id):
        return ALLOW
    return FORBIDDEN


def can_create_movie(identity: Optional[Identity], public: bool = False) -> Decision:
    if identity is None:
        return UNAUTHORIZED
    if public and not identity.is_admin:
        return FORBIDDEN
    return ALLOW


def can_modify_movie(identity: Optional[Identity], movie: Optional[Movie]) -> Decision:
    """Update/delete check: private movies, owner only (Admins included in the denial)."""
    if identity is None:
        return UNAUTHORIZED
    if movie is None:
        return NOT_FOUND
    if not movie.is_public and _is_owner(identity, movie.user_id):
        return ALLOW
    return FORBIDDEN


# ==================== REVIEWS ====================

def can_read_review(identity: Optional[Identity], review: Optional[Review]) -> Decision:
    """Readable through the reviewed movie's visibility, or by the review's author."""
    if review is None:
        return NOT_FOUND
    if _is_owner(identity, review.user_id):
        return ALLOW
    return can_read_movie(identity, review.movie)


def can_list_reviews(identity: Optional[Identity], movie: Optional[Movie]) -> Decision:
    """Per-movie listings ignore the movie's visibility flag."""
    if identity is None:
        return UNAUTHORIZED
    if movie is None:
        return NOT_FOUND
    return ALLOW


def can_create_review(identity: Optional[Identity], movie: Optional[Movie]) -> Decision:
    if identity is None:
        return UNAUTHORIZED
    if movie is None:
        return NOT_FOUND
    return ALLOW


def can_modify_review(identity: Optional[Identity], review: Optional[Review]) -> Decision:
    if identity is None:
        return UNAUTHORIZED
    if review is None:
        return NOT_FOUND
    if _is_owner(identity, review.user_id):
        return ALLOW
    return FORBIDDEN
