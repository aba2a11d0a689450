"""
Votes Service

Write path and tallies for one-per-identity actions: book votes, comment
likes and review helpful marks.

Vote state machine (per identity × book):
=========================================
    NoAction  --upvote-->   Upvoted
    NoAction  --downvote--> Downvoted
    Upvoted   --downvote--> Downvoted    (row updated in place)
    Downvoted --upvote-->   Upvoted      (row updated in place)
    Upvoted   --upvote-->   NoAction     (row deleted: toggle-off)
    Downvoted --downvote--> NoAction     (row deleted: toggle-off)

Comment likes are the binary version (NotLiked <-> Liked).

The (target, identity) unique constraints guarantee one row per pair even
when two requests race; the loser gets a ConflictError and may retry once.
Tallies are recomputed from the rows on every call, never cached.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from booknest.exceptions import UnknownTargetError, ValidationError
from booknest.models import Book, Comment, CommentLike, Review, ReviewHelpful, Vote, VoteType
from booknest.services.identity import IdentityToken
from booknest.services.store import atomic_write

logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class VoteTally:
    """Upvote/downvote counts for one book."""

    book_id: int
    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


@dataclass
class VoteOutcome:
    """
    Result of cast_vote.

    Attributes:
        vote_type: The identity's vote after the write (None after toggle-off)
        action: "created", "changed" or "removed"
        tally: Fresh tally for the book
    """

    book_id: int
    vote_type: str | None
    action: str
    tally: VoteTally = field(repr=False)


@dataclass
class LikeOutcome:
    comment_id: int
    liked: bool
    like_count: int


@dataclass
class HelpfulOutcome:
    review_id: int
    marked: bool
    helpful_count: int


# =============================================================================
# Tallies
# =============================================================================


def get_vote_tallies(db: Session, book_ids: Iterable[int]) -> dict[int, VoteTally]:
    """
    Count votes per kind for several books with one grouped query.

    Books without votes get a zero tally.
    """
    ids = list(book_ids)
    tallies = {book_id: VoteTally(book_id=book_id) for book_id in ids}
    if not ids:
        return tallies

    stmt = (
        select(Vote.book_id, Vote.vote_type, func.count(Vote.id))
        .where(Vote.book_id.in_(ids))
        .group_by(Vote.book_id, Vote.vote_type)
    )
    for book_id, vote_type, count in db.execute(stmt).all():
        if vote_type == VoteType.UPVOTE.value:
            tallies[book_id].upvotes = count
        elif vote_type == VoteType.DOWNVOTE.value:
            tallies[book_id].downvotes = count

    return tallies


def get_vote_tally(db: Session, book_id: int) -> VoteTally:
    return get_vote_tallies(db, [book_id])[book_id]


def get_vote_state(db: Session, book_id: int, identity: IdentityToken) -> str | None:
    """The identity's current vote on a book, or None."""
    vote = _find_vote(db, book_id, identity.value)
    return vote.vote_type if vote else None


def _find_vote(db: Session, book_id: int, identity: str, lock: bool = False) -> Vote | None:
    stmt = select(Vote).where(Vote.book_id == book_id, Vote.identity == identity)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def _require(db: Session, model, target_id: int, kind: str):
    target = db.get(model, target_id)
    if target is None:
        raise UnknownTargetError(kind, target_id)
    return target


# =============================================================================
# Votes
# =============================================================================


def cast_vote(
    db: Session,
    book_id: int,
    identity: IdentityToken,
    vote_type: str,
) -> VoteOutcome:
    """
    Apply one vote submission and return the resulting state and tally.

    Args:
        db: Request session
        book_id: Book being voted on
        identity: Voter identity token
        vote_type: "upvote" or "downvote"

    Raises:
        ValidationError: Unknown vote type
        UnknownTargetError: Book does not exist
        ConflictError: A concurrent vote from the same identity won the race
    """
    try:
        kind = VoteType(vote_type).value
    except ValueError:
        raise ValidationError("Vote type must be 'upvote' or 'downvote'") from None

    _require(db, Book, book_id, "Book")

    with atomic_write(db, f"vote on book {book_id}"):
        existing = _find_vote(db, book_id, identity.value, lock=True)

        if existing is None:
            db.add(
                Vote(
                    book_id=book_id,
                    identity=identity.value,
                    user_id=identity.user_id,
                    vote_type=kind,
                )
            )
            action, state = "created", kind
        elif existing.vote_type == kind:
            db.delete(existing)
            action, state = "removed", None
        else:
            existing.vote_type = kind
            action, state = "changed", kind

    logger.info(f"Vote {action} on book {book_id}: {state or 'none'}")

    return VoteOutcome(
        book_id=book_id,
        vote_type=state,
        action=action,
        tally=get_vote_tally(db, book_id),
    )


# =============================================================================
# Comment Likes
# =============================================================================


def get_comment_like_counts(db: Session, comment_ids: Iterable[int]) -> dict[int, int]:
    """Like count per comment id (zero for comments without likes)."""
    ids = list(comment_ids)
    counts = dict.fromkeys(ids, 0)
    if not ids:
        return counts

    stmt = (
        select(CommentLike.comment_id, func.count(CommentLike.id))
        .where(CommentLike.comment_id.in_(ids))
        .group_by(CommentLike.comment_id)
    )
    counts.update(dict(db.execute(stmt).all()))
    return counts


def get_liked_comment_ids(
    db: Session,
    identities: dict[int, IdentityToken],
) -> set[int]:
    """
    Which of the given comments the viewer has liked.

    Args:
        identities: comment id → viewer identity for that comment (anonymous
            identities differ per comment, so each comment gets its own)
    """
    if not identities:
        return set()

    tokens = {token.value for token in identities.values()}
    stmt = select(CommentLike.comment_id, CommentLike.identity).where(
        CommentLike.comment_id.in_(list(identities)),
        CommentLike.identity.in_(tokens),
    )
    return {
        comment_id
        for comment_id, token in db.execute(stmt).all()
        if identities[comment_id].value == token
    }


def _find_like(
    db: Session, comment_id: int, identity: str, lock: bool = False
) -> CommentLike | None:
    stmt = select(CommentLike).where(
        CommentLike.comment_id == comment_id, CommentLike.identity == identity
    )
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def get_like_state(db: Session, comment_id: int, identity: IdentityToken) -> LikeOutcome:
    _require(db, Comment, comment_id, "Comment")
    liked = _find_like(db, comment_id, identity.value) is not None
    return LikeOutcome(
        comment_id=comment_id,
        liked=liked,
        like_count=get_comment_like_counts(db, [comment_id])[comment_id],
    )


def toggle_comment_like(
    db: Session,
    comment_id: int,
    identity: IdentityToken,
) -> LikeOutcome:
    """
    Like the comment, or remove the like if this identity already left one.

    Raises:
        UnknownTargetError: Comment does not exist
        ConflictError: A concurrent like from the same identity won the race
    """
    _require(db, Comment, comment_id, "Comment")

    with atomic_write(db, f"like on comment {comment_id}"):
        existing = _find_like(db, comment_id, identity.value, lock=True)
        if existing is None:
            db.add(
                CommentLike(
                    comment_id=comment_id,
                    identity=identity.value,
                    user_id=identity.user_id,
                )
            )
            liked = True
        else:
            db.delete(existing)
            liked = False

    logger.info(f"Comment {comment_id} {'liked' if liked else 'unliked'}")

    return LikeOutcome(
        comment_id=comment_id,
        liked=liked,
        like_count=get_comment_like_counts(db, [comment_id])[comment_id],
    )


# =============================================================================
# Review Helpful Marks
# =============================================================================


def get_helpful_counts(db: Session, review_ids: Iterable[int]) -> dict[int, int]:
    ids = list(review_ids)
    counts = dict.fromkeys(ids, 0)
    if not ids:
        return counts

    stmt = (
        select(ReviewHelpful.review_id, func.count(ReviewHelpful.id))
        .where(ReviewHelpful.review_id.in_(ids))
        .group_by(ReviewHelpful.review_id)
    )
    counts.update(dict(db.execute(stmt).all()))
    return counts


def set_review_helpful(
    db: Session,
    review_id: int,
    identity: IdentityToken,
    helpful: bool,
) -> HelpfulOutcome:
    """
    Add (helpful=True) or remove (helpful=False) a helpful mark.

    Unlike votes this is not a toggle: adding twice or removing a mark that
    was never left is rejected so the client learns its view was stale.

    Raises:
        UnknownTargetError: Review does not exist, or no mark to remove
        ValidationError: Mark already present
        ConflictError: A concurrent mark from the same identity won the race
    """
    _require(db, Review, review_id, "Review")

    with atomic_write(db, f"helpful mark on review {review_id}"):
        stmt = (
            select(ReviewHelpful)
            .where(
                ReviewHelpful.review_id == review_id,
                ReviewHelpful.identity == identity.value,
            )
            .with_for_update()
        )
        existing = db.execute(stmt).scalar_one_or_none()

        if helpful:
            if existing is not None:
                raise ValidationError("You have already marked this review as helpful")
            db.add(
                ReviewHelpful(
                    review_id=review_id,
                    identity=identity.value,
                    user_id=identity.user_id,
                )
            )
        else:
            if existing is None:
                raise UnknownTargetError("Helpful mark for review", review_id)
            db.delete(existing)

    return HelpfulOutcome(
        review_id=review_id,
        marked=helpful,
        helpful_count=get_helpful_counts(db, [review_id])[review_id],
    )
