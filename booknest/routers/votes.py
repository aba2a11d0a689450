"""
Votes Router

Upvote/downvote a book. Anonymous visitors vote too: their identity is the
address hash for that book, signed-in members vote as their account.

POST semantics (per identity):
- No vote yet → vote recorded
- Same kind as the current vote → vote removed
- Opposite kind → vote switched

Both endpoints answer with the caller's vote and the book's fresh tally.
"""

from fastapi import APIRouter, Request

from booknest.config import get_settings
from booknest.dependencies import BookOr404, DbSession, OptionalUser
from booknest.schemas import VoteRequest, VoteResponse
from booknest.services.identity import resolve_identity
from booknest.services.rate_limiter import limiter
from booknest.services.votes import VoteTally, cast_vote, get_vote_state, get_vote_tally

settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Votes"],
    responses={
        404: {"description": "Book not found"},
        409: {"description": "Concurrent vote from the same identity; retry"},
    },
)


def _vote_response(
    book_id: int,
    vote_type: str | None,
    tally: VoteTally,
    action: str | None = None,
) -> VoteResponse:
    return VoteResponse(
        book_id=book_id,
        vote_type=vote_type,
        action=action,
        upvotes=tally.upvotes,
        downvotes=tally.downvotes,
        score=tally.score,
    )


@router.get(
    "/{book_id}/votes",
    response_model=VoteResponse,
    summary="Get vote state",
    description="The caller's current vote on the book and the book's tally.",
)
@limiter.limit(settings.rate_limit_default)
def get_votes(
    request: Request,
    book: BookOr404,
    db: DbSession,
    current_user: OptionalUser,
) -> VoteResponse:
    identity = resolve_identity(request, book.id, current_user)
    return _vote_response(
        book.id,
        get_vote_state(db, book.id, identity),
        get_vote_tally(db, book.id),
    )


@router.post(
    "/{book_id}/votes",
    response_model=VoteResponse,
    summary="Vote on a book",
    description="Cast, switch or (by repeating it) remove an upvote or downvote.",
)
@limiter.limit(settings.rate_limit_write)
def vote_on_book(
    request: Request,
    book_id: int,
    vote: VoteRequest,
    db: DbSession,
    current_user: OptionalUser,
) -> VoteResponse:
    """
    Raises:
        ValidationError: 400 for an unknown vote type
        UnknownTargetError: 404 if the book does not exist
        ConflictError: 409 if a concurrent vote from the same identity won
    """
    identity = resolve_identity(request, book_id, current_user)
    outcome = cast_vote(db, book_id, identity, vote.vote_type)
    return _vote_response(book_id, outcome.vote_type, outcome.tally, outcome.action)
