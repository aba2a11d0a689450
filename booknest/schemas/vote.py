"""
Vote Pydantic Schemas

Request and response bodies for /books/{id}/votes.
"""

from pydantic import BaseModel, ConfigDict, Field


class VoteRequest(BaseModel):
    """
    Example request body:
    {"vote_type": "upvote"}

    Sending the same kind as the current vote removes it.
    """

    vote_type: str = Field(
        ...,
        description="upvote or downvote",
        examples=["upvote", "downvote"],
    )


class VoteResponse(BaseModel):
    """
    The caller's vote after the request and the book's fresh tally.

    action is null on reads; after a write it is created, changed or removed.
    """

    book_id: int
    vote_type: str | None = Field(default=None, description="Caller's current vote")
    action: str | None = Field(default=None)
    upvotes: int = Field(..., ge=0)
    downvotes: int = Field(..., ge=0)
    score: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "book_id": 1,
                "vote_type": "upvote",
                "action": "created",
                "upvotes": 13,
                "downvotes": 2,
                "score": 11,
            }
        },
    )
