"""
Comment Pydantic Schemas

Schemas:
- CommentCreate: Post a comment or, with parent_comment_id, a reply
- CommentResponse: One comment with its like count and thread position
- CommentCountResponse: A book's comment count (after a deletion)
- CommentTreeResponse: All comments of a book in thread order
- CommentWriteResponse: The new comment and the book's fresh comment count
- LikeResponse: The caller's like state and the comment's like count

Threads are returned flat: every comment is followed by its replies
(pre-order), and `depth` / `thread_parent_id` say where it sits.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """
    Example request body:
    {"content": "Loved the ending.", "parent_comment_id": 12, "author_name": "Book Lover"}

    Length limits are checked by the comments service.
    """

    content: str = Field(..., description="Comment text")
    parent_comment_id: int | None = Field(
        default=None,
        description="Comment being replied to (same book)",
    )
    author_name: str | None = Field(
        default=None,
        max_length=100,
        description="Name shown on an anonymous comment (ignored for members)",
        examples=["Book Lover"],
    )


class CommentResponse(BaseModel):
    id: int
    book_id: int
    parent_comment_id: int | None = Field(
        default=None,
        description="May name a deleted comment; such replies are listed as roots",
    )
    thread_parent_id: int | None = Field(
        default=None,
        description="Comment this one is listed under (null for top-level entries)",
    )
    depth: int = Field(default=0, ge=0, description="0 for top-level comments")
    user_id: int | None = Field(default=None, description="Author account (null when anonymous)")
    author_name: str
    content: str
    created_at: datetime
    like_count: int = Field(default=0, ge=0)
    is_liked: bool = Field(default=False, description="Whether the caller liked it")
    reply_count: int = Field(default=0, ge=0, description="Direct replies")

    model_config = ConfigDict(from_attributes=True)


class CommentCountResponse(BaseModel):
    book_id: int
    total_count: int = Field(..., ge=0, description="Comments including replies at any depth")


class CommentTreeResponse(CommentCountResponse):
    comments: list[CommentResponse] = Field(
        ...,
        description="Every comment, each followed by its replies; siblings oldest first",
    )


class CommentWriteResponse(BaseModel):
    comment: CommentResponse
    total_count: int = Field(..., ge=0)


class LikeResponse(BaseModel):
    comment_id: int
    liked: bool
    like_count: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)
