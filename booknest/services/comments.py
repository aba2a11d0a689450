"""
Comments Service

Threaded discussion on books.

Tree Building
=============
Comments are stored flat; each reply names its parent through the weak
parent_comment_id column. build_comment_tree() turns the flat, oldest-first
list into a forest:

1. First pass: one node per comment, keyed by id
2. Second pass: attach each node to its parent when the parent is in the
   same book's set, otherwise make it a root

Replies to deleted (or foreign) comments are promoted to roots, so no
comment is ever dropped. The builder is iterative: a thousand-deep thread
costs a thousand loop iterations, not a thousand stack frames.

Counting
========
Replies carry their book_id, so the total number of comments on a book
(top-level plus every reply at every depth) is one COUNT(*) on book_id.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from booknest.config import get_settings
from booknest.exceptions import PermissionDeniedError, UnknownTargetError, ValidationError
from booknest.models import Book, Comment, User
from booknest.services.identity import IdentityToken
from booknest.services.store import atomic_write

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(eq=False)
class CommentNode:
    """A comment and its direct replies, oldest first."""

    comment: Comment
    children: list["CommentNode"] = field(default_factory=list)


# =============================================================================
# Tree Builder
# =============================================================================


def build_comment_tree(comments: Sequence[Comment]) -> list[CommentNode]:
    """
    Assemble flat comment rows into a forest.

    Args:
        comments: Rows of one book ordered by creation time ascending

    Returns:
        Root nodes in creation order; each node's children in creation order
    """
    nodes: dict[int, CommentNode] = {}
    position: dict[int, int] = {}
    for index, comment in enumerate(comments):
        nodes[comment.id] = CommentNode(comment=comment)
        position[comment.id] = index

    roots: list[CommentNode] = []
    parent_of: dict[int, CommentNode] = {}
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_comment_id) if comment.parent_comment_id is not None else None
        if parent is None or parent is node or parent.comment.book_id != comment.book_id:
            roots.append(node)
        else:
            parent.children.append(node)
            parent_of[comment.id] = parent

    # Corrupt parent links can form a loop with no root above it; cut each
    # loop at its oldest member so every comment stays reachable.
    reached = _reachable_ids(roots)
    if len(reached) < len(nodes):
        for comment in comments:
            if comment.id in reached:
                continue
            node = nodes[comment.id]
            parent_of.pop(comment.id).children.remove(node)
            roots.append(node)
            reached |= _reachable_ids([node])
        roots.sort(key=lambda node: position[node.comment.id])

    return roots


def _reachable_ids(roots: Iterable[CommentNode]) -> set[int]:
    seen: set[int] = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        seen.add(node.comment.id)
        stack.extend(node.children)
    return seen


def flatten_tree(
    roots: Iterable[CommentNode],
) -> Iterator[tuple[CommentNode, CommentNode | None, int]]:
    """
    Yield `(node, parent, depth)` for every node, parents before children.

    Roots have no parent and depth 0. Siblings keep their creation order.
    """
    stack: list[tuple[CommentNode, CommentNode | None, int]] = [
        (root, None, 0) for root in reversed(list(roots))
    ]
    while stack:
        node, parent, depth = stack.pop()
        yield node, parent, depth
        stack.extend((child, node, depth + 1) for child in reversed(node.children))


def walk_tree(roots: Iterable[CommentNode]) -> Iterator[CommentNode]:
    """Yield every node of the forest, parents before children."""
    for node, _parent, _depth in flatten_tree(roots):
        yield node


# =============================================================================
# Queries
# =============================================================================


def list_book_comments(db: Session, book_id: int) -> list[Comment]:
    """All comments of a book, oldest first."""
    stmt = (
        select(Comment)
        .where(Comment.book_id == book_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def count_comments(db: Session, book_id: int) -> int:
    """Top-level comments plus replies at any depth."""
    stmt = select(func.count(Comment.id)).where(Comment.book_id == book_id)
    return db.execute(stmt).scalar() or 0


def count_comments_by_book(db: Session, book_ids: Iterable[int]) -> dict[int, int]:
    ids = list(book_ids)
    counts = dict.fromkeys(ids, 0)
    if not ids:
        return counts

    stmt = (
        select(Comment.book_id, func.count(Comment.id))
        .where(Comment.book_id.in_(ids))
        .group_by(Comment.book_id)
    )
    counts.update(dict(db.execute(stmt).all()))
    return counts


# =============================================================================
# Writes
# =============================================================================


def create_comment(
    db: Session,
    book_id: int,
    identity: IdentityToken,
    author_name: str,
    content: str,
    parent_comment_id: int | None = None,
) -> Comment:
    """
    Post a comment, or a reply when parent_comment_id is given.

    Raises:
        UnknownTargetError: Book does not exist
        ValidationError: Empty/oversized content, or a parent that does not
            exist or belongs to another book
    """
    if db.get(Book, book_id) is None:
        raise UnknownTargetError("Book", book_id)

    content = content.strip()
    if not content:
        raise ValidationError("Comment content cannot be empty")
    if len(content) > settings.comment_max_length:
        raise ValidationError(
            f"Comment content must be at most {settings.comment_max_length} characters"
        )

    if parent_comment_id is not None:
        parent = db.get(Comment, parent_comment_id)
        if parent is None:
            raise ValidationError(f"Parent comment {parent_comment_id} not found")
        if parent.book_id != book_id:
            raise ValidationError("Parent comment belongs to a different book")

    comment = Comment(
        book_id=book_id,
        parent_comment_id=parent_comment_id,
        author_identity=identity.value,
        user_id=identity.user_id,
        author_name=author_name,
        content=content,
    )
    with atomic_write(db, f"comment on book {book_id}"):
        db.add(comment)

    db.refresh(comment)
    logger.info(
        f"Comment {comment.id} created on book {book_id}"
        + (f" in reply to {parent_comment_id}" if parent_comment_id else "")
    )
    return comment


def delete_comment(db: Session, comment_id: int, user: User) -> int:
    """
    Delete a comment and its likes. Replies stay and surface as roots.

    Returns:
        The book id the comment belonged to

    Raises:
        UnknownTargetError: Comment does not exist
        PermissionDeniedError: User is neither the author nor a superuser
    """
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise UnknownTargetError("Comment", comment_id)
    if comment.user_id != user.id and not user.is_superuser:
        raise PermissionDeniedError("You can only delete your own comments")

    book_id = comment.book_id
    with atomic_write(db, f"deletion of comment {comment_id}"):
        db.delete(comment)

    logger.info(f"Comment {comment_id} deleted by user {user.id}")
    return book_id
