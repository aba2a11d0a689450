"""
Domain Exceptions

Errors raised by the service layer. Routers let them propagate; the
handler registered in main.create_app() turns them into JSON responses.

Taxonomy:
- ValidationError (400): malformed input, rating out of range, duplicate review
- UnknownTargetError (404): the book/comment/review id does not exist
- PermissionDeniedError (403): acting on someone else's content
- ConflictError (409): a concurrent write won the uniqueness race; retry once
- StoreUnavailable (503): the database could not be reached

Nothing in the core retries automatically; retrying is the caller's job.
"""

from fastapi import status


class BookNestError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookNestError):
    """Request is well-formed JSON but breaks a domain rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnknownTargetError(ValidationError):
    """The action references a target that does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, kind: str, target_id: int) -> None:
        super().__init__(f"{kind} with id {target_id} not found")
        self.kind = kind
        self.target_id = target_id


class PermissionDeniedError(BookNestError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(BookNestError):
    """Lost a race on a (target, identity) unique constraint."""

    status_code = status.HTTP_409_CONFLICT
    retryable = True


class StoreUnavailable(BookNestError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
