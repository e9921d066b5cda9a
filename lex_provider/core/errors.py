from __future__ import annotations

from typing import Optional

from botocore.exceptions import ClientError

NOT_FOUND_CODE = "NotFoundException"
CONFLICT_CODE = "ConflictException"


class LexProviderError(Exception):
    """Base class for every error raised by the provider."""


class RemoteServiceError(LexProviderError):
    """A Lex model-building call failed."""

    def __init__(
        self,
        *,
        operation: str,
        resource_id: str,
        code: str,
        message: str,
    ) -> None:
        self.operation = operation
        self.resource_id = resource_id
        self.code = code
        self.message = message
        super().__init__(f"{operation} {resource_id!r} failed: {code}: {message}")


class ResourceNotFoundError(RemoteServiceError):
    """The remote side has no resource with the requested identity."""


class ResourceConflictError(RemoteServiceError):
    """A concurrent build, update or delete is in progress remotely."""


class RetryTimeoutError(LexProviderError):
    """A retried operation was still failing when its deadline passed."""

    def __init__(
        self,
        description: str,
        timeout: float,
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.description = description
        self.timeout = timeout
        self.last_error = last_error
        detail = f"timeout after {timeout:g}s: {description}"
        if last_error is not None:
            detail = f"{detail} (last error: {last_error})"
        super().__init__(detail)


class ResourceOperationError(LexProviderError):
    """A lifecycle operation failed; wraps the underlying cause with the resource identity."""

    def __init__(
        self, *, kind: str, action: str, resource_id: str, cause: BaseException
    ) -> None:
        self.kind = kind
        self.action = action
        self.resource_id = resource_id
        self.cause = cause
        super().__init__(f"error {action} {kind} {resource_id}: {cause}")


class SingleObjectError(LexProviderError, ValueError):
    """A single-cardinality nested block did not hold exactly one item."""

    def __init__(self, field: str, count: int) -> None:
        self.field = field
        self.count = count
        super().__init__(
            f"'{field}' must contain exactly one item, got {count}"
        )


class InvalidImportIdError(LexProviderError, ValueError):
    """An import identifier did not follow the expected format."""

    def __init__(self, identifier: str, expected: str) -> None:
        self.identifier = identifier
        self.expected = expected
        super().__init__(
            f"invalid Lex resource id {identifier!r}, expected {expected}"
        )


def classify_client_error(
    exc: ClientError, *, operation: str, resource_id: str
) -> RemoteServiceError:
    """Map a botocore ``ClientError`` to the provider error taxonomy."""
    error = exc.response.get("Error", {}) if exc.response else {}
    code = error.get("Code", "Unknown")
    message = error.get("Message", str(exc))

    if code == NOT_FOUND_CODE:
        error_cls = ResourceNotFoundError
    elif code == CONFLICT_CODE:
        error_cls = ResourceConflictError
    else:
        error_cls = RemoteServiceError
    return error_cls(
        operation=operation, resource_id=resource_id, code=code, message=message
    )


def is_conflict(exc: BaseException) -> bool:
    return isinstance(exc, ResourceConflictError)


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, ResourceNotFoundError)
