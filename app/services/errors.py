"""
Backend Error Translation

Wraps Supabase/PostgREST failures in a single exception type and adds a
friendlier hint for the error codes operators actually hit.
"""

from typing import Optional

from postgrest.exceptions import APIError

# PostgREST / Postgres codes worth explaining
PERMISSION_DENIED_CODES = {"PGRST116", "42501"}
RELATION_MISSING_CODES = {"42P01"}


class BackendError(Exception):
    """A query against the hosted backend failed"""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    @property
    def hint(self) -> Optional[str]:
        return hint_for_code(self.code, self.message)

    def describe(self) -> str:
        """Raw message plus hint, for UI status messages"""
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class PartRequestValidationError(ValueError):
    """Part cost request rejected before reaching the backend"""


class PartRequestNotFoundError(LookupError):
    """No part cost request with the given id"""


class PermissionDeniedError(Exception):
    """Signed-in user lacks the capability for an action"""


class NotAuthenticatedError(Exception):
    """No signed-in user"""


def hint_for_code(code: Optional[str], message: str = "") -> Optional[str]:
    """Friendly explanation for known backend error codes"""
    lowered = (message or "").lower()
    if code in PERMISSION_DENIED_CODES or "row-level security" in lowered:
        return "permission denied: check row level security policies or use the service role key"
    if code in RELATION_MISSING_CODES:
        return "relation missing: check that the database schema is set up"
    if "column" in lowered and "does not exist" in lowered:
        return "column mismatch: check the database schema"
    if "duplicate key" in lowered or "unique constraint" in lowered:
        return "duplicate data: some records already exist"
    return None


def to_backend_error(error: Exception) -> BackendError:
    """Convert a client exception into a BackendError"""
    if isinstance(error, BackendError):
        return error
    if isinstance(error, APIError):
        return BackendError(
            message=error.message or str(error),
            code=error.code,
            details=error.details,
        )
    return BackendError(message=str(error))
