"""Error codes and exceptions raised by the assignment engine and store."""

import enum


class ErrorCode(str, enum.Enum):
    """Machine-readable error codes returned to clients."""

    TEAM_EXISTS = "TEAM_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    PR_EXISTS = "PR_EXISTS"
    PR_MERGED = "PR_MERGED"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    NO_CANDIDATE = "NO_CANDIDATE"
    BAD_REQUEST = "BAD_REQUEST"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AssignmentError(Exception):
    """Base for refused operations; carries the code reported to clients."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TeamExistsError(AssignmentError):
    """Team name is already taken."""

    code = ErrorCode.TEAM_EXISTS


class NotFoundError(AssignmentError):
    """Referenced team, user, author or PR does not exist."""

    code = ErrorCode.NOT_FOUND


class PRExistsError(AssignmentError):
    """Pull request id is already taken."""

    code = ErrorCode.PR_EXISTS


class PRMergedError(AssignmentError):
    """Reviewer mutation attempted on a merged pull request."""

    code = ErrorCode.PR_MERGED


class NotAssignedError(AssignmentError):
    """User is not a reviewer of the pull request."""

    code = ErrorCode.NOT_ASSIGNED


class NoCandidateError(AssignmentError):
    """No active replacement candidate is available."""

    code = ErrorCode.NO_CANDIDATE


class StorageError(Exception):
    """Raised when the underlying store fails (connection, constraint, commit)."""

    pass
