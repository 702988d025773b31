"""Error codes and exception types for the protocol layer.

Error codes are part of the wire contract: the string value of each member is
sent verbatim in the `code` field of error envelopes and must never change.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """All error codes that may appear in an error envelope."""

    # General
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    HANDLER_NOT_FOUND = "HANDLER_NOT_FOUND"
    HANDLER_ERROR = "HANDLER_ERROR"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"

    # Repository
    REPO_NOT_FOUND = "REPO_NOT_FOUND"
    REPO_NOT_INITIALIZED = "REPO_NOT_INITIALIZED"

    # Git operations
    GIT_ERROR = "GIT_ERROR"
    BRANCH_EXISTS = "BRANCH_EXISTS"
    BRANCH_NOT_FOUND = "BRANCH_NOT_FOUND"
    CHECKOUT_FAILED = "CHECKOUT_FAILED"
    MERGE_CONFLICT = "MERGE_CONFLICT"
    REBASE_CONFLICT = "REBASE_CONFLICT"
    COMMIT_FAILED = "COMMIT_FAILED"
    STASH_FAILED = "STASH_FAILED"

    # Azure DevOps
    AZURE_AUTH_FAILED = "AZURE_AUTH_FAILED"
    AZURE_API_ERROR = "AZURE_API_ERROR"
    AZURE_NOT_CONFIGURED = "AZURE_NOT_CONFIGURED"
    PR_NOT_FOUND = "PR_NOT_FOUND"
    WORK_ITEM_NOT_FOUND = "WORK_ITEM_NOT_FOUND"
    PIPELINE_NOT_FOUND = "PIPELINE_NOT_FOUND"

    # GitHub
    GITHUB_AUTH_FAILED = "GITHUB_AUTH_FAILED"
    GITHUB_API_ERROR = "GITHUB_API_ERROR"


GENERAL_CODES = frozenset(
    {
        ErrorCode.UNKNOWN_ERROR,
        ErrorCode.HANDLER_NOT_FOUND,
        ErrorCode.HANDLER_ERROR,
        ErrorCode.INVALID_PAYLOAD,
    }
)


def code_value(code: ErrorCode | str) -> str:
    """Return the wire string for an error code."""
    return code.value if isinstance(code, ErrorCode) else code


class BridgeError(Exception):
    """Base class for all errors raised by gitboard_bridge."""


class ProtocolContractError(BridgeError):
    """A caller broke the protocol contract (a programming mistake).

    Contract errors are raised synchronously to the calling code and are
    never sent over the transport.
    """


class UnknownRequestTypeError(ProtocolContractError, KeyError):
    """Raised by the declared-mapping path for an unmapped request type."""

    def __init__(self, request_type: str):
        self.request_type = request_type
        super().__init__(f"Unknown request type: {request_type}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidEnvelopeError(BridgeError):
    """An inbound message could not be decoded into an envelope.

    Attributes:
        request_type: The `type` field, when one could be read
    """

    def __init__(self, message: str, request_type: str | None = None):
        self.request_type = request_type
        super().__init__(message)


class ProtocolError(BridgeError):
    """Domain failure raised by a handler with a specific error code.

    The dispatcher reports `code` instead of the generic HANDLER_ERROR.
    """

    def __init__(self, code: ErrorCode | str, message: str):
        self.code = code_value(code)
        self.message = message
        super().__init__(message)


class RemoteError(BridgeError):
    """Error envelope received by the view-side client."""

    def __init__(self, code: str, message: str, request_type: str | None = None):
        self.code = code
        self.message = message
        self.request_type = request_type
        super().__init__(f"{code}: {message}")
