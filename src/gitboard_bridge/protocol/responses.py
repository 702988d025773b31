"""Response envelope construction.

Two independent derivation strategies:

- Declared mapping: `create_response()` looks the request type up in the
  closed RESPONSE_TYPE_MAP. Some requests answer with a differently named
  response (`repo/getInfo` -> `repo/info`), and many share one
  (`git/commit` -> `git/success`).
- Convention: `convention_response_type()` appends ".response" to the request
  type. Used for handlers registered through `register_handler()`.

The two are deliberately not merged: they serve different call sites and each
determines wire-visible type names.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any

from .errors import ErrorCode, UnknownRequestTypeError, code_value
from .messages import Envelope, ErrorPayload, ErrorResponse, RequestType, ResponseType, type_value

RESPONSE_SUFFIX = ".response"

RESPONSE_TYPE_MAP: MappingProxyType[str, str] = MappingProxyType(
    {
        RequestType.REPO_GET_INFO.value: ResponseType.REPO_INFO.value,
        RequestType.REPO_GET_STATUS.value: ResponseType.REPO_STATUS.value,
        RequestType.GIT_GET_LOG.value: ResponseType.GIT_LOG.value,
        RequestType.GIT_COMMIT.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_AMEND.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_GET_BRANCHES.value: ResponseType.GIT_BRANCHES.value,
        RequestType.GIT_CHECKOUT.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_CREATE_BRANCH.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_DELETE_BRANCH.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_MERGE.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_REBASE.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_CHERRY_PICK.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_STAGE.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_UNSTAGE.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_STASH_LIST.value: ResponseType.GIT_STASHES.value,
        RequestType.GIT_STASH_CREATE.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_STASH_APPLY.value: ResponseType.GIT_SUCCESS.value,
        RequestType.GIT_STASH_DROP.value: ResponseType.GIT_SUCCESS.value,
        RequestType.AZURE_GET_PRS.value: ResponseType.AZURE_PRS.value,
        RequestType.AZURE_CREATE_PR.value: ResponseType.AZURE_PR_CREATED.value,
        RequestType.AZURE_GET_WORK_ITEMS.value: ResponseType.AZURE_WORK_ITEMS.value,
        RequestType.AZURE_LINK_WORK_ITEM.value: ResponseType.AZURE_WORK_ITEM_LINKED.value,
        RequestType.AZURE_GET_PIPELINE_STATUS.value: ResponseType.AZURE_PIPELINE_STATUS.value,
        RequestType.AZURE_GET_POLICY_CONFIGURATIONS.value: (
            ResponseType.AZURE_POLICY_CONFIGURATIONS.value
        ),
        RequestType.AZURE_GET_POLICY_EVALUATIONS.value: (
            ResponseType.AZURE_POLICY_EVALUATIONS.value
        ),
        RequestType.AZURE_GET_BUILD_DETAILS.value: ResponseType.AZURE_BUILD_DETAILS.value,
        RequestType.AZURE_GET_TEST_RESULTS.value: ResponseType.AZURE_TEST_RESULTS.value,
        RequestType.AZURE_GET_CODE_COVERAGE.value: ResponseType.AZURE_CODE_COVERAGE.value,
        RequestType.AZURE_TRIGGER_REBUILD.value: ResponseType.AZURE_REBUILD_TRIGGERED.value,
        RequestType.GITHUB_GET_PRS.value: ResponseType.GITHUB_PRS.value,
    }
)


def response_type_for(request_type: str | Enum) -> str:
    """Declared response type for a request type.

    Raises:
        UnknownRequestTypeError: If the request type is not in the table
    """
    key = type_value(request_type)
    try:
        return RESPONSE_TYPE_MAP[key]
    except KeyError:
        raise UnknownRequestTypeError(key) from None


def create_response(request_type: str | Enum, payload: Any) -> Envelope:
    """Build the declared response for a request type.

    The payload is passed through unmodified.

    Raises:
        UnknownRequestTypeError: If the request type is not in the table.
            This is a programming error and is never sent over the wire.
    """
    return Envelope(type=response_type_for(request_type), payload=payload)


def convention_response_type(request_type: str | Enum) -> str:
    """Response type derived by suffix: `custom.action` -> `custom.action.response`."""
    return f"{type_value(request_type)}{RESPONSE_SUFFIX}"


def create_convention_response(request_type: str | Enum, payload: Any) -> Envelope:
    """Wrap a simplified handler's result."""
    return Envelope(type=convention_response_type(request_type), payload=payload)


def create_error_response(
    code: ErrorCode | str,
    message: str,
    request_type: str | Enum | None = None,
) -> ErrorResponse:
    """Build an error envelope.

    `request_type` is omitted from the wire form when not given.
    """
    return ErrorResponse(
        payload=ErrorPayload(
            code=code_value(code),
            message=message,
            request_type=type_value(request_type) if request_type is not None else None,
        )
    )
