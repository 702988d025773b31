"""Envelope definitions for the host <-> view message protocol.

Every message crossing the channel is an envelope: a `type` discriminator plus
an optional `payload` whose shape depends on the type.

Kinds of envelope:
- Requests: view -> host, `type` names an operation
- Responses: host -> view, `type` derived from the request type
- Events: host -> view, unsolicited notifications
- Errors: host -> view, `type` is always "error"

Example (request):
    {"type": "git/getLog", "payload": {"limit": 50}}

Example (error):
    {
        "type": "error",
        "payload": {
            "code": "HANDLER_NOT_FOUND",
            "message": "No handler for git/getLog",
            "requestType": "git/getLog"
        }
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import InvalidEnvelopeError

ERROR_TYPE = "error"


class RequestType(str, Enum):
    """Closed set of request types understood by the host."""

    # Repository
    REPO_GET_INFO = "repo/getInfo"
    REPO_GET_STATUS = "repo/getStatus"

    # Log / commit
    GIT_GET_LOG = "git/getLog"
    GIT_COMMIT = "git/commit"
    GIT_AMEND = "git/amend"

    # Branches
    GIT_GET_BRANCHES = "git/getBranches"
    GIT_CHECKOUT = "git/checkout"
    GIT_CREATE_BRANCH = "git/createBranch"
    GIT_DELETE_BRANCH = "git/deleteBranch"

    # Merge / rebase
    GIT_MERGE = "git/merge"
    GIT_REBASE = "git/rebase"
    GIT_CHERRY_PICK = "git/cherryPick"

    # Staging
    GIT_STAGE = "git/stage"
    GIT_UNSTAGE = "git/unstage"

    # Stash
    GIT_STASH_LIST = "git/stashList"
    GIT_STASH_CREATE = "git/stashCreate"
    GIT_STASH_APPLY = "git/stashApply"
    GIT_STASH_DROP = "git/stashDrop"

    # Azure Repos / Boards / Pipelines
    AZURE_GET_PRS = "azure/getPRs"
    AZURE_CREATE_PR = "azure/createPR"
    AZURE_GET_WORK_ITEMS = "azure/getWorkItems"
    AZURE_LINK_WORK_ITEM = "azure/linkWorkItem"
    AZURE_GET_PIPELINE_STATUS = "azure/getPipelineStatus"
    AZURE_GET_POLICY_CONFIGURATIONS = "azure/getPolicyConfigurations"
    AZURE_GET_POLICY_EVALUATIONS = "azure/getPolicyEvaluations"
    AZURE_GET_BUILD_DETAILS = "azure/getBuildDetails"
    AZURE_GET_TEST_RESULTS = "azure/getTestResults"
    AZURE_GET_CODE_COVERAGE = "azure/getCodeCoverage"
    AZURE_TRIGGER_REBUILD = "azure/triggerRebuild"

    # GitHub
    GITHUB_GET_PRS = "github/getPRs"


class ResponseType(str, Enum):
    """Closed set of response types produced by the declared mapping."""

    REPO_INFO = "repo/info"
    REPO_STATUS = "repo/status"
    GIT_LOG = "git/log"
    GIT_BRANCHES = "git/branches"
    GIT_STASHES = "git/stashes"
    GIT_SUCCESS = "git/success"
    AZURE_PRS = "azure/prs"
    AZURE_WORK_ITEMS = "azure/workItems"
    AZURE_PIPELINE_STATUS = "azure/pipelineStatus"
    AZURE_POLICY_CONFIGURATIONS = "azure/policyConfigurations"
    AZURE_POLICY_EVALUATIONS = "azure/policyEvaluations"
    AZURE_BUILD_DETAILS = "azure/buildDetails"
    AZURE_TEST_RESULTS = "azure/testResults"
    AZURE_CODE_COVERAGE = "azure/codeCoverage"
    AZURE_REBUILD_TRIGGERED = "azure/rebuildTriggered"
    AZURE_PR_CREATED = "azure/prCreated"
    AZURE_WORK_ITEM_LINKED = "azure/workItemLinked"
    GITHUB_PRS = "github/prs"


class EventType(str, Enum):
    """Unsolicited host -> view notifications."""

    GIT_CHANGED = "git/changed"
    GIT_CONFLICT = "git/conflict"


# Enum members hash by name, so membership checks use the wire strings
REQUEST_TYPES = frozenset(t.value for t in RequestType)
RESPONSE_TYPES = frozenset(t.value for t in ResponseType)
EVENT_TYPES = frozenset(t.value for t in EventType)


def type_value(message_type: str | Enum) -> str:
    """Normalize a message type (enum member or string) to its wire string."""
    return message_type.value if isinstance(message_type, Enum) else message_type


# Serializes anything pydantic can infer (models, dataclasses, datetimes, sets,
# Decimals) to JSON-safe values; raises PydanticSerializationError otherwise
_WIRE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def _dump_value(value: Any) -> Any:
    return _WIRE_ADAPTER.dump_python(value, mode="json", by_alias=True, exclude_none=True)


class Envelope(BaseModel):
    """A message crossing the channel.

    Envelopes are immutable. Top-level fields other than `type` and `payload`
    are kept as extras so flat envelopes like
    `{"type": "git.getLog", "limit": 100}` survive intact.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = Field(min_length=1)
    payload: Any = None

    @property
    def extras(self) -> dict[str, Any]:
        """Top-level fields beyond `type` and `payload`."""
        return dict(self.model_extra or {})

    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict form sent across the transport.

        A missing (None) payload is omitted.

        Raises:
            PydanticSerializationError: If a value has no JSON representation
        """
        data: dict[str, Any] = {"type": self.type}
        if self.payload is not None:
            data["payload"] = _dump_value(self.payload)
        for key, value in (self.model_extra or {}).items():
            data[key] = _dump_value(value)
        return data

    @classmethod
    def create(cls, message_type: str | Enum, payload: Any = None) -> Envelope:
        """Factory accepting enum members or strings."""
        return cls(type=type_value(message_type), payload=payload)


class ErrorPayload(BaseModel):
    """Payload of an error envelope."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str
    message: str
    request_type: str | None = Field(default=None, alias="requestType")


class ErrorResponse(Envelope):
    """Error envelope sent in place of a response."""

    type: Literal["error"] = ERROR_TYPE
    payload: ErrorPayload

    @property
    def code(self) -> str:
        return self.payload.code

    @property
    def message(self) -> str:
        return self.payload.message

    @property
    def request_type(self) -> str | None:
        return self.payload.request_type


def _read_type(raw: Mapping[str, Any]) -> str | None:
    value = raw.get("type")
    if isinstance(value, str) and value:
        return value
    return None


def decode_envelope(raw: Any) -> Envelope:
    """Validate an untyped inbound message into an envelope.

    Args:
        raw: Message as delivered by the channel (normally a dict)

    Returns:
        The decoded envelope (an ErrorResponse for `type == "error"`)

    Raises:
        InvalidEnvelopeError: If the message is not an object or has no
            usable `type`
    """
    if isinstance(raw, Envelope):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidEnvelopeError(f"Envelope must be an object, got {type(raw).__name__}")

    message_type = _read_type(raw)
    if message_type is None:
        raise InvalidEnvelopeError("Envelope is missing a non-empty string 'type'")

    model = ErrorResponse if message_type == ERROR_TYPE else Envelope
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidEnvelopeError(f"Invalid envelope: {e}", request_type=message_type) from e


def message_type_of(message: Envelope | Mapping[str, Any]) -> str | None:
    """Read the `type` of an envelope or wire dict."""
    if isinstance(message, Envelope):
        return message.type
    return _read_type(message)


# =============================================================================
# Type guards
# =============================================================================


def is_request_message(message: Envelope | Mapping[str, Any]) -> bool:
    """True if the message is one of the closed request types."""
    return message_type_of(message) in REQUEST_TYPES


def is_response_message(message: Envelope | Mapping[str, Any]) -> bool:
    """True if the message is one of the declared response types."""
    return message_type_of(message) in RESPONSE_TYPES


def is_event_message(message: Envelope | Mapping[str, Any]) -> bool:
    return message_type_of(message) in EVENT_TYPES


def is_error_response(message: Envelope | Mapping[str, Any]) -> bool:
    return message_type_of(message) == ERROR_TYPE
