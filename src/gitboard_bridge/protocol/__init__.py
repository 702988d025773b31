"""Host <-> view message protocol.

Defines the envelope protocol spoken between the privileged host and the
sandboxed view over a single untyped channel.

Key concepts:
- Envelopes: `{"type": ..., "payload": ...}` dicts on the wire
- Requests: view -> host, routed by `type` to a registered handler
- Responses: one per request, type derived from the request type
- Events: unsolicited host -> view notifications
- Errors: `{"type": "error", "payload": {code, message, requestType}}`

Responses are correlated with requests by type only; there is no request id.
"""

from .context import HandlerContext, InMemoryMemento, InMemorySecretStorage, Memento, SecretStorage
from .errors import (
    BridgeError,
    ErrorCode,
    InvalidEnvelopeError,
    ProtocolContractError,
    ProtocolError,
    RemoteError,
    UnknownRequestTypeError,
)
from .handler import MessageProtocol
from .messages import (
    ERROR_TYPE,
    Envelope,
    ErrorPayload,
    ErrorResponse,
    EventType,
    RequestType,
    ResponseType,
    decode_envelope,
    is_error_response,
    is_event_message,
    is_request_message,
    is_response_message,
)
from .registry import HandlerEntry, HandlerKind, HandlerRegistry
from .requests import REQUEST_MODELS, as_typed_request, decode_request
from .responses import (
    RESPONSE_SUFFIX,
    RESPONSE_TYPE_MAP,
    convention_response_type,
    create_convention_response,
    create_error_response,
    create_response,
    response_type_for,
)

__all__ = [
    # Dispatch
    "MessageProtocol",
    "HandlerContext",
    "Memento",
    "SecretStorage",
    "InMemoryMemento",
    "InMemorySecretStorage",
    "HandlerRegistry",
    "HandlerEntry",
    "HandlerKind",
    # Envelopes
    "ERROR_TYPE",
    "Envelope",
    "ErrorPayload",
    "ErrorResponse",
    "EventType",
    "RequestType",
    "ResponseType",
    "REQUEST_MODELS",
    "as_typed_request",
    "decode_envelope",
    "decode_request",
    "is_error_response",
    "is_event_message",
    "is_request_message",
    "is_response_message",
    # Responses
    "RESPONSE_SUFFIX",
    "RESPONSE_TYPE_MAP",
    "convention_response_type",
    "create_convention_response",
    "create_error_response",
    "create_response",
    "response_type_for",
    # Errors
    "BridgeError",
    "ErrorCode",
    "InvalidEnvelopeError",
    "ProtocolContractError",
    "ProtocolError",
    "RemoteError",
    "UnknownRequestTypeError",
]
