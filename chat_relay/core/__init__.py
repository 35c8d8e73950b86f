from .errors import (
    AuthenticationFailed,
    ChatRelayError,
    ConfigurationError,
    MalformedResponse,
    NetworkUnavailable,
    RateLimited,
    RequestRejected,
    ServerError,
    TransportError,
)
from .history import SYSTEM_PROMPT, ChatTurn, ConversationHistory, Role
from .request import ModelConfig, build, encode
from .window import evicted, select, validate_max_turns

__all__ = [
    "AuthenticationFailed",
    "ChatRelayError",
    "ChatTurn",
    "ConfigurationError",
    "ConversationHistory",
    "MalformedResponse",
    "ModelConfig",
    "NetworkUnavailable",
    "RateLimited",
    "RequestRejected",
    "Role",
    "SYSTEM_PROMPT",
    "ServerError",
    "TransportError",
    "build",
    "encode",
    "evicted",
    "select",
    "validate_max_turns",
]
