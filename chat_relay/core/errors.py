"""Exception hierarchy shared by the configuration layer, transport and REPL."""

from __future__ import annotations

from typing import Any, Optional


class ChatRelayError(Exception):
    """Base class for every error raised by chat_relay itself."""


class ConfigurationError(ChatRelayError):
    """Invalid or missing startup configuration. Always fatal."""


# ---------------------------------------------------------------------------
# Transport errors (recoverable – the REPL reports them and keeps going)
# ---------------------------------------------------------------------------


class TransportError(ChatRelayError):
    """A single request/response cycle failed."""

    label = "request failed"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def describe(self) -> str:
        """One-line message suitable for showing to the user."""
        suffix = f" (HTTP {self.status_code})" if self.status_code else ""
        return f"{self.label}{suffix}: {self}"


class AuthenticationFailed(TransportError):
    label = "authentication failed"


class RateLimited(TransportError):
    label = "rate limited"


class ServerError(TransportError):
    label = "server error"


class NetworkUnavailable(TransportError):
    label = "network unavailable"


class RequestRejected(TransportError):
    label = "request rejected"


class MalformedResponse(TransportError):
    """The endpoint answered, but not in the shape we expect."""

    label = "malformed response"

    def __init__(self, expected: str, received: Any) -> None:
        received_text = repr(received)
        if len(received_text) > 200:
            received_text = received_text[:197] + "..."
        super().__init__(f"expected {expected}, received {received_text}")
        self.expected = expected
        self.received = received
