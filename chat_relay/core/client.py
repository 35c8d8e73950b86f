"""OpenAI client wrapper: one chat completion per call, streamed or batched."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import httpx
import openai
from openai import OpenAI  # type: ignore

from .errors import (
    AuthenticationFailed,
    MalformedResponse,
    NetworkUnavailable,
    RateLimited,
    RequestRejected,
    ServerError,
    TransportError,
)
from .request import RequestPayload, encode

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[str], None]


@dataclass(frozen=True)
class AssistantReply:
    content: str
    model: str
    finish_reason: Optional[str] = None


def create_openai_client(
    api_key: str,
    *,
    base_url: Optional[str] = None,
    timeout: float = 60.0,
) -> OpenAI:
    """Build the SDK client. Retries are disabled; failures go straight to the REPL."""
    client_kwargs: dict = {
        "api_key": api_key,
        "timeout": httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        "max_retries": 0,
    }
    if base_url:
        client_kwargs["base_url"] = base_url
    return OpenAI(**client_kwargs)  # type: ignore[arg-type]


def _str_attr(obj: Any, name: str) -> Optional[str]:
    value = getattr(obj, name, None)
    return value if isinstance(value, str) else None


def translate_error(exc: openai.OpenAIError) -> TransportError:
    """Map an SDK exception onto our transport error taxonomy."""
    status = getattr(exc, "status_code", None)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AuthenticationFailed(str(exc), status_code=status)
    if isinstance(exc, openai.RateLimitError):
        return RateLimited(str(exc), status_code=status)
    if isinstance(exc, openai.APIConnectionError):
        # APITimeoutError is a subclass, so timeouts land here too
        return NetworkUnavailable(str(exc))
    if isinstance(exc, openai.APIResponseValidationError):
        return MalformedResponse("a response matching the chat completion schema", str(exc))
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code >= 500:
            return ServerError(str(exc), status_code=exc.status_code)
        return RequestRejected(str(exc), status_code=exc.status_code)
    return TransportError(str(exc))


class ChatTransport:
    """Thin wrapper around the OpenAI Python SDK hiding streaming details."""

    def __init__(self, client: OpenAI):
        self.client = client

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _reply_from_completion(completion: Any, requested_model: str) -> AssistantReply:
        choices = getattr(completion, "choices", None)
        if not choices:
            raise MalformedResponse("at least one completion choice", choices)

        first = choices[0]
        message = getattr(first, "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise MalformedResponse("a text message in the first choice", message)

        return AssistantReply(
            content=content,
            model=_str_attr(completion, "model") or requested_model,
            finish_reason=_str_attr(first, "finish_reason"),
        )

    @staticmethod
    def _reply_from_stream(
        stream: Any, requested_model: str, on_delta: Optional[DeltaCallback]
    ) -> AssistantReply:
        accumulator: List[str] = []
        model: Optional[str] = None
        finish_reason: Optional[str] = None
        chunks_seen = 0

        for chunk in stream:
            chunks_seen += 1
            model = model or _str_attr(chunk, "model")
            # Usage-only chunks carry no choices
            if not getattr(chunk, "choices", None):
                continue
            choice = chunk.choices[0]
            finish_reason = _str_attr(choice, "finish_reason") or finish_reason
            delta = getattr(choice, "delta", None)
            text = getattr(delta, "content", None)
            if not isinstance(text, str) or not text:
                continue
            accumulator.append(text)
            if on_delta is not None:
                on_delta(text)

        if not accumulator:
            raise MalformedResponse(
                "at least one content delta in the stream", f"{chunks_seen} chunk(s) without text"
            )

        return AssistantReply(
            content="".join(accumulator),
            model=model or requested_model,
            finish_reason=finish_reason,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send(self, payload: RequestPayload, on_delta: Optional[DeltaCallback] = None) -> AssistantReply:
        """Send *payload* and return the first choice's text.

        When the payload asks for streaming, every text fragment is passed to
        *on_delta* as soon as it arrives. Raises a :class:`TransportError`
        subclass on failure; nothing is retried here.
        """
        requested_model = payload["model"]
        logger.debug(
            "sending %d message(s) to %s (%d bytes, stream=%s)",
            len(payload["messages"]),
            requested_model,
            len(encode(payload)),
            bool(payload.get("stream")),
        )

        try:
            response = self.client.chat.completions.create(**payload)  # type: ignore[arg-type]
            if payload.get("stream"):
                reply = self._reply_from_stream(response, requested_model, on_delta)
            else:
                reply = self._reply_from_completion(response, requested_model)
        except openai.OpenAIError as exc:
            error = translate_error(exc)
            logger.warning("chat completion failed: %s", error.describe())
            raise error from exc
        except MalformedResponse as exc:
            logger.warning("chat completion failed: %s", exc.describe())
            raise
        except ValueError as exc:
            # the SDK lets json.JSONDecodeError through for non-JSON bodies and SSE lines
            error = MalformedResponse("a JSON chat completion body", str(exc))
            logger.warning("chat completion failed: %s", error.describe())
            raise error from exc

        logger.debug(
            "received %d character(s) from %s (finish_reason=%s)",
            len(reply.content),
            reply.model,
            reply.finish_reason,
        )
        return reply
