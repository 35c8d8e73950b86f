"""Serialize a windowed history into a Chat Completions request body."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .history import ChatTurn

RequestPayload = Dict[str, Any]


@dataclass(frozen=True)
class ModelConfig:
    """Model selection and generation parameters, fixed for the whole session."""

    model_name: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = False


def build(windowed: Sequence[ChatTurn], config: ModelConfig) -> RequestPayload:
    """Return the request body for *windowed* using *config*.

    Only parameters that were actually configured are included so that the
    endpoint's own defaults apply otherwise.
    """
    payload: RequestPayload = {
        "model": config.model_name,
        "messages": [turn.to_wire() for turn in windowed],
    }
    if config.temperature is not None:
        payload["temperature"] = config.temperature
    if config.max_tokens is not None:
        payload["max_tokens"] = config.max_tokens
    if config.stream:
        payload["stream"] = True
    return payload


def encode(payload: RequestPayload) -> bytes:
    """Canonical JSON encoding of *payload* (sorted keys, no whitespace)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )
