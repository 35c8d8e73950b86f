"""Window policy: which part of the history is sent with each request.

If the history fits in ``max_turns`` it is sent as-is. Otherwise the leading
system turn (when present) is kept and the remaining slots are filled with the
most recent turns, oldest first. Older context is simply dropped; see
:mod:`chat_relay.core.summary` for the optional rolling summary that keeps a
digest of it.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from .errors import ConfigurationError
from .history import ChatTurn, Role


def _has_leading_system(history: Sequence[ChatTurn]) -> bool:
    return bool(history) and history[0].role is Role.SYSTEM


def validate_max_turns(max_turns: int, *, with_system: bool = False) -> int:
    """Reject window sizes that can never produce a usable request."""
    if not isinstance(max_turns, int) or isinstance(max_turns, bool):
        raise ConfigurationError(f"max turns must be an integer, got {max_turns!r}")
    minimum = 2 if with_system else 1
    if max_turns < minimum:
        if with_system:
            raise ConfigurationError(
                f"max turns must be at least {minimum} when a system prompt is set "
                f"(got {max_turns})"
            )
        raise ConfigurationError(f"max turns must be at least {minimum} (got {max_turns})")
    return max_turns


def select(history: Sequence[ChatTurn], max_turns: int) -> Tuple[ChatTurn, ...]:
    if len(history) <= max_turns:
        return tuple(history)

    if _has_leading_system(history):
        return (history[0],) + tuple(history[len(history) - (max_turns - 1):])
    return tuple(history[len(history) - max_turns:])


def evicted(history: Sequence[ChatTurn], max_turns: int) -> Tuple[ChatTurn, ...]:
    """Return the turns :func:`select` leaves out, oldest first."""
    if len(history) <= max_turns:
        return ()

    if _has_leading_system(history):
        return tuple(history[1:len(history) - (max_turns - 1)])
    return tuple(history[:len(history) - max_turns])
