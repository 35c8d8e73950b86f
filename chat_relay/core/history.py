"""In-memory conversation history."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

# A single, persistent system message ensures the model is aware that it is
# interacting in a terminal context and should optimise readability for that
# form factor.
SYSTEM_PROMPT = (
    "You are an AI assistant running in a terminal (CLI) environment. "
    "Optimise all answers for 80-column readability, prefer plain text, "
    "ASCII art or concise bullet lists over heavy markup, and wrap code "
    "snippets in fenced blocks when helpful. Do not emit trailing spaces or "
    "control characters."
)


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """One role-tagged message."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatTurn":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "ChatTurn":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "ChatTurn":
        return cls(Role.ASSISTANT, content)

    def to_wire(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_wire(cls, item: Dict[str, str]) -> "ChatTurn":
        # Role() raises ValueError for anything outside system/user/assistant
        return cls(Role(item["role"]), item["content"])


class ConversationHistory:
    """Chronological list of turns owned by the REPL for the process lifetime.

    Turns are only ever appended; what gets sent to the model is decided by
    :func:`chat_relay.core.window.select`, never by mutating this list.
    """

    def __init__(self, system_prompt: Optional[str] = SYSTEM_PROMPT) -> None:
        self._turns: List[ChatTurn] = []
        if system_prompt:
            self._turns.append(ChatTurn.system(system_prompt))

    def append(self, turn: ChatTurn) -> None:
        self._turns.append(turn)

    def add_user_message(self, content: str) -> ChatTurn:
        turn = ChatTurn.user(content)
        self.append(turn)
        return turn

    def add_assistant_message(self, content: str) -> ChatTurn:
        turn = ChatTurn.assistant(content)
        self.append(turn)
        return turn

    def all(self) -> Tuple[ChatTurn, ...]:
        return tuple(self._turns)

    @property
    def system_turn(self) -> Optional[ChatTurn]:
        if self._turns and self._turns[0].role is Role.SYSTEM:
            return self._turns[0]
        return None

    def last(self) -> Optional[ChatTurn]:
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ChatTurn]:
        return iter(tuple(self._turns))
