"""Optional rolling summary of turns that fell out of the context window."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .history import ChatTurn, Role
from .request import ModelConfig, build

if TYPE_CHECKING:  # pragma: no cover
    from .client import ChatTransport

logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTIONS = (
    "You summarize conversations between a user and an AI assistant. Keep the "
    "summary short but include every relevant point; when in doubt, keep a "
    "detail rather than drop it."
)

SUMMARY_HEADING = "Summary of the earlier conversation:"


class RollingSummary:
    """Folds evicted turns into a model-written digest.

    ``absorbed`` counts how many evicted turns are already covered. Evicted
    turns always form a growing prefix of the non-system history, so the
    counter is enough to know which turns are new.
    """

    def __init__(self, transport: "ChatTransport", model: str = "gpt-4o") -> None:
        self.transport = transport
        self.model = model
        self.text: Optional[str] = None
        self.absorbed = 0

    def _prompt(self, turns: Sequence[ChatTurn]) -> str:
        if self.text:
            lines = [
                "Current summary:",
                self.text,
                "",
                "Add the following exchange to the summary, keeping as much of the "
                "existing information as possible:",
            ]
        else:
            lines = ["Summarize the following conversation in under 200 words:"]
        lines.extend(f"{turn.role.value}: {turn.content}" for turn in turns)
        lines.append("")
        lines.append("Reply with the updated summary only.")
        return "\n".join(lines)

    def update(self, evicted_turns: Sequence[ChatTurn]) -> bool:
        """Summarize evicted turns not yet absorbed. Returns True if it changed.

        Transport errors propagate unchanged and leave the state untouched so
        the same turns are retried next time.
        """
        new_turns = tuple(evicted_turns[self.absorbed:])
        if not new_turns:
            return False

        payload = build(
            [ChatTurn.system(SUMMARY_INSTRUCTIONS), ChatTurn.user(self._prompt(new_turns))],
            ModelConfig(model_name=self.model),
        )
        reply = self.transport.send(payload)
        self.text = reply.content.strip()
        self.absorbed += len(new_turns)
        logger.debug("summary now covers %d evicted turn(s)", self.absorbed)
        return True

    def apply(self, turns: Sequence[ChatTurn]) -> Tuple[ChatTurn, ...]:
        """Return *turns* with the summary merged into the leading system turn."""
        if not self.text:
            return tuple(turns)

        section = f"{SUMMARY_HEADING}\n{self.text}"
        if turns and turns[0].role is Role.SYSTEM:
            return (ChatTurn.system(f"{turns[0].content}\n\n{section}"),) + tuple(turns[1:])
        return (ChatTurn.system(section),) + tuple(turns)
