"""Terminal chat REPL built on top of an OpenAI-compatible endpoint."""
from __future__ import annotations

import logging
import readline  # noqa: F401 – side-effect: history & line editing
import signal
import sys
from enum import Enum, auto
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .config import DEFAULT_MAX_TURNS, build_parser, load_settings
from .core import (
    ChatTurn,
    ConfigurationError,
    ConversationHistory,
    ModelConfig,
    TransportError,
    build,
    evicted,
    select,
)
from .core.client import AssistantReply, ChatTransport, create_openai_client
from .core.summary import RollingSummary
from .utils import (
    Ansi,
    ASSISTANT_LABEL,
    ERROR_LABEL,
    ROLE_LABELS,
    USER_LABEL,
    WARNING_LABEL,
    Spinner,
    configure_logging,
    console,
    err_console,
)

logger = logging.getLogger(__name__)


class SessionState(Enum):
    AWAITING_INPUT = auto()
    SENDING = auto()
    AWAITING_REPLY = auto()
    DISPLAYING = auto()
    TERMINATED = auto()


# ---------------------------------------------------------------------------
# REPL
# ---------------------------------------------------------------------------


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(
        self,
        history: ConversationHistory,
        transport: ChatTransport,
        model_config: ModelConfig,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        summary: Optional[RollingSummary] = None,
        output: Optional[Console] = None,
    ):
        self.history = history
        self.client = transport
        self.model_config = model_config
        self.max_turns = max_turns
        self.summary = summary
        self.console = output or console
        self.state = SessionState.AWAITING_INPUT

    # ---------------- Context ----------------

    def _effective_history(self) -> Tuple[ChatTurn, ...]:
        turns = self.history.all()
        if self.summary is not None:
            turns = self.summary.apply(turns)
        return turns

    def context(self) -> Tuple[ChatTurn, ...]:
        """The turns that are sent to the model for the current history."""
        return select(self._effective_history(), self.max_turns)

    def _refresh_summary(self) -> None:
        if self.summary is None:
            return
        dropped = evicted(self._effective_history(), self.max_turns)
        try:
            self.summary.update(dropped)
        except TransportError as exc:
            # keep the old summary; the same turns are retried next exchange
            self.console.print(f"{WARNING_LABEL}: could not update summary: {escape(exc.describe())}")

    # ---------------- Output helpers ----------------

    def _print_turns(self, title: str, turns: List[ChatTurn]) -> None:
        self.console.print(Ansi.style(title, Ansi.BOLD, Ansi.FG_MAGENTA))
        if not turns:
            self.console.print("(empty)")
            return
        for turn in turns:
            label = ROLE_LABELS[turn.role.value]
            self.console.print(f"{label}> {escape(turn.content)}")

    def _report_error(self, exc: TransportError) -> None:
        self.console.print(f"{ERROR_LABEL}: {escape(exc.describe())}")

    def terminate(self, message: str = "Termination signal received.") -> None:
        self.state = SessionState.TERMINATED
        self.console.print(message, markup=False)

    # ---------------- Command handling ---------------

    def handle_command(self, line: str) -> bool:
        """Handle slash commands. Return False to exit REPL."""

        parts = line.strip().split()
        if not parts:
            return True

        cmd = parts[0].lower()

        if cmd == "/help":
            from . import __doc__ as _doc  # lazy import to avoid circularity

            self.console.print(escape(_doc or "(no help available)"))

        elif cmd == "/exit":
            self.terminate("Bye!")
            return False

        elif cmd == "/history":
            self._print_turns(f"Conversation ({len(self.history)} messages):", list(self.history))

        elif cmd == "/context":
            window = list(self.context())
            self._print_turns(
                f"Context window ({len(window)} of max {self.max_turns} messages, "
                f"model={escape(self.model_config.model_name)}):",
                window,
            )

        else:
            self.console.print(Ansi.style(f"Unknown command: {escape(cmd)} (see /help)", Ansi.FG_RED))

        return True

    # ---------------- Request cycle ---------------

    def send_message(self, text: str) -> Optional[AssistantReply]:
        """Run one user turn through the window, transport and display.

        Returns the reply, or ``None`` when the request failed. A failed
        request keeps the user turn but records no assistant turn.
        """
        self.history.add_user_message(text)

        self.state = SessionState.SENDING
        window = self.context()
        payload = build(window, self.model_config)
        logger.debug("window holds %d of %d message(s)", len(window), len(self.history))

        self.state = SessionState.AWAITING_REPLY
        spinner = Spinner(self.console, prefix=f"{ASSISTANT_LABEL}> ")
        streamed = False

        def on_delta(fragment: str) -> None:
            nonlocal streamed
            if not streamed:
                spinner.stop()
                self.state = SessionState.DISPLAYING
                streamed = True
            self.console.print(fragment, end="", markup=False, highlight=False)

        spinner.start()
        try:
            reply = self.client.send(payload, on_delta=on_delta)
        except TransportError as exc:
            spinner.stop()
            self.console.print()
            self._report_error(exc)
            self.state = SessionState.AWAITING_INPUT
            return None
        finally:
            spinner.stop()

        self.state = SessionState.DISPLAYING
        if streamed:
            self.console.print()  # new line after stream ends
        else:
            self.console.print(reply.content, markup=False, highlight=False)

        self.history.add_assistant_message(reply.content)
        self._refresh_summary()
        self.state = SessionState.AWAITING_INPUT
        return reply

    # ---------------- Interaction loop ---------------

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop."""
        self.console.print(Panel.fit("Chat Relay", style="bold magenta"))

        self.console.print(
            Ansi.style("Type your message and press Enter. Commands start with '/'.", Ansi.FG_YELLOW),
            Ansi.style(f"Current model: {self.model_config.model_name}.", Ansi.FG_YELLOW),
            Ansi.style("Press Ctrl+C or type /exit to quit.", Ansi.FG_YELLOW),
            sep="\n",
        )

        try:
            while self.state is not SessionState.TERMINATED:
                self.state = SessionState.AWAITING_INPUT
                try:
                    line = self.console.input(f"{USER_LABEL}> ").strip()
                except EOFError:
                    self.console.print()
                    self.terminate("End of input. Bye!")
                    break

                if not line:
                    continue

                if line.startswith("/"):
                    if not self.handle_command(line):
                        break
                    continue

                self.send_message(line)
        except KeyboardInterrupt:
            self.console.print()
            self.terminate()


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Parse *argv*, build the session and run it. Returns the exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        settings = load_settings(args)
    except ConfigurationError as exc:
        err_console.print(f"{ERROR_LABEL}: {escape(str(exc))}")
        return 1
    logger.debug("loaded %r", settings)

    client = create_openai_client(
        settings.api_key, base_url=settings.base_url, timeout=settings.timeout
    )
    transport = ChatTransport(client)
    summary = RollingSummary(transport, model=settings.summary_model) if settings.summarize else None

    cli = ChatCLI(
        ConversationHistory(settings.system_prompt),
        transport,
        settings.model_config(),
        max_turns=settings.max_turns,
        summary=summary,
    )

    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        cli.repl()
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
    return 0


def main() -> None:  # pragma: no cover
    sys.exit(run_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
