"""Interactive terminal chat with an OpenAI-compatible chat completions endpoint.

Every message you type is appended to an in-memory conversation. Each request
carries only a bounded window of it: the system prompt plus the most recent
messages, up to `--max-turns`. With `--summarize`, messages that fall out of
the window are folded into a rolling summary instead of being forgotten.
Nothing is written to disk.

Usage
-----
    chat-relay [--model MODEL] [--max-turns N] [--no-stream] [--summarize]
    python -m chat_relay --help

Slash commands (enter them as a line at the prompt):

    /help        - show this help
    /history     - print every message of the conversation so far
    /context     - print the window that is sent with the next request
    /exit        - terminate the program (Ctrl+C and Ctrl+D work too)

Environment variables
---------------------
* OPENAI_API_KEY - your OpenAI API key (required)
* OPENAI_BASE_URL - custom base URL (optional, for self-hosting/proxy)
* OPENAI_DEFAULT_MODEL - model used when --model is omitted
* CHAT_RELAY_LOG_LEVEL - logging level (default WARNING)
"""
# Re-export useful symbols for convenience
from .core import ChatTurn, ConversationHistory, ModelConfig, Role, SYSTEM_PROMPT
from .core.client import AssistantReply, ChatTransport
from .cli import ChatCLI, SessionState, run_cli

__all__ = [
    "AssistantReply",
    "ChatCLI",
    "ChatTransport",
    "ChatTurn",
    "ConversationHistory",
    "ModelConfig",
    "Role",
    "SYSTEM_PROMPT",
    "SessionState",
    "run_cli",
]
