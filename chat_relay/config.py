"""Startup configuration: command-line flags merged with environment variables.

This is the only module that reads the environment. Everything downstream
receives an immutable :class:`Settings` value.
"""
from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core import SYSTEM_PROMPT, ConfigurationError, ModelConfig, validate_max_turns

API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"
DEFAULT_MODEL_ENV = "OPENAI_DEFAULT_MODEL"

DEFAULT_MODEL = "gpt-4o"
DEFAULT_SUMMARY_MODEL = "gpt-4o"
# 10 user/assistant exchanges
DEFAULT_MAX_TURNS = 20
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: Optional[str] = None
    max_turns: int = DEFAULT_MAX_TURNS
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT
    stream: bool = True
    system_prompt: Optional[str] = SYSTEM_PROMPT
    summarize: bool = False
    summary_model: str = DEFAULT_SUMMARY_MODEL
    verbose: bool = False

    def __repr__(self) -> str:
        # keep the credential out of logs and tracebacks
        return (
            f"Settings(model={self.model!r}, base_url={self.base_url!r}, "
            f"max_turns={self.max_turns}, stream={self.stream}, summarize={self.summarize})"
        )

    def model_config(self) -> ModelConfig:
        return ModelConfig(
            model_name=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=self.stream,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-relay",
        description="Interactive terminal chat with an OpenAI-compatible chat completions endpoint.",
    )
    parser.add_argument(
        "--model", "-m",
        help=f"Model name to use (default: ${DEFAULT_MODEL_ENV} or {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--max-turns", type=int, default=DEFAULT_MAX_TURNS,
        help=f"Maximum number of messages sent per request (default: {DEFAULT_MAX_TURNS})",
    )
    parser.add_argument("--temperature", type=float, help="Sampling temperature (0-2)")
    parser.add_argument("--max-tokens", type=int, help="Upper bound on tokens per reply")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--no-stream", dest="stream", action="store_false",
        help="Wait for the complete reply instead of streaming tokens",
    )
    parser.add_argument(
        "--system",
        help="Override the system prompt (pass an empty string to send none)",
    )
    parser.add_argument(
        "--summarize", action="store_true",
        help="Keep a rolling summary of messages that fall out of the window",
    )
    parser.add_argument(
        "--summary-model", default=DEFAULT_SUMMARY_MODEL,
        help=f"Model used for rolling summaries (default: {DEFAULT_SUMMARY_MODEL})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def load_settings(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Validate *args* against *environ* and return the session settings.

    Raises :class:`ConfigurationError` for anything that would make the
    session unusable, before any network client is created.
    """
    env = os.environ if environ is None else environ

    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise ConfigurationError(f"{API_KEY_ENV} environment variable is not set.")

    model = args.model or env.get(DEFAULT_MODEL_ENV) or DEFAULT_MODEL

    system_prompt = SYSTEM_PROMPT if args.system is None else (args.system or None)
    max_turns = validate_max_turns(
        args.max_turns, with_system=bool(system_prompt) or args.summarize
    )

    if args.temperature is not None and not 0.0 <= args.temperature <= 2.0:
        raise ConfigurationError(f"temperature must be between 0 and 2 (got {args.temperature})")
    if args.max_tokens is not None and args.max_tokens < 1:
        raise ConfigurationError(f"max tokens must be positive (got {args.max_tokens})")
    if args.timeout <= 0:
        raise ConfigurationError(f"timeout must be positive (got {args.timeout})")

    return Settings(
        api_key=api_key,
        model=model,
        base_url=env.get(BASE_URL_ENV) or None,
        max_turns=max_turns,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        timeout=args.timeout,
        stream=args.stream,
        system_prompt=system_prompt,
        summarize=args.summarize,
        summary_model=args.summary_model,
        verbose=args.verbose,
    )
