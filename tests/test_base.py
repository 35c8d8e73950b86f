import io
import unittest
from unittest.mock import Mock

import httpx
from openai import OpenAI
from rich.console import Console

from chat_relay import ChatCLI, ChatTransport, ConversationHistory, ModelConfig

API_URL = "https://api.openai.com/v1/chat/completions"


def make_chunk(text, finish_reason=None, model="gpt-4o"):
    """A streamed chat completion chunk carrying *text*."""
    return Mock(choices=[Mock(delta=Mock(content=text), finish_reason=finish_reason)], model=model)


def make_completion(text, finish_reason="stop", model="gpt-4o"):
    """A non-streamed chat completion whose first choice says *text*."""
    return Mock(choices=[Mock(message=Mock(content=text), finish_reason=finish_reason)], model=model)


def make_status_error(cls, status, message="boom"):
    """Build an openai.APIStatusError subclass the way the SDK does."""
    request = httpx.Request("POST", API_URL)
    response = httpx.Response(status, request=request)
    return cls(message, response=response, body=None)


def make_request():
    return httpx.Request("POST", API_URL)


def make_sdk_client(body, content_type="application/json", status=200):
    """A real OpenAI client whose HTTP layer always answers with *body*."""

    def handler(request):
        return httpx.Response(status, content=body, headers={"content-type": content_type})

    return OpenAI(
        api_key="sk-test",
        base_url="https://api.test/v1",
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class BaseChatCLITest(unittest.TestCase):
    max_turns = 20
    stream = True

    def setUp(self):
        # Capture everything the REPL prints in plain text
        self.output = io.StringIO()
        self.console = Console(
            file=self.output, force_terminal=False, color_system=None, width=200
        )

        # Mock the OpenAI client
        self.mock_client = Mock()
        self.transport = ChatTransport(self.mock_client)

        self.history = ConversationHistory()
        self.model_config = ModelConfig(model_name="gpt-4o", stream=self.stream)

        # Create ChatCLI instance
        self.chat_cli = ChatCLI(
            self.history,
            self.transport,
            self.model_config,
            max_turns=self.max_turns,
            output=self.console,
        )

    def printed(self):
        return self.output.getvalue()

    def sent_payloads(self):
        return [call.kwargs for call in self.mock_client.chat.completions.create.call_args_list]
