import json
import unittest
from unittest.mock import Mock, patch

import openai

from chat_relay.core import (
    AuthenticationFailed,
    ChatTurn,
    MalformedResponse,
    ModelConfig,
    NetworkUnavailable,
    RateLimited,
    RequestRejected,
    ServerError,
    TransportError,
    build,
)
from chat_relay.core.client import ChatTransport, create_openai_client, translate_error
from .test_base import make_chunk, make_completion, make_request, make_sdk_client, make_status_error


class TestChatTransport(unittest.TestCase):
    def setUp(self):
        self.mock_client = Mock()
        self.transport = ChatTransport(self.mock_client)
        self.window = [ChatTurn.user("hello")]

    def payload(self, stream=False):
        return build(self.window, ModelConfig(model_name="gpt-4o", stream=stream))

    def test_batched_reply(self):
        """The first choice's text is returned and the payload forwarded as-is"""
        self.mock_client.chat.completions.create.return_value = make_completion("hi there")

        reply = self.transport.send(self.payload())

        self.assertEqual(reply.content, "hi there")
        self.assertEqual(reply.model, "gpt-4o")
        self.assertEqual(reply.finish_reason, "stop")
        self.mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-4o", messages=[{"role": "user", "content": "hello"}]
        )

    def test_streamed_reply_is_assembled_and_forwarded(self):
        self.mock_client.chat.completions.create.return_value = [
            make_chunk("hi"),
            make_chunk(None),
            Mock(choices=[], model="gpt-4o"),
            make_chunk(" there", finish_reason="stop"),
        ]
        fragments = []

        reply = self.transport.send(self.payload(stream=True), on_delta=fragments.append)

        self.assertEqual(reply.content, "hi there")
        self.assertEqual(reply.finish_reason, "stop")
        self.assertEqual(fragments, ["hi", " there"])
        self.assertTrue(self.mock_client.chat.completions.create.call_args.kwargs["stream"])

    def test_missing_choices_is_malformed(self):
        self.mock_client.chat.completions.create.return_value = Mock(choices=[])
        with self.assertRaises(MalformedResponse) as ctx:
            self.transport.send(self.payload())
        self.assertIn("at least one completion choice", str(ctx.exception))

    def test_missing_content_is_malformed(self):
        self.mock_client.chat.completions.create.return_value = Mock(
            choices=[Mock(message=Mock(content=None))]
        )
        with self.assertRaises(MalformedResponse) as ctx:
            self.transport.send(self.payload())
        self.assertEqual(ctx.exception.expected, "a text message in the first choice")

    def test_empty_stream_is_malformed(self):
        self.mock_client.chat.completions.create.return_value = [make_chunk(None), make_chunk("")]
        with self.assertRaises(MalformedResponse) as ctx:
            self.transport.send(self.payload(stream=True))
        self.assertIn("2 chunk(s) without text", str(ctx.exception))

    def test_sdk_errors_are_translated(self):
        """Every SDK failure surfaces as the matching transport error"""
        cases = [
            (make_status_error(openai.AuthenticationError, 401), AuthenticationFailed),
            (make_status_error(openai.PermissionDeniedError, 403), AuthenticationFailed),
            (make_status_error(openai.RateLimitError, 429), RateLimited),
            (make_status_error(openai.InternalServerError, 503), ServerError),
            (make_status_error(openai.NotFoundError, 404), RequestRejected),
            (openai.APIConnectionError(request=make_request()), NetworkUnavailable),
            (openai.APITimeoutError(request=make_request()), NetworkUnavailable),
        ]
        for sdk_error, expected in cases:
            with self.subTest(error=type(sdk_error).__name__):
                self.mock_client.chat.completions.create.side_effect = sdk_error
                with self.assertRaises(expected) as ctx:
                    self.transport.send(self.payload())
                self.assertIs(ctx.exception.__cause__, sdk_error)

    def test_errors_mid_stream_are_translated(self):
        def broken_stream():
            yield make_chunk("partial")
            raise openai.APIConnectionError(request=make_request())

        self.mock_client.chat.completions.create.return_value = broken_stream()
        with self.assertRaises(NetworkUnavailable):
            self.transport.send(self.payload(stream=True), on_delta=lambda _: None)

    def test_describe_includes_status_code(self):
        error = translate_error(make_status_error(openai.RateLimitError, 429, "slow down"))
        self.assertIsInstance(error, RateLimited)
        self.assertEqual(error.status_code, 429)
        self.assertTrue(error.describe().startswith("rate limited (HTTP 429): "))
        self.assertIsInstance(translate_error(openai.OpenAIError("odd")), TransportError)

    @patch("chat_relay.core.client.OpenAI")
    def test_client_is_built_without_retries(self, mock_openai):
        create_openai_client("sk-test", base_url="http://localhost:8080/v1", timeout=5.0)

        kwargs = mock_openai.call_args.kwargs
        self.assertEqual(kwargs["api_key"], "sk-test")
        self.assertEqual(kwargs["base_url"], "http://localhost:8080/v1")
        self.assertEqual(kwargs["max_retries"], 0)
        self.assertEqual(kwargs["timeout"].read, 5.0)
        self.assertEqual(kwargs["timeout"].connect, 5.0)


class TestChatTransportOverHTTP(unittest.TestCase):
    """Runs the real SDK parsing path against canned HTTP bodies."""

    completion_body = json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": "hi there"},
                }
            ],
        }
    ).encode("utf-8")

    def payload(self, stream=False):
        return build([ChatTurn.user("hello")], ModelConfig(model_name="gpt-4o", stream=stream))

    def test_valid_body_is_parsed(self):
        transport = ChatTransport(make_sdk_client(self.completion_body))
        reply = transport.send(self.payload())
        self.assertEqual(reply.content, "hi there")
        self.assertEqual(reply.finish_reason, "stop")

    def test_non_json_body_is_malformed(self):
        """A 200 with a body that is not JSON is reported, not raised raw"""
        transport = ChatTransport(make_sdk_client(b"<gateway hiccup>"))
        with self.assertRaises(MalformedResponse) as ctx:
            transport.send(self.payload())
        self.assertEqual(ctx.exception.expected, "a JSON chat completion body")
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_non_json_stream_event_is_malformed(self):
        transport = ChatTransport(
            make_sdk_client(b"data: not json\n\n", content_type="text/event-stream")
        )
        with self.assertRaises(MalformedResponse) as ctx:
            transport.send(self.payload(stream=True), on_delta=lambda _: None)
        self.assertEqual(ctx.exception.expected, "a JSON chat completion body")
