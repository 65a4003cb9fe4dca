"""Tests for converting conversation turns to and from Chat Completions payloads."""

import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from codescout.agent.conversation import Turn
from codescout.errors import ServiceFailure
from codescout.llm.client import LLMClient, parse_reply, turns_to_messages
from codescout.models.schemas import ModelReply, ToolCall, ToolResponse


def _message(content=None, tool_calls=None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)


def _raw_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestTurnsToMessages:
    def test_roles(self):
        turns = [
            Turn.instruction("be helpful"),
            Turn.user("hi"),
            Turn.from_reply(ModelReply(text="hello")),
        ]

        assert turns_to_messages(turns) == [
            {"role": "system", "content": "be helpful"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]

    def test_tool_round_trip_messages(self):
        call = ToolCall(id="call_1", name="read_file", arguments={"path": "a.ts"})
        turns = [
            Turn.from_reply(ModelReply(tool_calls=[call])),
            Turn.tool_results(
                [
                    ToolResponse(call_id="call_1", name="read_file", result="content"),
                    ToolResponse(call_id="call_2", name="nope", error="Unknown tool: nope"),
                ]
            ),
        ]

        assistant, ok, failed = turns_to_messages(turns)

        assert assistant["tool_calls"][0]["id"] == "call_1"
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"path": "a.ts"}
        assert ok == {"role": "tool", "tool_call_id": "call_1", "content": '{"result": "content"}'}
        assert json.loads(failed["content"]) == {"error": "Unknown tool: nope"}
        assert failed["tool_call_id"] == "call_2"


class TestParseReply:
    def test_text_only(self):
        reply = parse_reply(_message(content="done"))

        assert reply.text == "done"
        assert not reply.has_tool_calls

    def test_tool_calls(self):
        reply = parse_reply(_message(tool_calls=[_raw_call("c1", "grep", '{"search_term": "TODO"}')]))

        assert reply.tool_calls == [ToolCall(id="c1", name="grep", arguments={"search_term": "TODO"})]
        assert not reply.has_text

    def test_invalid_arguments_become_empty(self):
        reply = parse_reply(_message(tool_calls=[_raw_call("c1", "grep", "{not json")]))

        assert reply.tool_calls[0].arguments == {}


class TestLLMClient:
    @pytest.mark.asyncio
    async def test_sends_messages_and_tools(self):
        completions = FakeCompletions(
            response=SimpleNamespace(choices=[SimpleNamespace(message=_message(content="answer"))])
        )
        client = LLMClient(model="test-model", client=_client(completions))
        tools = [{"type": "function", "function": {"name": "read_file"}}]

        reply = await client.complete([Turn.instruction("sys"), Turn.user("q")], tools)

        assert reply.text == "answer"
        assert completions.kwargs["model"] == "test-model"
        assert completions.kwargs["tools"] == tools
        assert completions.kwargs["messages"][-1] == {"role": "user", "content": "q"}

    @pytest.mark.asyncio
    async def test_no_choices(self):
        completions = FakeCompletions(response=SimpleNamespace(choices=[]))

        reply = await LLMClient(client=_client(completions)).complete([Turn.user("q")])

        assert reply == ModelReply()

    @pytest.mark.asyncio
    async def test_api_error_becomes_service_failure(self):
        completions = FakeCompletions(error=OpenAIError("connection reset"))

        with pytest.raises(ServiceFailure, match="connection reset"):
            await LLMClient(client=_client(completions)).complete([Turn.user("q")])
