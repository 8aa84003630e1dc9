import json
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from openai import AsyncOpenAI

from src.agent_manager import ToolDispatcher
from src.agents.calendar_agent import CalendarAgent
from src.exceptions import RemoteCollaboratorFailure

TZ_NAME = "America/New_York"


class FakeCalendar:
    """
    In-memory calendar. Its list filter is deliberately loose (inclusive on
    both ends) like a remote store we can't fully trust at the boundaries.
    """

    def __init__(self, events=None):
        self.events = list(events or [])
        self.inserted = []
        self.list_calls = []
        self.fail = False

    def add(self, start: datetime, end: datetime, summary="Busy", **extra):
        self.events.append({
            "id": f"evt-{len(self.events) + 1}",
            "summary": summary,
            "start": {"dateTime": start.isoformat()},
            "end": {"dateTime": end.isoformat()},
            **extra,
        })

    async def list_events(self, calendar_id, time_min, time_max):
        self.list_calls.append((calendar_id, time_min, time_max))
        if self.fail:
            raise RemoteCollaboratorFailure("calendar", "backend unavailable")
        matched = []
        for item in self.events:
            if "dateTime" not in item["start"]:
                matched.append(item)
                continue
            start = datetime.fromisoformat(item["start"]["dateTime"])
            end = datetime.fromisoformat(item["end"]["dateTime"])
            if start.tzinfo is None or end.tzinfo is None:
                # zone comes from the event itself
                matched.append(item)
                continue
            if start <= time_max and end >= time_min:
                matched.append(item)
        return matched

    async def insert_event(self, calendar_id, event, send_updates=None):
        if self.fail:
            raise RemoteCollaboratorFailure("calendar", "backend unavailable")
        created = {
            **event,
            "id": f"created-{len(self.inserted) + 1}",
            "htmlLink": f"https://calendar.example/event/{len(self.inserted) + 1}",
        }
        self.inserted.append({"calendar_id": calendar_id, "event": event, "send_updates": send_updates})
        self.events.append(created)
        return created


@pytest.fixture
def tz():
    return ZoneInfo(TZ_NAME)


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def agent(calendar, tz):
    return CalendarAgent(
        calendar,
        calendar_id="primary",
        tz=tz,
        tz_name=TZ_NAME,
        operator_email="frontdesk@example.com",
    )


@pytest.fixture
def dispatcher(agent):
    return ToolDispatcher(agent)


@pytest.fixture
def ai_client():
    return AsyncOpenAI(api_key="test-key", base_url="https://api.openai.com/v1", max_retries=0)


@pytest.fixture
def make_completion():
    """Builds a chat.completion JSON body; tool_calls is a list of (id, name, arguments)."""

    def _make(content=None, tool_calls=None, finish_reason=None):
        message = {"role": "assistant", "content": content}
        if tool_calls:
            message["tool_calls"] = [
                {
                    "id": call_id,
                    "type": "function",
                    "function": {
                        "name": name,
                        "arguments": arguments if isinstance(arguments, str) else json.dumps(arguments),
                    },
                }
                for call_id, name, arguments in tool_calls
            ]
        return {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 1700000000,
            "model": "gpt-4o",
            "choices": [{
                "index": 0,
                "message": message,
                "logprobs": None,
                "finish_reason": finish_reason or ("tool_calls" if tool_calls else "stop"),
            }],
            "usage": {"prompt_tokens": 12, "completion_tokens": 7, "total_tokens": 19},
        }

    return _make
