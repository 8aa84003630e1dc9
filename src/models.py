from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.time_utils import normalize_time

# --- Conversation ---
class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str

class ToolInvocation(BaseModel):
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    # Set when the argument bag could not be decoded
    argument_error: Optional[str] = None

class ToolResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_call_id: str = Field(alias="toolCallId")
    result: str

# --- Canonical requests ---
class ChatConversation(BaseModel):
    kind: Literal["chat"] = "chat"
    system_prompt: Optional[str] = None
    turns: List[Turn]

class ToolCallBatch(BaseModel):
    kind: Literal["tool_calls"] = "tool_calls"
    invocations: List[ToolInvocation]

class Acknowledgement(BaseModel):
    kind: Literal["ack"] = "ack"
    event_type: Optional[str] = None

CanonicalRequest = Union[ChatConversation, ToolCallBatch, Acknowledgement]

# --- Scheduling ---
class TimeSpec(BaseModel):
    date: date
    start_time: str
    end_time: str

    @classmethod
    def build(cls, day: date, start_time: str, end_time: str) -> "TimeSpec":
        """Normalizes both times; multi-day and inverted ranges are rejected."""
        start = normalize_time(start_time)
        end = normalize_time(end_time)
        if start >= end:
            raise ValueError(f"start time {start} must be before end time {end}")
        return cls(date=day, start_time=start, end_time=end)

class CalendarEvent(BaseModel):
    start: datetime
    end: datetime
    summary: Optional[str] = None
    attendees: Optional[List[str]] = None

class AvailabilityResult(BaseModel):
    available: bool
    message: str

class BookingResult(BaseModel):
    success: bool
    message: str
    event_id: Optional[str] = None
    link: Optional[str] = None

# --- Tool arguments (mirrors src.tools.TOOLS) ---
class CheckAvailabilityArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str
    start_time: str
    end_time: str

class BookAppointmentArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str
    date: str
    start_time: str
    end_time: str
    description: Optional[str] = None
    attendee_email: Optional[str] = None

# --- Outbound envelopes ---
class ChatMessage(BaseModel):
    role: str = "assistant"
    content: str

class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str = "stop"

class ChatCompletionEnvelope(BaseModel):
    choices: List[ChatChoice]

    @classmethod
    def from_text(cls, text: str) -> "ChatCompletionEnvelope":
        return cls(choices=[ChatChoice(message=ChatMessage(content=text))])

class ToolResultsEnvelope(BaseModel):
    results: List[ToolResult]
