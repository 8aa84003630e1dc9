"""
Turns the inbound webhook body into one canonical request.

Recognized shapes:

* chat: a bare list of ``{role, content}`` messages, or ``{"messages": [...]}``
  as sent by chat-completions compatible clients;
* tool-call envelope: ``{"message": {"type": "tool-calls", "toolCallList": [...]}}``
  (``toolCalls`` is accepted too) or a top-level ``{"toolCalls": [...]}``;
* any other platform envelope under ``"message"`` (status updates, transcripts,
  end-of-call reports) is acknowledged without doing anything.
"""

from typing import Any, List, Optional

from src.exceptions import EmptyConversation
from src.logger import logger
from src.models import (
    Acknowledgement,
    CanonicalRequest,
    ChatConversation,
    ToolCallBatch,
    ToolInvocation,
    Turn,
)
from src.utils import decode_arguments, flatten_content

TOOL_CALL_KEYS = ("toolCallList", "toolCalls")


def canonicalize(payload: Any) -> CanonicalRequest:
    if isinstance(payload, list):
        return canonicalize_messages(payload)
    if not isinstance(payload, dict):
        raise EmptyConversation("Request body must be a JSON object or a list of messages")

    if isinstance(payload.get("messages"), list):
        return canonicalize_messages(payload["messages"])

    if any(key in payload for key in TOOL_CALL_KEYS):
        return canonicalize_tool_calls(_tool_call_list(payload))

    envelope = payload.get("message")
    if isinstance(envelope, dict):
        if envelope.get("type") == "tool-calls" or any(key in envelope for key in TOOL_CALL_KEYS):
            return canonicalize_tool_calls(_tool_call_list(envelope))
        event_type = envelope.get("type")
        logger.debug(f"[CANONICAL] Acknowledging platform event '{event_type}'")
        return Acknowledgement(event_type=event_type)

    raise EmptyConversation("No messages or tool calls found in request")


def canonicalize_messages(messages: List[Any]) -> ChatConversation:
    system_parts = []
    turns = []
    for message in messages:
        if not isinstance(message, dict):
            continue
        role = str(message.get("role") or "user").lower()
        content = flatten_content(message.get("content"))
        if role == "system":
            if content:
                system_parts.append(content)
            continue
        if not content:
            continue
        # Only user/assistant exist upstream; tool/function/other roles fold to user
        turns.append(Turn(role="assistant" if role == "assistant" else "user", content=content))

    if not turns:
        raise EmptyConversation("Conversation has no user or assistant messages")

    system_prompt: Optional[str] = "\n\n".join(system_parts) or None
    return ChatConversation(system_prompt=system_prompt, turns=turns)


def canonicalize_tool_calls(calls: List[Any]) -> ToolCallBatch:
    invocations = [to_invocation(call, index) for index, call in enumerate(calls)]
    if not invocations:
        raise EmptyConversation("Tool-call envelope carried no tool calls")
    return ToolCallBatch(invocations=invocations)


def _tool_call_list(container: dict) -> List[Any]:
    for key in TOOL_CALL_KEYS:
        calls = container.get(key)
        if isinstance(calls, list):
            return calls
    return []


def to_invocation(call: Any, index: int) -> ToolInvocation:
    if not isinstance(call, dict):
        return ToolInvocation(
            id=f"call_{index}", name="", argument_error=f"Tool call must be an object, got {type(call).__name__}"
        )

    function = call.get("function") if isinstance(call.get("function"), dict) else call
    call_id = str(call.get("id") or call.get("toolCallId") or f"call_{index}")
    name = str(function.get("name") or "")
    raw_arguments = function.get("arguments", function.get("parameters"))

    try:
        arguments = decode_arguments(raw_arguments)
    except ValueError as e:
        logger.warning(f"[CANONICAL] Tool call {call_id} ({name}) has bad arguments: {e}")
        return ToolInvocation(id=call_id, name=name, argument_error=str(e))
    return ToolInvocation(id=call_id, name=name, arguments=arguments)
