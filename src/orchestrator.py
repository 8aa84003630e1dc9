import enum
from typing import Callable, List, Optional, Union

from openai import AsyncOpenAI, OpenAIError

from src.agent_manager import ToolDispatcher
from src.canonicalizer import to_invocation
from src.exceptions import RemoteCollaboratorFailure
from src.logger import logger
from src.models import ChatConversation, ToolResult
from src.tools import TOOLS
from src.utils import describe_usage

FALLBACK_REPLY = "Okay, I've taken care of that for you."
NO_REPLY = "Sorry, could you say that again?"


class Phase(str, enum.Enum):
    CANONICALIZED = "canonicalized"
    MODEL_CALLED = "model_called"
    DIRECT_REPLY = "direct_reply"
    TOOL_REQUESTED = "tool_requested"
    TOOL_EXECUTED = "tool_executed"
    MODEL_RECALLED = "model_recalled"
    FINAL_REPLY = "final_reply"


class ConversationOrchestrator:
    """
    One conversational turn: ask the model, run the calendar tool it asks
    for, then ask again with the tool output to get the spoken reply.
    """

    def __init__(
        self,
        ai_client: AsyncOpenAI,
        dispatcher: ToolDispatcher,
        model: str,
        default_system_prompt: Union[str, Callable[[], str]],
        max_tokens: Optional[int] = None,
    ):
        self.ai_client = ai_client
        self.dispatcher = dispatcher
        self.model = model
        self.default_system_prompt = default_system_prompt
        self.max_tokens = max_tokens

    def _system_prompt(self, conversation: ChatConversation) -> str:
        if conversation.system_prompt:
            return conversation.system_prompt
        if callable(self.default_system_prompt):
            return self.default_system_prompt()
        return self.default_system_prompt

    async def _complete(self, messages: List[dict], corr_id: str):
        params = {"model": self.model, "messages": messages, "tools": TOOLS, "tool_choice": "auto"}
        if self.max_tokens:
            params["max_tokens"] = self.max_tokens
        try:
            response = await self.ai_client.chat.completions.create(**params)
        except OpenAIError as e:
            logger.error(f"[{corr_id}] LLM call failed: {e}")
            raise RemoteCollaboratorFailure("llm", str(e)) from e

        if not response.choices:
            raise RemoteCollaboratorFailure("llm", "completion returned no choices")
        logger.info(f"[{corr_id}] LLM {describe_usage(response.usage)}")
        return response.choices[0]

    def _enter(self, phase: Phase, corr_id: str):
        logger.debug(f"[{corr_id}] -> {phase.value}")

    async def reply(self, conversation: ChatConversation, corr_id: str = "-") -> str:
        self._enter(Phase.CANONICALIZED, corr_id)
        messages = [{"role": "system", "content": self._system_prompt(conversation)}]
        messages.extend(turn.model_dump() for turn in conversation.turns)

        choice = await self._complete(messages, corr_id)
        self._enter(Phase.MODEL_CALLED, corr_id)
        assistant_msg = choice.message

        if not assistant_msg.tool_calls:
            if choice.finish_reason == "tool_calls":
                logger.warning(f"[{corr_id}] finish_reason=tool_calls but no tool calls present")
            self._enter(Phase.DIRECT_REPLY, corr_id)
            return assistant_msg.content or NO_REPLY

        self._enter(Phase.TOOL_REQUESTED, corr_id)
        tool_calls = assistant_msg.tool_calls
        results: List[ToolResult] = []
        # The API rejects a follow-up that leaves any tool call unanswered, so all are run
        for index, tool_call in enumerate(tool_calls):
            invocation = to_invocation(tool_call.model_dump(), index)
            results.append(await self.dispatcher.dispatch(invocation))
        self._enter(Phase.TOOL_EXECUTED, corr_id)

        followup = list(messages)
        followup.append(assistant_msg.model_dump(exclude_none=True))
        for result in results:
            followup.append({"role": "tool", "tool_call_id": result.tool_call_id, "content": result.result})

        second = await self._complete(followup, corr_id)
        self._enter(Phase.MODEL_RECALLED, corr_id)
        if second.message.tool_calls:
            logger.info(f"[{corr_id}] Model asked for another tool after the first result; not executed")

        self._enter(Phase.FINAL_REPLY, corr_id)
        return second.message.content or FALLBACK_REPLY
