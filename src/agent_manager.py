from typing import List

from pydantic import ValidationError

from src.agents.calendar_agent import CalendarAgent
from src.exceptions import UnknownTool
from src.logger import logger
from src.models import BookAppointmentArgs, CheckAvailabilityArgs, ToolInvocation, ToolResult
from src.tools import TOOL_NAMES


class ToolDispatcher:
    """
    Routes a tool invocation to the calendar agent.

    Every invocation gets exactly one ToolResult back, including unknown
    tools and undecodable arguments, so one bad call never sinks a batch.
    """

    def __init__(self, agent: CalendarAgent):
        self.agent = agent
        self.handlers = {
            "check_availability": self._check_availability,
            "book_appointment": self._book_appointment,
        }
        if set(self.handlers) != TOOL_NAMES:
            raise RuntimeError(
                f"Tool handlers {sorted(self.handlers)} do not match the tool schema {sorted(TOOL_NAMES)}"
            )

    async def _check_availability(self, arguments: dict) -> str:
        args = CheckAvailabilityArgs(**arguments)
        result = await self.agent.check_availability(args.date, args.start_time, args.end_time)
        return result.message

    async def _book_appointment(self, arguments: dict) -> str:
        args = BookAppointmentArgs(**arguments)
        result = await self.agent.book_appointment(
            args.summary,
            args.date,
            args.start_time,
            args.end_time,
            description=args.description,
            attendee_email=args.attendee_email,
        )
        if result.success and result.link:
            return f"{result.message} Event link: {result.link}"
        return result.message

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        logger.info(f"[DISPATCH] {invocation.name} ({invocation.id})")

        if invocation.argument_error:
            return ToolResult(tool_call_id=invocation.id, result=f"Error: {invocation.argument_error}")

        try:
            handler = self.handlers.get(invocation.name)
            if handler is None:
                raise UnknownTool(invocation.name)
            text = await handler(invocation.arguments)
        except UnknownTool as e:
            logger.warning(f"[DISPATCH] {e}")
            text = f"Error: {e}. Available tools: {', '.join(sorted(self.handlers))}."
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            logger.warning(f"[DISPATCH] Bad arguments for {invocation.name}: {fields}")
            text = f"Error: missing or invalid arguments for {invocation.name}: {fields}"
        except Exception as e:
            logger.exception(f"[DISPATCH] {invocation.name} ({invocation.id}) failed")
            text = f"Error: {invocation.name} failed: {e}"

        return ToolResult(tool_call_id=invocation.id, result=text)

    async def dispatch_batch(self, invocations: List[ToolInvocation]) -> List[ToolResult]:
        # Sequential: a booking may depend on an availability check earlier in the batch
        results = []
        for invocation in invocations:
            results.append(await self.dispatch(invocation))
        return results
