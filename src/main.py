import uuid
from contextlib import asynccontextmanager
from datetime import datetime, time, timedelta

from fastapi import FastAPI, HTTPException, Request, status
from openai import AsyncOpenAI

from src.agent_manager import ToolDispatcher
from src.agents.calendar_agent import CalendarAgent
from src.calendar_client import CalendarClient, GoogleCalendarClient, credentials_from_settings
from src.canonicalizer import canonicalize
from src.config import settings
from src.exceptions import EmptyConversation, RemoteCollaboratorFailure
from src.logger import logger
from src.models import (
    Acknowledgement,
    ChatCompletionEnvelope,
    ToolCallBatch,
    ToolResultsEnvelope,
)
from src.orchestrator import ConversationOrchestrator
from src.prompts import get_receptionist_system_prompt
from src.time_utils import resolve_timezone


def build_pipeline(ai_client: AsyncOpenAI, calendar: CalendarClient):
    """Wires the calendar agent, dispatcher and orchestrator around two collaborators."""
    tz = resolve_timezone(settings.CALENDAR_TIMEZONE, settings.CALENDAR_UTC_OFFSET)
    agent = CalendarAgent(
        calendar,
        calendar_id=settings.GOOGLE_CALENDAR_ID,
        tz=tz,
        tz_name=settings.CALENDAR_TIMEZONE,
        operator_email=settings.OPERATOR_EMAIL,
        verify_before_booking=settings.VERIFY_BEFORE_BOOKING,
    )
    dispatcher = ToolDispatcher(agent)
    orchestrator = ConversationOrchestrator(
        ai_client,
        dispatcher,
        model=settings.OPENAI_MODEL,
        default_system_prompt=settings.DEFAULT_SYSTEM_PROMPT
        or (lambda: get_receptionist_system_prompt(tz, settings.CALENDAR_TIMEZONE)),
        max_tokens=settings.OPENAI_MAX_TOKENS,
    )
    return agent, dispatcher, orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    # [STARTUP LOGIC]
    app.state.ai_client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    app.state.calendar = GoogleCalendarClient(credentials_from_settings(settings))
    app.state.agent, app.state.dispatcher, app.state.orchestrator = build_pipeline(
        app.state.ai_client, app.state.calendar
    )
    logger.info(f"--- {settings.APP_NAME} Started ({settings.GOOGLE_AUTH_MODE} calendar auth) ---")

    yield  # --- The app runs here ---

    # [SHUTDOWN LOGIC]
    await app.state.ai_client.close()
    logger.info(f"--- {settings.APP_NAME} Shutting Down ---")

app = FastAPI(title=settings.APP_NAME, description=settings.APP_DESCRIPTION, lifespan=lifespan)

# --- 1. Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request, deep: bool = False):
    health_status = {
        "service": settings.APP_NAME,
        "status": "online",
        "dependencies": {
            "calendar": "configured" if hasattr(request.app.state, "agent") else "missing",
            "openai_api": "configured" if settings.OPENAI_API_KEY else "missing_api_key",
        }
    }
    if not deep or not hasattr(request.app.state, "agent"):
        return health_status

    # Deep check: list today's events on the configured calendar
    agent = request.app.state.agent
    today = datetime.now(agent.tz).date()
    start = datetime.combine(today, time(0, 0), tzinfo=agent.tz)
    try:
        items = await agent.calendar.list_events(agent.calendar_id, start, start + timedelta(days=1))
        health_status["dependencies"]["calendar"] = "reachable"
        health_status["events_today"] = len(items)
    except RemoteCollaboratorFailure as e:
        logger.error(f"Health check failed to reach calendar: {e}")
        health_status["status"] = "degraded"
        health_status["dependencies"]["calendar"] = f"unreachable: {e}"

    return health_status

# --- 2. Voice Platform Webhook ---
@app.post("/webhook")
@app.post("/chat/completions")
async def handle_webhook(request: Request):
    corr_id = request.state.correlation_id
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON.")

    try:
        canonical = canonicalize(payload)
    except EmptyConversation as e:
        logger.warning(f"[{corr_id}] Rejected request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if isinstance(canonical, Acknowledgement):
        return {}

    if isinstance(canonical, ToolCallBatch):
        logger.info(f"[{corr_id}] Tool-call batch of {len(canonical.invocations)}")
        results = await request.app.state.dispatcher.dispatch_batch(canonical.invocations)
        return ToolResultsEnvelope(results=results).model_dump(by_alias=True)

    try:
        text = await request.app.state.orchestrator.reply(canonical, corr_id)
    except RemoteCollaboratorFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return ChatCompletionEnvelope.from_text(text).model_dump()

@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    cid = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
    request.state.correlation_id = cid
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = cid
    return response
