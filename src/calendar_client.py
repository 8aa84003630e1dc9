import asyncio
from datetime import datetime
from typing import List, Optional, Protocol

from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.exceptions import RemoteCollaboratorFailure
from src.logger import logger

SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class CalendarClient(Protocol):
    """The two calendar operations the scheduling engines rely on."""

    async def list_events(self, calendar_id: str, time_min: datetime, time_max: datetime) -> List[dict]:
        ...

    async def insert_event(self, calendar_id: str, event: dict, send_updates: Optional[str] = None) -> dict:
        ...


# --- Credential strategies ---
def oauth_credentials(client_id: str, client_secret: str, refresh_token: str):
    """User OAuth credentials; google-auth refreshes the access token on first use."""
    return Credentials(
        token=None,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=TOKEN_URI,
        scopes=SCOPES,
    )


def service_account_credentials(key_file: str, delegated_user: Optional[str] = None):
    creds = service_account.Credentials.from_service_account_file(key_file, scopes=SCOPES)
    if delegated_user:
        creds = creds.with_subject(delegated_user)
    return creds


def credentials_from_settings(settings):
    mode = (settings.GOOGLE_AUTH_MODE or "oauth").lower()
    if mode == "service_account":
        if not settings.GOOGLE_SERVICE_ACCOUNT_FILE:
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_FILE is required for service_account auth")
        return service_account_credentials(
            settings.GOOGLE_SERVICE_ACCOUNT_FILE, settings.GOOGLE_DELEGATED_USER
        )
    if mode == "oauth":
        missing = [
            name for name in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN")
            if not getattr(settings, name)
        ]
        if missing:
            raise ValueError(f"Missing OAuth settings: {', '.join(missing)}")
        return oauth_credentials(
            settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CLIENT_SECRET, settings.GOOGLE_REFRESH_TOKEN
        )
    raise ValueError(f"Unknown GOOGLE_AUTH_MODE '{settings.GOOGLE_AUTH_MODE}'")


class GoogleCalendarClient:
    """Google Calendar v3 over googleapiclient. Blocking calls run in a worker thread."""

    def __init__(self, credentials):
        self.credentials = credentials

    def _service(self):
        # httplib2 transports are not thread-safe, so each call gets its own service
        return build("calendar", "v3", credentials=self.credentials, cache_discovery=False)

    async def list_events(self, calendar_id: str, time_min: datetime, time_max: datetime) -> List[dict]:
        def _list():
            response = self._service().events().list(
                calendarId=calendar_id,
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                singleEvents=True,
                orderBy="startTime",
            ).execute()
            return response.get("items", [])

        try:
            return await asyncio.to_thread(_list)
        except HttpError as e:
            logger.error(f"[CALENDAR] list failed ({e.status_code}): {e.reason}")
            raise RemoteCollaboratorFailure("calendar", str(e.reason or e)) from e
        except Exception as e:
            logger.error(f"[CALENDAR] list failed: {e}")
            raise RemoteCollaboratorFailure("calendar", str(e)) from e

    async def insert_event(self, calendar_id: str, event: dict, send_updates: Optional[str] = None) -> dict:
        def _insert():
            params = {"calendarId": calendar_id, "body": event}
            if send_updates:
                params["sendUpdates"] = send_updates
            return self._service().events().insert(**params).execute()

        try:
            return await asyncio.to_thread(_insert)
        except HttpError as e:
            logger.error(f"[CALENDAR] insert failed ({e.status_code}): {e.reason}")
            raise RemoteCollaboratorFailure("calendar", str(e.reason or e)) from e
        except Exception as e:
            logger.error(f"[CALENDAR] insert failed: {e}")
            raise RemoteCollaboratorFailure("calendar", str(e)) from e
