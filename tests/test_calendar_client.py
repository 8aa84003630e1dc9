from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from src.calendar_client import GoogleCalendarClient, credentials_from_settings
from src.exceptions import RemoteCollaboratorFailure


def make_settings(**overrides):
    values = {
        "GOOGLE_AUTH_MODE": "oauth",
        "GOOGLE_CLIENT_ID": "client-id",
        "GOOGLE_CLIENT_SECRET": "client-secret",
        "GOOGLE_REFRESH_TOKEN": "refresh-token",
        "GOOGLE_SERVICE_ACCOUNT_FILE": None,
        "GOOGLE_DELEGATED_USER": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_oauth_credentials_carry_refresh_token():
    creds = credentials_from_settings(make_settings())

    assert creds.refresh_token == "refresh-token"
    assert creds.client_id == "client-id"
    assert creds.token is None


def test_oauth_requires_all_secrets():
    with pytest.raises(ValueError, match="GOOGLE_REFRESH_TOKEN"):
        credentials_from_settings(make_settings(GOOGLE_REFRESH_TOKEN=None))


def test_service_account_requires_key_file():
    with pytest.raises(ValueError, match="GOOGLE_SERVICE_ACCOUNT_FILE"):
        credentials_from_settings(make_settings(GOOGLE_AUTH_MODE="service_account"))


def test_unknown_auth_mode():
    with pytest.raises(ValueError, match="kerberos"):
        credentials_from_settings(make_settings(GOOGLE_AUTH_MODE="kerberos"))


@pytest.fixture
def google_client(tz):
    client = GoogleCalendarClient(credentials=None)
    service = MagicMock()
    client._service = lambda: service
    return client, service


@pytest.mark.asyncio
async def test_list_events_queries_window(google_client, tz):
    client, service = google_client
    service.events.return_value.list.return_value.execute.return_value = {"items": [{"id": "a"}]}
    start = datetime(2026, 3, 10, 14, 0, tzinfo=tz)
    end = datetime(2026, 3, 10, 15, 0, tzinfo=tz)

    items = await client.list_events("primary", start, end)

    assert items == [{"id": "a"}]
    service.events.return_value.list.assert_called_once_with(
        calendarId="primary",
        timeMin="2026-03-10T14:00:00-04:00",
        timeMax="2026-03-10T15:00:00-04:00",
        singleEvents=True,
        orderBy="startTime",
    )


@pytest.mark.asyncio
async def test_insert_passes_send_updates_only_when_asked(google_client):
    client, service = google_client
    service.events.return_value.insert.return_value.execute.return_value = {"id": "new"}

    await client.insert_event("primary", {"summary": "x"}, send_updates="all")
    await client.insert_event("primary", {"summary": "y"})

    calls = service.events.return_value.insert.call_args_list
    assert calls[0].kwargs == {"calendarId": "primary", "body": {"summary": "x"}, "sendUpdates": "all"}
    assert calls[1].kwargs == {"calendarId": "primary", "body": {"summary": "y"}}


@pytest.mark.asyncio
async def test_http_error_becomes_collaborator_failure(google_client, tz):
    client, service = google_client
    resp = httplib2.Response({"status": "503"})
    service.events.return_value.list.return_value.execute.side_effect = HttpError(
        resp, b'{"error": {"message": "Backend Error"}}'
    )
    now = datetime(2026, 3, 10, 14, 0, tzinfo=tz)

    with pytest.raises(RemoteCollaboratorFailure) as exc:
        await client.list_events("primary", now, now)

    assert exc.value.collaborator == "calendar"
