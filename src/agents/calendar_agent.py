from datetime import datetime, tzinfo
from typing import List, Optional

from src.calendar_client import CalendarClient
from src.exceptions import RemoteCollaboratorFailure
from src.logger import logger
from src.models import AvailabilityResult, BookingResult, CalendarEvent, TimeSpec
from src.time_utils import compose_instant, overlaps, parse_date, parse_event_instant


class CalendarAgent:
    """
    Availability and booking against a single calendar.

    Neither operation raises: every failure comes back as a negative result
    with a message the assistant can read out to the caller.
    """

    def __init__(
        self,
        calendar: CalendarClient,
        calendar_id: str,
        tz: tzinfo,
        tz_name: str,
        operator_email: Optional[str] = None,
        verify_before_booking: bool = True,
    ):
        self.calendar = calendar
        self.calendar_id = calendar_id
        self.tz = tz
        self.tz_name = tz_name
        self.operator_email = operator_email
        self.verify_before_booking = verify_before_booking

    def _window(self, date, start_time, end_time):
        spec = TimeSpec.build(parse_date(date, self.tz), start_time, end_time)
        start = compose_instant(spec.date, spec.start_time, self.tz)
        end = compose_instant(spec.date, spec.end_time, self.tz)
        return spec, start, end

    def _to_event(self, item: dict) -> Optional[CalendarEvent]:
        if item.get("status") == "cancelled" or item.get("transparency") == "transparent":
            return None
        try:
            return CalendarEvent(
                start=parse_event_instant(item.get("start") or {}, self.tz),
                end=parse_event_instant(item.get("end") or {}, self.tz),
                summary=item.get("summary"),
                attendees=[
                    a.get("email") for a in item.get("attendees") or []
                    if isinstance(a, dict) and a.get("email")
                ] or None,
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"[AVAILABILITY] Skipping unreadable event {item.get('id')}: {e}")
            return None

    async def find_conflicts(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        items = await self.calendar.list_events(self.calendar_id, start, end)
        events = [event for event in map(self._to_event, items) if event is not None]
        # The list filter is not trusted near the boundaries; recheck locally.
        return [event for event in events if overlaps(event.start, event.end, start, end)]

    async def check_availability(self, date, start_time, end_time) -> AvailabilityResult:
        try:
            spec, start, end = self._window(date, start_time, end_time)
        except ValueError as e:
            logger.warning(f"[AVAILABILITY] Rejected input: {e}")
            return AvailabilityResult(available=False, message=f"I couldn't understand that time: {e}")

        logger.info(f"[AVAILABILITY] Checking {start.isoformat()} to {end.isoformat()}")
        try:
            conflicts = await self.find_conflicts(start, end)
        except RemoteCollaboratorFailure as e:
            logger.error(f"[AVAILABILITY] {e}")
            return AvailabilityResult(
                available=False,
                message="Unable to check calendar availability at this time.",
            )

        if conflicts:
            logger.info(f"[AVAILABILITY] {len(conflicts)} conflicting event(s)")
            return AvailabilityResult(
                available=False,
                message=f"Sorry, {spec.date.isoformat()} from {spec.start_time} to {spec.end_time} is already booked.",
            )
        return AvailabilityResult(
            available=True,
            message=f"Yes, {spec.date.isoformat()} from {spec.start_time} to {spec.end_time} is available.",
        )

    def build_event(self, summary, start, end, description=None, attendee_email=None) -> dict:
        event = {
            "summary": summary,
            "description": description or "",
            "start": {"dateTime": start.isoformat(), "timeZone": self.tz_name},
            "end": {"dateTime": end.isoformat(), "timeZone": self.tz_name},
        }
        if attendee_email:
            attendees = [{"email": attendee_email}]
            if self.operator_email and self.operator_email != attendee_email:
                attendees.append({"email": self.operator_email})
            event["attendees"] = attendees
        return event

    async def book_appointment(
        self, summary, date, start_time, end_time, description=None, attendee_email=None
    ) -> BookingResult:
        try:
            spec, start, end = self._window(date, start_time, end_time)
        except ValueError as e:
            logger.warning(f"[BOOKING] Rejected input: {e}")
            return BookingResult(success=False, message=f"I couldn't book that time: {e}")

        slot = f"{spec.date.isoformat()} from {spec.start_time} to {spec.end_time}"
        try:
            if self.verify_before_booking and await self.find_conflicts(start, end):
                logger.info(f"[BOOKING] Slot {slot} taken, not booking")
                return BookingResult(
                    success=False,
                    message=f"Sorry, {slot} is no longer available.",
                )

            event = self.build_event(summary, start, end, description, attendee_email)
            created = await self.calendar.insert_event(
                self.calendar_id, event, send_updates="all" if attendee_email else None
            )
        except RemoteCollaboratorFailure as e:
            logger.error(f"[BOOKING] {e}")
            return BookingResult(
                success=False,
                message="Unable to book the appointment at this time.",
            )

        logger.info(f"[BOOKING] Created event {created.get('id')} for {slot}")
        return BookingResult(
            success=True,
            message=f"Appointment booked: {summary} on {slot}.",
            event_id=created.get("id"),
            link=created.get("htmlLink"),
        )
