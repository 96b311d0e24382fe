"""Calendar sessions: one member's live view of the family calendar.

A session owns everything that must live and die together while a member
has the calendar open: the four collection subscriptions, the reminder
evaluator with its notified ledger, the completion ledger, and the
scheduler job that ticks the evaluator. ``close()`` tears all of it down.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import ValidationError

from famcal.core import db_client, scheduler
from famcal.core.config import constants, settings
from famcal.core.errors import AuthFailureError, StoreUnavailableError
from famcal.core.logging import log_with_member_context, span
from famcal.core.realtime import Unsubscribe
from famcal.core.time_utils import local_now, to_local, today_str
from famcal.domain.message import ChatMessage
from famcal.interface.notification_sink import NotificationSink, build_notification_sink
from famcal.models.service_models import SessionOverview, UpcomingEvent
from famcal.services import activity_service, store_adapter
from famcal.services.chat_service import MESSAGE_SORT
from famcal.services.completion_service import CompletionLedger, today_filter
from famcal.services.merge_service import upcoming_events
from famcal.services.reminder_service import ReminderEvaluator


logger = logging.getLogger(__name__)


class SessionStatus(StrEnum):
    """Lifecycle of a calendar session."""

    PENDING = "pending"
    SIGNED_IN = "signed_in"
    ERROR = "error"
    CLOSED = "closed"


class CalendarSession:
    """Live calendar state for one member."""

    def __init__(
        self,
        *,
        member: str,
        sink: NotificationSink,
        clock: Callable[[], datetime] = local_now,
        session_id: str | None = None,
    ) -> None:
        """Create a session in PENDING state; call start() to go live."""
        self.id = session_id or uuid.uuid4().hex
        self.member = member
        self.status = SessionStatus.PENDING
        self.token: str | None = None
        self.loading = True
        self.messages: list[ChatMessage] = []
        self.evaluator = ReminderEvaluator(sink=sink, clock=clock)
        self.ledger = CompletionLedger(clock=clock)
        self._clock = clock
        self.opened_at = clock()
        self._unsubscribes: dict[str, Unsubscribe] = {}
        self._checked_date: str | None = None

    @property
    def job_id(self) -> str:
        """Scheduler job id of this session's reminder tick."""
        return f"reminders:{self.id}"

    def on_snapshot(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Entry point for every pushed snapshot; each fully replaces the previous one."""
        if collection in (constants.COLLECTION_ACTIVITIES, constants.COLLECTION_FIXED_ACTIVITIES):
            self.evaluator.on_snapshot(collection, records)
            if collection == constants.COLLECTION_ACTIVITIES:
                self.loading = False
        elif collection == constants.COLLECTION_CHECKED_TASKS:
            self.ledger.on_snapshot(records)
        elif collection == constants.COLLECTION_MESSAGES:
            messages = []
            for record in records:
                try:
                    messages.append(ChatMessage.model_validate(record))
                except ValidationError:
                    logger.warning("Skipping malformed message", extra={"record_id": record.get("id")})
            self.messages = messages
        else:
            logger.warning("Snapshot for unknown collection", extra={"collection": collection})

    def _callback(self, collection: str) -> Callable[[list[dict[str, Any]]], None]:
        def deliver(records: list[dict[str, Any]]) -> None:
            self.on_snapshot(collection, records)

        return deliver

    async def start(self) -> None:
        """Open the four subscriptions and schedule the reminder tick.

        Raises:
            StoreUnavailableError: If any subscription cannot load its first snapshot
        """
        with span("session_service.start"):
            try:
                await self._subscribe(constants.COLLECTION_ACTIVITIES)
                await self._subscribe(constants.COLLECTION_FIXED_ACTIVITIES)
                await self._subscribe_checked_tasks()
                await self._subscribe(constants.COLLECTION_MESSAGES, sort=MESSAGE_SORT)
            except db_client.DatabaseError as e:
                self._unsubscribe_all()
                self.status = SessionStatus.ERROR
                raise StoreUnavailableError(f"Could not load calendar: {e}") from e

            scheduler.schedule_reminder_job(self.job_id, self.tick)
            self.status = SessionStatus.SIGNED_IN
            log_with_member_context(logger, "info", "Session started", member=self.member, session_id=self.id)

    async def _subscribe(self, collection: str, *, filter_query: str = "", sort: str = "") -> None:
        unsubscribe = await store_adapter.subscribe(
            collection, self._callback(collection), filter_query=filter_query, sort=sort
        )
        self._unsubscribes[collection] = unsubscribe

    async def _subscribe_checked_tasks(self) -> None:
        today = today_str(self._clock())
        previous = self._unsubscribes.get(constants.COLLECTION_CHECKED_TASKS)
        await self._subscribe(constants.COLLECTION_CHECKED_TASKS, filter_query=today_filter(today))
        if previous is not None:
            previous()
        self._checked_date = today

    def expired(self, now: datetime | None = None) -> bool:
        """True once the session is older than its token lifetime."""
        now = now or self._clock()
        return now - self.opened_at > timedelta(seconds=constants.SESSION_TOKEN_MAX_AGE_SECONDS)

    async def tick(self) -> None:
        """One reminder evaluation; also re-scopes the checklist after midnight.

        A session whose token has expired is closed and forgotten instead.
        """
        if self.status is not SessionStatus.SIGNED_IN:
            return
        now = self._clock()
        if self.expired(now):
            log_with_member_context(logger, "info", "Session expired", member=self.member, session_id=self.id)
            self.close()
            _sessions.pop(self.id, None)
            return
        if self._checked_date != today_str(now):
            try:
                await self._subscribe_checked_tasks()
            except db_client.DatabaseError as e:
                logger.warning(
                    "Checklist re-scope failed, retrying next tick",
                    extra={"session_id": self.id, "error": str(e)},
                )
            else:
                logger.info(
                    "Date rolled over, checklist re-scoped", extra={"session_id": self.id, "date": self._checked_date}
                )
        await self.evaluator.tick()

    def _unsubscribe_all(self) -> None:
        for unsubscribe in self._unsubscribes.values():
            unsubscribe()
        self._unsubscribes.clear()

    def close(self) -> None:
        """Cancel the reminder job and every subscription together. Safe to call twice."""
        if self.status is SessionStatus.CLOSED:
            return
        scheduler.cancel_job(self.job_id)
        self._unsubscribe_all()
        self.status = SessionStatus.CLOSED
        log_with_member_context(logger, "info", "Session closed", member=self.member, session_id=self.id)

    @property
    def subscription_count(self) -> int:
        """Number of open subscriptions."""
        return len(self._unsubscribes)

    def overview(self, now: datetime | None = None) -> SessionOverview:
        """Build the member's main view from the latest snapshots."""
        now = to_local(now or self._clock())
        upcoming = [
            UpcomingEvent(
                identity=event.identity,
                member=event.member,
                text=event.text,
                kind=event.kind.value,
                occurrence_at=event.occurrence_at,
            )
            for event in upcoming_events(self.evaluator.events, now=now)
        ]
        return SessionOverview(
            member=self.member,
            status=self.status.value,
            schedule=activity_service.member_schedule(self.evaluator.activities, self.member),
            checklist=activity_service.member_checklist(
                self.evaluator.fixed_activities, self.member, self.ledger.checked_task_ids()
            ),
            messages=self.messages,
            upcoming=upcoming,
            loading=self.loading,
        )


# Live sessions by id
_sessions: dict[str, CalendarSession] = {}
_sink: NotificationSink | None = None


def get_notification_sink() -> NotificationSink:
    """The process-wide sink; notification permission is read once, on first use."""
    global _sink  # noqa: PLW0603
    if _sink is None:
        _sink = build_notification_sink(settings)
    return _sink


def _token_serializer() -> URLSafeTimedSerializer:
    secret = settings.require_credential("session_secret_key", "Session signing")
    return URLSafeTimedSerializer(secret, salt=constants.SESSION_TOKEN_SALT)


def sign_in_anonymously(session: CalendarSession) -> str:
    """Issue a signed anonymous token bound to the session.

    Raises:
        AuthFailureError: If tokens cannot be issued
    """
    try:
        return _token_serializer().dumps({"sid": session.id, "member": session.member})
    except ValueError as e:
        raise AuthFailureError(f"Anonymous sign-in failed: {e}") from e


async def open_session(
    member: str,
    *,
    sink: NotificationSink | None = None,
    clock: Callable[[], datetime] = local_now,
) -> CalendarSession:
    """Sign a member in and start their live session.

    Raises:
        InvalidMemberError: If the member is not configured
        StoreUnavailableError: If the store cannot be reached or read
        AuthFailureError: If the anonymous identity cannot be issued
    """
    activity_service.validate_member(member)
    session = CalendarSession(member=member, sink=sink or get_notification_sink(), clock=clock)

    try:
        session.token = sign_in_anonymously(session)
    except AuthFailureError:
        session.status = SessionStatus.ERROR
        log_with_member_context(logger, "error", "Anonymous sign-in failed", member=member)
        raise

    if not await db_client.ping():
        session.status = SessionStatus.ERROR
        log_with_member_context(logger, "error", "Store unavailable", member=member)
        raise StoreUnavailableError("Calendar store is unavailable")

    await session.start()
    _sessions[session.id] = session
    return session


def load_session(token: str) -> CalendarSession:
    """Resolve a session token to its live session.

    Raises:
        AuthFailureError: If the token is invalid, expired, or its session is gone
    """
    try:
        data = _token_serializer().loads(token, max_age=constants.SESSION_TOKEN_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError) as e:
        raise AuthFailureError("Invalid or expired session token") from e

    session = _sessions.get(data.get("sid", ""))
    if session is None or session.status is not SessionStatus.SIGNED_IN:
        raise AuthFailureError("Session is not active")
    return session


def close_session(token: str) -> None:
    """Close the session behind a token and forget it."""
    session = load_session(token)
    session.close()
    _sessions.pop(session.id, None)


def close_all_sessions() -> None:
    """Close every live session (application shutdown)."""
    for session in list(_sessions.values()):
        session.close()
    _sessions.clear()


def active_session_count() -> int:
    """Number of live sessions."""
    return len(_sessions)
