"""Session lifecycle: start, continue after sign-in, submit, cancel."""

import asyncio
import base64
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional

from playwright.async_api import Error as PlaywrightError

from campus_autofill.browser.agent import BrowserAgent, create_browser_agent, is_closed_error
from campus_autofill.browser.executor import FillExecutor
from campus_autofill.browser.navigator import STOP_NAVIGATION_TIMEOUT, PageNavigator
from campus_autofill.browser.scanner import FormScanner
from campus_autofill.config import settings
from campus_autofill.core.errors import PageUnavailable, SessionNotFound
from campus_autofill.core.models import (
    CancelResult,
    Diagnostics,
    FillOutcome,
    Session,
    SessionState,
    StartResult,
    SubmitResult,
    UnmatchedReason,
)
from campus_autofill.core.registry import InMemorySessionRegistry, SessionRegistry
from campus_autofill.mapping.mapper import FieldMapper
from campus_autofill.utils.logging import get_logger, log_session_state

logger = get_logger(__name__)

BrowserFactory = Callable[..., BrowserAgent]


class SessionManager:
    """
    Owns automation sessions from launch to submission.

    A session waits in ``AWAITING_LOGIN`` while a human signs in and in
    ``AWAITING_CONFIRMATION`` after filling; ``submit`` and ``cancel`` are the
    only ways out of the latter. Each user key has at most one live session.
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        browser_factory: Optional[BrowserFactory] = None,
        scanner: Optional[FormScanner] = None,
        mapper: Optional[FieldMapper] = None,
        executor: Optional[FillExecutor] = None,
        navigator: Optional[PageNavigator] = None,
        navigation_retries: Optional[int] = None,
    ):
        self.registry = registry or InMemorySessionRegistry()
        self.browser_factory = browser_factory or create_browser_agent
        self.scanner = scanner or FormScanner()
        self.mapper = mapper or FieldMapper()
        self.executor = executor or FillExecutor()
        self.navigator = navigator or PageNavigator(scanner=self.scanner)
        self.navigation_retries = max(
            1, settings.navigation_retries if navigation_retries is None else navigation_retries
        )
        self._user_locks: Dict[str, asyncio.Lock] = {}
        self._user_lock_holders: Dict[str, int] = {}
        self.logger = logger.bind(component="session_manager")

    @asynccontextmanager
    async def _user_lock(self, user_key: str) -> AsyncIterator[None]:
        """Serialize session replacement per user; the lock lives while anyone holds or awaits it."""
        lock = self._user_locks.setdefault(user_key, asyncio.Lock())
        self._user_lock_holders[user_key] = self._user_lock_holders.get(user_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._user_lock_holders[user_key] -= 1
            if self._user_lock_holders[user_key] == 0:
                del self._user_lock_holders[user_key]
                del self._user_locks[user_key]

    async def start(
        self,
        user_key: str,
        form_url: str,
        profile: Mapping[str, Any],
        headless: Optional[bool] = None,
    ) -> StartResult:
        """
        Open the form in the user's browser profile and fill it.

        Any live session for the same user is closed first; a run still in
        progress on it stops with ``PageUnavailable``. A form that never loads
        is reported through ``diagnostics.stop_reason`` and the session stays
        open so that ``continue_session`` can load it again.

        Raises:
            PageUnavailable: The browser could not be launched or closed mid-run
        """
        async with self._user_lock(user_key):
            previous = await self.registry.get_by_user(user_key)
            if previous is not None:
                self.logger.info("Replacing live session", previous_session_id=previous.id, user_key=user_key)
                await self._close(previous, SessionState.CANCELLED)

            browser = self.browser_factory(user_key, headless=headless)
            session = Session(id=str(uuid.uuid4()), user_key=user_key, form_url=form_url, browser=browser)

            if not await browser.initialize():
                raise PageUnavailable("Browser could not be launched")

            await self.registry.put(session)
            self.logger.info("Session started", session_id=session.id, user_key=user_key, form_url=form_url)

        async with session.lock:
            try:
                if not await self._load_form(session):
                    return await self._load_failed(session)
                return await self._fill_or_wait(session, profile)
            except PageUnavailable as e:
                await self._fail(session, e)
                raise

    async def continue_session(self, session_id: str, profile: Mapping[str, Any]) -> StartResult:
        """
        Resume a session after the human signed in.

        Raises:
            SessionNotFound: Unknown id, or its page has been closed
        """
        session = await self._require(session_id)

        async with session.lock:
            if session.browser.is_closed or not session.is_live:
                await self._close(session, SessionState.FAILED)
                raise SessionNotFound(session_id, "Session page is no longer open")

            try:
                if not await self.navigator.detect_login_wall(session.page):
                    _, _, count = await self.scanner.find_containers(session.page)
                    if count == 0 and not await self._load_form(session):
                        return await self._load_failed(session)
                return await self._fill_or_wait(session, profile)
            except PageUnavailable as e:
                await self._fail(session, e)
                raise

    async def submit(self, session_id: str) -> SubmitResult:
        """
        Click the form's submit control after human confirmation.

        Raises:
            SessionNotFound: Unknown session id
        """
        session = await self.registry.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)

        async with session.lock:
            if session.browser.is_closed:
                await self._close(session, SessionState.FAILED)
                return SubmitResult(success=False, reason="page already closed")

            if session.state != SessionState.AWAITING_CONFIRMATION:
                return SubmitResult(
                    success=False,
                    reason=f"session is {session.state.value}, not awaiting confirmation"
                )

            try:
                control = await self.navigator.find_submit(session.page)
            except PageUnavailable:
                await self._close(session, SessionState.FAILED)
                return SubmitResult(success=False, reason="page already closed")

            if control is None:
                self.logger.warning("Submit control not found", session_id=session_id)
                return SubmitResult(success=False, clicked=False, reason="submit control not found")

            try:
                await control.click(timeout=self.navigator.timeout_ms)
            except PlaywrightError as e:
                if is_closed_error(e):
                    await self._close(session, SessionState.FAILED)
                    return SubmitResult(success=False, reason="page already closed")
                self.logger.warning("Submit click failed", session_id=session_id, error=str(e))
                return SubmitResult(success=False, clicked=False, reason=str(e))

            confirmed = await self.navigator.confirm_submission(session.page)
            await self._close(session, SessionState.SUBMITTED)
            self.logger.info("Form submitted", session_id=session_id, confirmed=confirmed)
            return SubmitResult(success=True, clicked=True, confirmed=confirmed)

    async def cancel(self, session_id: str) -> CancelResult:
        """
        Close a session without submitting.

        Does not wait for a run in progress: closing the browser makes its
        next page operation fail with ``PageUnavailable``.
        """
        session = await self.registry.get(session_id)
        if session is None:
            return CancelResult(cancelled=False)

        await self._close(session, SessionState.CANCELLED)
        self.logger.info("Session cancelled", session_id=session_id)
        return CancelResult(cancelled=True)

    async def get(self, session_id: str) -> Optional[Session]:
        return await self.registry.get(session_id)

    async def active_sessions(self) -> List[Session]:
        return [session for session in await self.registry.all() if session.is_live]

    async def shutdown(self) -> None:
        """Close every registered session."""
        for session in await self.registry.all():
            await self._close(session, SessionState.CANCELLED)
        self.logger.info("Session manager shut down")

    async def _require(self, session_id: str) -> Session:
        session = await self.registry.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def _load_form(self, session: Session) -> bool:
        session.diagnostics = Diagnostics()
        for attempt in range(1, self.navigation_retries + 1):
            if await session.browser.navigate_to(session.form_url):
                return True
            session.diagnostics.warnings.append(f"Load attempt {attempt} failed for {session.form_url}")
        return False

    async def _load_failed(self, session: Session) -> StartResult:
        session.state = SessionState.STARTING
        session.diagnostics.stop_reason = STOP_NAVIGATION_TIMEOUT
        session.diagnostics.warnings.append(
            f"Form did not load after {self.navigation_retries} attempts: {session.form_url}"
        )
        self.logger.warning("Form did not load", **log_session_state(session))
        snapshot = await self._snapshot(session)
        return StartResult(
            session_id=session.id,
            needs_login=False,
            state=session.state,
            diagnostics=session.diagnostics,
            snapshot=snapshot,
        )

    async def _fill_or_wait(self, session: Session, profile: Mapping[str, Any]) -> StartResult:
        if await self.navigator.detect_login_wall(session.page):
            session.state = SessionState.AWAITING_LOGIN
            self.logger.info("Sign-in required", **log_session_state(session))
            return StartResult(session_id=session.id, needs_login=True, state=session.state)

        session.state = SessionState.FILLING
        load_warnings = list(session.diagnostics.warnings)
        session.diagnostics = Diagnostics(warnings=load_warnings)

        async def handle_page(page_index: int) -> None:
            await self._fill_page(session, profile, page_index)

        await self.navigator.run(session.page, handle_page, session.diagnostics)

        if not session.is_live:
            raise PageUnavailable("Session was closed while filling")

        session.state = SessionState.AWAITING_CONFIRMATION
        snapshot = await self._snapshot(session)
        self.logger.info("Form filled, awaiting confirmation", **log_session_state(session))
        return StartResult(
            session_id=session.id,
            needs_login=False,
            state=session.state,
            diagnostics=session.diagnostics,
            snapshot=snapshot,
        )

    async def _fill_page(self, session: Session, profile: Mapping[str, Any], page_index: int) -> None:
        questions = await self.scanner.scan(session.page)
        for question in questions:
            key = self.mapper.find_match(question.composite_label)
            if key is None:
                outcome = FillOutcome.unmatched(question, UnmatchedReason.NO_MAPPING, page_index=page_index)
            else:
                outcome = await self.executor.fill(question, key, profile, page_index=page_index)
            session.diagnostics.record(outcome)

    async def _snapshot(self, session: Session) -> Optional[str]:
        image = await session.browser.take_screenshot()
        if image:
            session.last_snapshot = image
            return base64.b64encode(image).decode("ascii")
        return None

    async def _fail(self, session: Session, error: Exception) -> None:
        if not session.is_live:
            # Cancelled or replaced while running; the closing call already cleaned up.
            self.logger.info("Run stopped by session close", error=str(error), **log_session_state(session))
            return

        if not session.browser.is_closed:
            await self._snapshot(session)
        if isinstance(error, PageUnavailable) and error.snapshot is None:
            error.snapshot = session.last_snapshot
        self.logger.error("Session failed", error=str(error), **log_session_state(session))
        await self._close(session, SessionState.FAILED)

    async def _close(self, session: Session, state: SessionState) -> None:
        if session.is_live:
            session.state = state
        await session.browser.close()
        await self.registry.delete(session.id)


def create_session_manager(**overrides) -> SessionManager:
    """Factory function to create a session manager with default components."""
    return SessionManager(**overrides)
