"""Multi-page traversal for question forms."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from campus_autofill.browser.agent import is_closed_error
from campus_autofill.browser.matchers import (
    LOGIN_URL_MARKERS,
    LOGIN_WALL,
    NEXT_CONTROLS,
    SUBMISSION_INDICATORS,
    SUBMISSION_URL_MARKERS,
    SUBMIT_CONTROLS,
    StructuralMatcher,
)
from campus_autofill.browser.scanner import FormScanner
from campus_autofill.config import settings
from campus_autofill.core.errors import NavigationTimeout, PageUnavailable
from campus_autofill.core.models import Diagnostics
from campus_autofill.utils.logging import get_logger

logger = get_logger(__name__)

STOP_SUBMIT_VISIBLE = "submit-visible"
STOP_NO_CONTROLS = "no-controls"
STOP_PAGE_CAP = "page-cap"
STOP_NAVIGATION_TIMEOUT = "navigation-timeout"

PageHandler = Callable[[int], Awaitable[Any]]


class PageNavigator:
    """
    Drives a form from page to page until a Submit control shows up.

    Scanning -> Submit visible -> done; Scanning -> Next visible -> advancing
    -> scanning; Scanning -> neither -> done. ``max_pages`` bounds the loop.
    """

    def __init__(
        self,
        scanner: Optional[FormScanner] = None,
        max_pages: Optional[int] = None,
        retries: Optional[int] = None,
        poll_attempts: Optional[int] = None,
        poll_interval: Optional[float] = None,
        grace_period: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.scanner = scanner or FormScanner()
        self.max_pages = settings.max_pages if max_pages is None else max_pages
        self.retries = max(1, settings.navigation_retries if retries is None else retries)
        self.poll_attempts = settings.transition_poll_attempts if poll_attempts is None else poll_attempts
        self.poll_interval = settings.transition_poll_interval if poll_interval is None else poll_interval
        self.grace_period = settings.transition_grace_period if grace_period is None else grace_period
        self.timeout_ms = (settings.browser_timeout if timeout is None else timeout) * 1000
        self.logger = logger.bind(component="page_navigator")

    async def find_control(self, page: Any, matchers: Sequence[StructuralMatcher]) -> Optional[Any]:
        """First visible element matched by the ordered matchers."""
        try:
            for matcher in matchers:
                candidates = matcher.apply(page)
                if await candidates.count() == 0:
                    continue
                control = candidates.first
                if await control.is_visible():
                    return control
        except PlaywrightError as e:
            if is_closed_error(e):
                raise PageUnavailable("Page closed while looking for form controls") from e
            self.logger.warning("Control lookup failed", error=str(e))
        return None

    async def find_submit(self, page: Any) -> Optional[Any]:
        return await self.find_control(page, SUBMIT_CONTROLS)

    async def find_next(self, page: Any) -> Optional[Any]:
        return await self.find_control(page, NEXT_CONTROLS)

    async def detect_login_wall(self, page: Any) -> bool:
        """True when the page is an external sign-in screen."""
        url = (page.url or "").lower()
        if any(marker in url for marker in LOGIN_URL_MARKERS):
            return True
        try:
            for matcher in LOGIN_WALL:
                if await matcher.apply(page).count():
                    return True
        except PlaywrightError as e:
            if is_closed_error(e):
                raise PageUnavailable("Page closed while checking for sign-in") from e
            self.logger.warning("Sign-in check failed", error=str(e))
        return False

    async def advance(self, page: Any, next_control: Any) -> bool:
        """
        Click Next and wait for the displayed questions to change.

        Returns:
            True if a transition was observed, False if the grace period had
            to be used instead

        Raises:
            NavigationTimeout: Every click attempt raised a control error
            PageUnavailable: The page closed
        """
        before = await self.scanner.fingerprint(page)

        for attempt in range(1, self.retries + 1):
            try:
                await next_control.click(timeout=self.timeout_ms)
                break
            except PlaywrightError as e:
                if is_closed_error(e):
                    raise PageUnavailable("Page closed while advancing") from e
                self.logger.warning("Next click failed", attempt=attempt, error=str(e))
                if attempt == self.retries:
                    raise NavigationTimeout(f"Next control did not respond after {self.retries} attempts") from e
                await asyncio.sleep(self.poll_interval)

        for _ in range(self.poll_attempts):
            await asyncio.sleep(self.poll_interval)
            if await self.scanner.fingerprint(page) != before:
                return True

        self.logger.warning("Page transition not confirmed", grace_period=self.grace_period)
        await asyncio.sleep(self.grace_period)
        return False

    async def run(self, page: Any, handle_page: PageHandler, diagnostics: Diagnostics) -> Diagnostics:
        """
        Fill every page until Submit shows, controls run out, or the cap hits.

        ``handle_page`` is awaited once per page with the zero-based page index.
        Stop reason, page count and warnings are recorded on ``diagnostics``.
        """
        for page_index in range(self.max_pages):
            await handle_page(page_index)
            diagnostics.pages_visited += 1

            if await self.find_submit(page) is not None:
                diagnostics.stop_reason = STOP_SUBMIT_VISIBLE
                break

            next_control = await self.find_next(page)
            if next_control is None:
                diagnostics.stop_reason = STOP_NO_CONTROLS
                break

            try:
                confirmed = await self.advance(page, next_control)
            except NavigationTimeout as e:
                diagnostics.warnings.append(f"Page {page_index + 1}: {e}")
                diagnostics.stop_reason = STOP_NAVIGATION_TIMEOUT
                break

            if not confirmed:
                diagnostics.warnings.append(f"Page {page_index + 1}: transition not confirmed")
        else:
            diagnostics.stop_reason = STOP_PAGE_CAP

        self.logger.info(
            "Form traversal finished",
            pages_visited=diagnostics.pages_visited,
            stop_reason=diagnostics.stop_reason
        )
        return diagnostics

    async def confirm_submission(self, page: Any, timeout: Optional[float] = None) -> bool:
        """Wait for a URL marker or confirmation text after submitting."""
        timeout = settings.submit_confirm_timeout if timeout is None else timeout
        interval = max(self.poll_interval, 0.05)
        attempts = max(1, int(timeout / interval))

        for attempt in range(attempts):
            try:
                if await self._shows_confirmation(page):
                    return True
            except PlaywrightError as e:
                if is_closed_error(e):
                    return False
                self.logger.debug("Confirmation check failed", error=str(e))
            if attempt < attempts - 1:
                await asyncio.sleep(interval)
        return False

    async def _shows_confirmation(self, page: Any) -> bool:
        url = (page.url or "").lower()
        if any(marker in url for marker in SUBMISSION_URL_MARKERS):
            return True
        body_text = (await page.locator("body").inner_text(timeout=self.timeout_ms)).lower()
        return any(indicator.lower() in body_text for indicator in SUBMISSION_INDICATORS)


def create_page_navigator(scanner: Optional[FormScanner] = None, **overrides) -> PageNavigator:
    """Factory function to create a page navigator."""
    return PageNavigator(scanner=scanner, **overrides)
