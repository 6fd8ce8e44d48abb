"""Browser automation agent using Playwright persistent contexts."""

import hashlib
import re
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from campus_autofill.config import settings
from campus_autofill.core.errors import PageUnavailable
from campus_autofill.utils.logging import get_logger

logger = get_logger(__name__)

_CLOSED_MARKERS = (
    "has been closed",
    "target closed",
    "browser has disconnected",
    "context or browser has been closed",
)


def is_closed_error(error: BaseException) -> bool:
    """True when a Playwright error means the page or context is gone."""
    message = str(error).lower()
    return any(marker in message for marker in _CLOSED_MARKERS)


def profile_dir_for(user_key: str, root: Optional[str] = None) -> Path:
    """
    Durable browser profile directory for a user.

    The directory is reused across runs so a signed-in external identity
    survives between sessions.
    """
    root_path = Path(root or settings.browser_profiles_dir)
    slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", user_key).strip("._")[:48] or "user"
    digest = hashlib.sha1(user_key.encode("utf-8")).hexdigest()[:10]
    return root_path / f"{slug}-{digest}"


class BrowserAgent:
    """
    Owns one Playwright persistent browser context and its page.

    This is the only place the engine touches the automation library's
    lifecycle API; scanners, executors and navigators work on ``self.page``.
    """

    def __init__(
        self,
        user_data_dir: str,
        headless: Optional[bool] = None,
        viewport_size: Optional[tuple] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize the browser agent.

        Args:
            user_data_dir: Persistent profile directory for this user
            headless: Run browser in headless mode
            viewport_size: Browser viewport size (width, height)
            timeout: Default operation timeout in seconds
        """
        self.user_data_dir = str(user_data_dir)
        self.headless = settings.browser_headless if headless is None else headless
        self.viewport_size = viewport_size or (settings.viewport_width, settings.viewport_height)
        self.timeout = settings.browser_timeout if timeout is None else timeout
        self.logger = logger.bind(component="browser_agent")

        self.playwright = None
        self.context = None
        self.page = None
        self.is_initialized = False

    @property
    def is_closed(self) -> bool:
        """True once the page is gone, whoever closed it."""
        if self.page is None:
            return True
        try:
            return self.page.is_closed()
        except PlaywrightError:
            return True

    @property
    def current_url(self) -> Optional[str]:
        if self.is_closed:
            return None
        return self.page.url

    async def initialize(self) -> bool:
        """
        Launch Chromium with the user's persistent profile.

        Returns:
            True if initialization successful, False otherwise
        """
        if self.is_initialized:
            return True

        try:
            Path(self.user_data_dir).mkdir(parents=True, exist_ok=True)
            self.playwright = await async_playwright().start()

            self.context = await self.playwright.chromium.launch_persistent_context(
                self.user_data_dir,
                headless=self.headless,
                viewport={"width": self.viewport_size[0], "height": self.viewport_size[1]},
                args=[
                    "--no-first-run",
                    "--no-default-browser-check",
                    "--disable-blink-features=AutomationControlled",
                ],
            )
            self.context.set_default_timeout(self.timeout * 1000)

            pages = self.context.pages
            self.page = pages[0] if pages else await self.context.new_page()

            self.is_initialized = True
            self.logger.info(
                "Browser agent initialized successfully",
                headless=self.headless,
                user_data_dir=self.user_data_dir,
                viewport_size=self.viewport_size
            )
            return True

        except (PlaywrightError, OSError) as e:
            self.logger.error(
                "Failed to initialize browser agent",
                error=str(e),
                error_type=type(e).__name__
            )
            await self.close()
            return False

    async def navigate_to(self, url: str, timeout: Optional[int] = None) -> bool:
        """
        Navigate to a specific URL.

        Args:
            url: Target URL
            timeout: Navigation timeout in seconds

        Returns:
            True if navigation successful, False otherwise

        Raises:
            PageUnavailable: The page or context was closed
        """
        if self.is_closed:
            raise PageUnavailable("Page is closed")

        timeout_ms = (timeout or self.timeout) * 1000
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            self.logger.info("Navigated to URL", url=url, landed_on=self.page.url)
            return True

        except PlaywrightError as e:
            if is_closed_error(e) or self.is_closed:
                raise PageUnavailable(f"Page closed while loading {url}") from e
            self.logger.warning("Navigation failed", url=url, error=str(e))
            return False

    async def take_screenshot(self, path: Optional[str] = None) -> Optional[bytes]:
        """
        Take a full-page screenshot of the current page.

        Args:
            path: Optional file path to save screenshot

        Returns:
            Screenshot bytes if successful, None otherwise
        """
        if self.is_closed:
            return None

        try:
            screenshot_options: Dict[str, Any] = {"full_page": True}
            if path:
                screenshot_options["path"] = path

            screenshot = await self.page.screenshot(**screenshot_options)
            self.logger.debug(
                "Screenshot captured",
                path=path,
                size=len(screenshot) if screenshot else 0
            )
            return screenshot

        except PlaywrightError as e:
            self.logger.warning("Screenshot failed", error=str(e), path=path)
            return None

    async def close(self) -> None:
        """Close the browser context and stop Playwright. Safe to call twice."""
        try:
            if self.context is not None:
                await self.context.close()
        except PlaywrightError as e:
            self.logger.debug("Context already gone", error=str(e))

        try:
            if self.playwright is not None:
                await self.playwright.stop()
        except PlaywrightError as e:
            self.logger.debug("Playwright already stopped", error=str(e))

        if self.is_initialized:
            self.logger.info("Browser agent closed", user_data_dir=self.user_data_dir)

        self.context = None
        self.playwright = None
        self.page = None
        self.is_initialized = False


def create_browser_agent(
    user_key: str,
    headless: Optional[bool] = None,
    profiles_root: Optional[str] = None,
) -> BrowserAgent:
    """
    Factory function to create a browser agent bound to a user's profile.

    Args:
        user_key: User the browser profile belongs to
        headless: Run browser in headless mode
        profiles_root: Root directory of per-user profiles

    Returns:
        Configured BrowserAgent instance
    """
    return BrowserAgent(
        user_data_dir=str(profile_dir_for(user_key, profiles_root)),
        headless=headless,
    )
