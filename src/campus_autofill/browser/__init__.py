"""Browser automation components: scanning, filling and navigating form pages."""

from campus_autofill.browser.agent import BrowserAgent, create_browser_agent
from campus_autofill.browser.executor import FillExecutor, create_fill_executor
from campus_autofill.browser.navigator import PageNavigator, create_page_navigator
from campus_autofill.browser.scanner import FormScanner, create_form_scanner

__all__ = [
    "BrowserAgent", "create_browser_agent",
    "FormScanner", "create_form_scanner",
    "FillExecutor", "create_fill_executor",
    "PageNavigator", "create_page_navigator",
]
