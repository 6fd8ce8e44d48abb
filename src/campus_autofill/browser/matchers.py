"""Prioritized structural matchers for question pages.

Every list here is evaluated in order and the first matcher that yields an
element wins. Supporting a new markup variant means appending a matcher, not
touching the scanner or navigator code.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class StructuralMatcher:
    """A named CSS selector, optionally narrowed to elements containing text."""
    name: str
    selector: str
    has_text: Optional[str] = None

    def apply(self, root):
        """Return a locator for this matcher under ``root`` (a page or locator)."""
        locator = root.locator(self.selector)
        if self.has_text:
            locator = locator.filter(has_text=self.has_text)
        return locator


# Question containers, most specific markup first.
QUESTION_CONTAINERS: Tuple[StructuralMatcher, ...] = (
    StructuralMatcher("google-forms-listitem", 'div[role="listitem"]'),
    StructuralMatcher("google-forms-legacy", ".freebirdFormviewerComponentsQuestionBaseRoot"),
    StructuralMatcher("data-params", '[data-params*="question"]'),
    StructuralMatcher("fieldset", "fieldset"),
    StructuralMatcher("form-group", ".form-group"),
)

# Label-bearing elements inside a container.
QUESTION_LABELS: Tuple[StructuralMatcher, ...] = (
    StructuralMatcher("aria-heading", '[role="heading"]'),
    StructuralMatcher("google-forms-legacy-title", ".freebirdFormviewerComponentsQuestionBaseTitle"),
    StructuralMatcher("label", "label"),
    StructuralMatcher("legend", "legend"),
)

# Anything a user can answer. Containers without one of these are headers,
# images or descriptions and are skipped.
WIDGET_SELECTOR = (
    'input, textarea, select, [contenteditable="true"], [role="radiogroup"], '
    '[role="radio"], [role="checkbox"], [role="listbox"]'
)

# Widget-specific selectors used by the fill executor.
DATE_INPUT = 'input[type="date"]'
FILE_INPUT = 'input[type="file"]'
TEXT_INPUT = (
    'input[type="text"], input[type="email"], input[type="tel"], '
    'input[type="number"], input[type="url"], textarea'
)
CONTENTEDITABLE = '[contenteditable="true"]'
NATIVE_SELECT = "select"
NATIVE_OPTION = "option"
LISTBOX = '[role="listbox"]'
LISTBOX_OPTION = '[role="option"]'
RADIO_OPTION = '[role="radio"], input[type="radio"]'
CHECKBOX_OPTION = '[role="checkbox"], input[type="checkbox"]'

# Form-level controls, in the order they are looked for.
SUBMIT_CONTROLS: Tuple[StructuralMatcher, ...] = (
    StructuralMatcher("aria-button-submit", 'div[role="button"]', "Submit"),
    StructuralMatcher("button-submit", "button", "Submit"),
    StructuralMatcher("input-submit", 'input[type="submit"]'),
    StructuralMatcher("button-type-submit", 'button[type="submit"]'),
)

NEXT_CONTROLS: Tuple[StructuralMatcher, ...] = (
    StructuralMatcher("aria-button-next", 'div[role="button"]', "Next"),
    StructuralMatcher("button-next", "button", "Next"),
    StructuralMatcher("aria-button-continue", 'div[role="button"]', "Continue"),
    StructuralMatcher("button-continue", "button", "Continue"),
)

# External-identity sign-in walls.
LOGIN_URL_MARKERS: Tuple[str, ...] = (
    "accounts.google.com",
    "/servicelogin",
    "/signin/",
)

LOGIN_WALL: Tuple[StructuralMatcher, ...] = (
    StructuralMatcher("google-identifier", "#identifierId"),
    StructuralMatcher("identifier-input", 'input[name="identifier"]'),
)

# Text that shows a submission went through.
SUBMISSION_INDICATORS: Tuple[str, ...] = (
    "Your response has been recorded",
    "Thanks for submitting",
    "Thank you",
)
SUBMISSION_URL_MARKERS: Tuple[str, ...] = ("formresponse",)
