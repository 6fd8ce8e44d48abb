"""Enumerate the questions on the currently displayed form page."""

from typing import Any, List, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError

from campus_autofill.browser.agent import is_closed_error
from campus_autofill.browser.matchers import (
    CHECKBOX_OPTION,
    CONTENTEDITABLE,
    DATE_INPUT,
    FILE_INPUT,
    LISTBOX,
    NATIVE_SELECT,
    QUESTION_CONTAINERS,
    QUESTION_LABELS,
    RADIO_OPTION,
    TEXT_INPUT,
    WIDGET_SELECTOR,
    StructuralMatcher,
)
from campus_autofill.config import settings
from campus_autofill.core.errors import PageUnavailable
from campus_autofill.core.models import InputAttributes, Question, WidgetType
from campus_autofill.utils.dates import placeholder_format
from campus_autofill.utils.logging import get_logger
from campus_autofill.utils.text import normalize

logger = get_logger(__name__)

REQUIRED_MARKERS = ("required",)
_FINGERPRINT_LABEL_LENGTH = 40


def first_line(text: Optional[str]) -> str:
    """First non-empty line of a block of visible text."""
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def clean_label(text: Optional[str]) -> str:
    """Question label without the trailing required-asterisk."""
    return first_line(text).rstrip("*").strip()


def detect_required(visible_text: Optional[str], has_required_attr: bool = False, has_aria_required: bool = False) -> bool:
    """
    Decide whether a question is mandatory.

    A ``required`` attribute or ``aria-required="true"`` settles it; otherwise
    the visible text must carry a literal "required" marker or a line ending
    in an asterisk.
    """
    if has_required_attr or has_aria_required:
        return True
    words = normalize(visible_text).split()
    if any(marker in words for marker in REQUIRED_MARKERS):
        return True
    return any(line.strip().endswith("*") for line in (visible_text or "").splitlines())


def build_composite_label(label: str, attributes: InputAttributes) -> str:
    """Visible label followed by the input's machine attributes."""
    parts = [label, attributes.name, attributes.id, attributes.placeholder, attributes.aria_label]
    seen: List[str] = []
    for part in parts:
        if part and part.strip() and part.strip() not in seen:
            seen.append(part.strip())
    return " ".join(seen)


class FormScanner:
    """
    Extracts questions from a loaded page.

    Question containers and labels are located through ordered structural
    matchers; the first container matcher that yields anything wins because
    pages vary in markup.
    """

    def __init__(
        self,
        container_matchers: Sequence[StructuralMatcher] = QUESTION_CONTAINERS,
        label_matchers: Sequence[StructuralMatcher] = QUESTION_LABELS,
        fingerprint_questions: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.container_matchers = tuple(container_matchers)
        self.label_matchers = tuple(label_matchers)
        self.fingerprint_questions = (
            settings.fingerprint_questions if fingerprint_questions is None else fingerprint_questions
        )
        self.timeout_ms = (settings.browser_timeout if timeout is None else timeout) * 1000
        self.logger = logger.bind(component="form_scanner")

    async def find_containers(self, page: Any) -> Tuple[Optional[StructuralMatcher], Any, int]:
        """First container matcher with any match, its locator and match count."""
        try:
            for matcher in self.container_matchers:
                locator = matcher.apply(page)
                count = await locator.count()
                if count:
                    return matcher, locator, count
        except PlaywrightError as e:
            self._raise_if_closed(e)
            self.logger.warning("Container lookup failed", error=str(e))
        return None, None, 0

    async def scan(self, page: Any) -> List[Question]:
        """
        Read every answerable question on the page.

        Raises:
            PageUnavailable: The page closed during the scan
        """
        matcher, containers, count = await self.find_containers(page)
        if not count:
            self.logger.info("No question containers found")
            return []

        questions: List[Question] = []
        for position in range(count):
            container = containers.nth(position)
            try:
                question = await self.read_question(container, len(questions))
            except PlaywrightError as e:
                self._raise_if_closed(e)
                self.logger.warning("Skipping unreadable container", position=position, error=str(e))
                continue
            if question is not None:
                questions.append(question)

        self.logger.info(
            "Page scanned",
            matcher=matcher.name,
            containers=count,
            questions=len(questions)
        )
        return questions

    async def read_question(self, container: Any, index: int) -> Optional[Question]:
        """Build a Question from one container, or None if it holds no widget."""
        widgets = container.locator(WIDGET_SELECTOR)
        if await widgets.count() == 0:
            return None

        visible_text = await container.inner_text(timeout=self.timeout_ms)
        label = await self.read_label(container, visible_text)
        attributes = await self._read_primary_input(widgets)

        has_required_attr = await container.locator("[required]").count() > 0
        has_aria_required = await container.locator('[aria-required="true"]').count() > 0

        return Question(
            index=index,
            label=label,
            composite_label=build_composite_label(label, attributes),
            attributes=attributes,
            is_required=detect_required(visible_text, has_required_attr, has_aria_required),
            widget_type=await self.detect_widget_type(container, attributes),
            container=container,
        )

    async def read_label(self, container: Any, visible_text: Optional[str] = None) -> str:
        """Label from the first label-bearing element, else the first text line."""
        for matcher in self.label_matchers:
            candidates = matcher.apply(container)
            if await candidates.count() == 0:
                continue
            label = clean_label(await candidates.first.inner_text(timeout=self.timeout_ms))
            if label:
                return label

        if visible_text is None:
            visible_text = await container.inner_text(timeout=self.timeout_ms)
        return clean_label(visible_text)

    async def _read_primary_input(self, widgets: Any) -> InputAttributes:
        count = await widgets.count()
        for position in range(count):
            widget = widgets.nth(position)
            input_type = await widget.get_attribute("type", timeout=self.timeout_ms)
            if input_type and input_type.lower() == "hidden":
                continue
            return InputAttributes(
                name=await widget.get_attribute("name", timeout=self.timeout_ms),
                id=await widget.get_attribute("id", timeout=self.timeout_ms),
                placeholder=await widget.get_attribute("placeholder", timeout=self.timeout_ms),
                aria_label=await widget.get_attribute("aria-label", timeout=self.timeout_ms),
                type=input_type or await widget.get_attribute("role", timeout=self.timeout_ms),
            )
        return InputAttributes()

    async def detect_widget_type(self, container: Any, attributes: Optional[InputAttributes] = None) -> WidgetType:
        """
        Classify the container by the first widget family present.

        A text box sharing a container with radio or checkbox options is the
        "Other" companion box, so those containers classify as choice widgets.
        """
        async def present(selector: str) -> bool:
            return await container.locator(selector).count() > 0

        has_choices = await present(RADIO_OPTION) or await present(CHECKBOX_OPTION)

        if await present(FILE_INPUT):
            return WidgetType.FILE
        if await present(DATE_INPUT):
            return WidgetType.DATE
        if not has_choices and await present(TEXT_INPUT):
            placeholder = attributes.placeholder if attributes else None
            if placeholder_format(placeholder):
                return WidgetType.DATE
            return WidgetType.TEXT
        if await present(CONTENTEDITABLE):
            return WidgetType.CONTENTEDITABLE
        if await present(NATIVE_SELECT) or await present(LISTBOX):
            return WidgetType.SELECT
        if await present(RADIO_OPTION):
            return WidgetType.RADIO
        if await present(CHECKBOX_OPTION):
            return WidgetType.CHECKBOX
        return WidgetType.UNKNOWN

    async def fingerprint(self, page: Any) -> Tuple[str, int]:
        """
        Short summary of the displayed questions plus the container count.

        Only used to notice that the page changed; never used as identity.
        """
        _, containers, count = await self.find_containers(page)
        labels: List[str] = []
        try:
            for position in range(min(count, self.fingerprint_questions)):
                label = await self.read_label(containers.nth(position))
                labels.append(normalize(label)[:_FINGERPRINT_LABEL_LENGTH])
        except PlaywrightError as e:
            self._raise_if_closed(e)
            self.logger.debug("Fingerprint read failed", error=str(e))
        return "|".join(labels), count

    def _raise_if_closed(self, error: PlaywrightError) -> None:
        if is_closed_error(error):
            raise PageUnavailable("Page closed while scanning") from error


def create_form_scanner(**overrides) -> FormScanner:
    """Factory function to create a form scanner."""
    return FormScanner(**overrides)
