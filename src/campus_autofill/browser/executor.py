"""Write profile values into the widgets of a scanned question."""

from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

from campus_autofill.browser.agent import is_closed_error
from campus_autofill.browser.matchers import (
    CHECKBOX_OPTION,
    CONTENTEDITABLE,
    DATE_INPUT,
    FILE_INPUT,
    LISTBOX,
    LISTBOX_OPTION,
    NATIVE_OPTION,
    NATIVE_SELECT,
    RADIO_OPTION,
    TEXT_INPUT,
)
from campus_autofill.config import settings
from campus_autofill.core.errors import FillError, PageUnavailable
from campus_autofill.core.models import FillOutcome, Question, UnmatchedReason, WidgetType
from campus_autofill.mapping.keywords import DATE_KEYS, NAME_PART_KEYS
from campus_autofill.mapping.mapper import best_choice, find_other
from campus_autofill.utils.dates import render_candidates
from campus_autofill.utils.logging import get_logger

logger = get_logger(__name__)

# (method, value written) or None when no widget accepted the value.
Assignment = Optional[Tuple[str, Any]]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return not any(not is_empty(item) for item in value)
    return False


def _split_name(full_name: str) -> dict:
    parts = full_name.split()
    if not parts:
        return {}
    derived = {"firstName": parts[0]}
    if len(parts) > 1:
        derived["lastName"] = parts[-1]
    if len(parts) > 2:
        derived["middleName"] = " ".join(parts[1:-1])
    return derived


def resolve_value(key: str, profile: Mapping[str, Any]) -> Any:
    """
    Profile value for a canonical key, deriving name parts when needed.

    Name parts come from ``fullName`` (or ``name``) when absent, and
    ``fullName`` is composed from the parts when absent. Returns ``None`` for
    missing or empty values.
    """
    value = profile.get(key)
    if not is_empty(value):
        return value

    if key in NAME_PART_KEYS:
        full_name = profile.get("fullName") or profile.get("name")
        if isinstance(full_name, str):
            value = _split_name(full_name).get(key)
    elif key == "fullName":
        parts = [profile.get(part) for part in NAME_PART_KEYS]
        composed = " ".join(str(part).strip() for part in parts if not is_empty(part))
        value = composed or profile.get("name")

    return None if is_empty(value) else value


def desired_values(value: Any) -> List[str]:
    """Checkbox targets from a list or a comma-separated string."""
    if isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if not is_empty(item)]


def as_text(value: Any) -> str:
    if isinstance(value, (list, tuple, set)):
        return ", ".join(desired_values(value))
    return str(value).strip()


class FillExecutor:
    """
    Applies one profile value to one question.

    Widget strategies run in a fixed precedence; the scanner has already
    classified the container, so the executor dispatches on the widget type.
    Field-level problems come back as unmatched outcomes, only a closed page
    raises.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout_ms = (settings.browser_timeout if timeout is None else timeout) * 1000
        self.logger = logger.bind(component="fill_executor")

    async def fill(
        self,
        question: Question,
        key: str,
        profile: Mapping[str, Any],
        page_index: int = 0,
    ) -> FillOutcome:
        """
        Fill a question with the profile value for ``key``.

        Raises:
            PageUnavailable: The page closed while the widget was being set
        """
        value = resolve_value(key, profile)
        if value is None:
            return FillOutcome.unmatched(question, UnmatchedReason.NO_USER_DATA, key=key, page_index=page_index)

        try:
            assignment = await self._apply(question, key, value)
        except PlaywrightError as e:
            if is_closed_error(e):
                raise PageUnavailable(f"Page closed while filling '{question.label}'") from e
            return self._failed(question, key, page_index, str(e))
        except FillError as e:
            return self._failed(question, key, page_index, str(e))

        if assignment is None:
            self.logger.debug("No widget accepted value", label=question.label, key=key)
            return FillOutcome.unmatched(question, UnmatchedReason.NO_INPUT_MATCHED, key=key, page_index=page_index)

        method, written = assignment
        self.logger.info("Field filled", label=question.label, key=key, method=method, page_index=page_index)
        return FillOutcome.filled(question, key, method, written, page_index=page_index)

    def _failed(self, question: Question, key: str, page_index: int, detail: str) -> FillOutcome:
        self.logger.warning("Widget rejected value", label=question.label, key=key, error=detail)
        return FillOutcome.unmatched(
            question, UnmatchedReason.FILL_ERROR, key=key, detail=detail, page_index=page_index
        )

    async def _apply(self, question: Question, key: str, value: Any) -> Assignment:
        container = question.container
        widget_type = question.widget_type

        if widget_type == WidgetType.FILE:
            return await self.fill_file(container, value)
        if widget_type == WidgetType.DATE or (widget_type == WidgetType.TEXT and key in DATE_KEYS):
            return await self.fill_date(container, value, question.attributes.placeholder)
        if widget_type == WidgetType.TEXT:
            return await self.fill_text(container, TEXT_INPUT, value, "text")
        if widget_type == WidgetType.CONTENTEDITABLE:
            return await self.fill_text(container, CONTENTEDITABLE, value, "contenteditable")
        if widget_type == WidgetType.SELECT:
            return await self.fill_select(container, value)
        if widget_type == WidgetType.RADIO:
            return await self.fill_radio(container, value)
        if widget_type == WidgetType.CHECKBOX:
            return await self.fill_checkboxes(container, value)
        return None

    async def fill_file(self, container: Any, value: Any) -> Assignment:
        path = Path(str(value)).expanduser()
        if not path.is_file():
            return None
        target = container.locator(FILE_INPUT).first
        await target.set_input_files(str(path), timeout=self.timeout_ms)
        return "file", str(path)

    async def fill_date(self, container: Any, value: Any, placeholder: Optional[str]) -> Assignment:
        """Try each rendering of the date until the control accepts one."""
        target = container.locator(DATE_INPUT)
        if await target.count() == 0:
            target = container.locator(TEXT_INPUT)
            if await target.count() == 0:
                return None
        target = target.first

        last_error: Optional[PlaywrightError] = None
        for candidate in render_candidates(value, placeholder):
            try:
                await target.fill(candidate, timeout=self.timeout_ms)
                await target.dispatch_event("change")
                return "date", candidate
            except PlaywrightError as e:
                if is_closed_error(e):
                    raise
                last_error = e

        if last_error is not None:
            raise FillError(f"No date rendering accepted: {last_error}")
        return None

    async def fill_text(self, container: Any, selector: str, value: Any, method: str) -> Assignment:
        target = container.locator(selector)
        if await target.count() == 0:
            return None
        text = as_text(value)
        target = target.first
        await target.fill(text, timeout=self.timeout_ms)
        await target.dispatch_event("change")
        return method, text

    async def fill_select(self, container: Any, value: Any) -> Assignment:
        native = container.locator(NATIVE_SELECT)
        if await native.count():
            labels = await self._option_labels(native.first.locator(NATIVE_OPTION))
            index = best_choice(labels, as_text(value))
            if index is None:
                return None
            await native.first.select_option(label=labels[index], timeout=self.timeout_ms)
            await native.first.dispatch_event("change")
            return "select", labels[index]

        listbox = container.locator(LISTBOX)
        if await listbox.count() == 0:
            return None
        await listbox.first.click(timeout=self.timeout_ms)
        options = container.locator(LISTBOX_OPTION)
        labels = await self._option_labels(options)
        index = best_choice(labels, as_text(value))
        if index is None:
            return None
        await options.nth(index).click(timeout=self.timeout_ms)
        return "select", labels[index]

    async def fill_radio(self, container: Any, value: Any) -> Assignment:
        options = container.locator(RADIO_OPTION)
        labels = await self._option_labels(options)
        desired = as_text(value)

        index = best_choice(labels, desired)
        if index is not None:
            await self._toggle(options.nth(index))
            return "radio", labels[index]

        if await self._choose_other(container, options, labels, desired):
            return "radio", desired
        return None

    async def fill_checkboxes(self, container: Any, value: Any) -> Assignment:
        options = container.locator(CHECKBOX_OPTION)
        labels = await self._option_labels(options)

        ticked: List[str] = []
        leftovers: List[str] = []
        for desired in desired_values(value):
            index = best_choice(labels, desired)
            if index is None:
                leftovers.append(desired)
                continue
            if labels[index] not in ticked:
                await self._toggle(options.nth(index))
                ticked.append(labels[index])

        if leftovers and await self._choose_other(container, options, labels, ", ".join(leftovers)):
            ticked.extend(leftovers)

        if not ticked:
            return None
        return "checkbox", ticked

    async def _choose_other(self, container: Any, options: Any, labels: List[str], text: str) -> bool:
        """Pick the "Other" option and type the value into its companion box."""
        index = find_other(labels)
        if index is None:
            return False
        companion = container.locator(TEXT_INPUT)
        if await companion.count() == 0:
            return False

        await self._toggle(options.nth(index))
        await companion.first.fill(text, timeout=self.timeout_ms)
        await companion.first.dispatch_event("change")
        return True

    async def _toggle(self, option: Any) -> None:
        if await option.get_attribute("aria-checked", timeout=self.timeout_ms) == "true":
            return
        input_type = await option.get_attribute("type", timeout=self.timeout_ms)
        if input_type in ("radio", "checkbox"):
            await option.check(timeout=self.timeout_ms)
        else:
            await option.click(timeout=self.timeout_ms)

    async def _option_labels(self, options: Any) -> List[str]:
        labels: List[str] = []
        for position in range(await options.count()):
            option = options.nth(position)
            label = None
            for attribute in ("aria-label", "data-value", "value"):
                label = await option.get_attribute(attribute, timeout=self.timeout_ms)
                if label:
                    break
            if not label:
                label = await option.inner_text(timeout=self.timeout_ms)
            labels.append((label or "").strip())
        return labels


def create_fill_executor(timeout: Optional[float] = None) -> FillExecutor:
    """Factory function to create a fill executor."""
    return FillExecutor(timeout=timeout)
