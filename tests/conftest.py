"""In-memory page fixtures implementing the Playwright Page/Locator subset the engine uses."""

import re
from typing import Any, Callable, Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

from campus_autofill.core.errors import PageUnavailable

FORM_URL = "https://docs.google.com/forms/d/e/fixture/viewform"
CLOSED_MESSAGE = "Target page, context or browser has been closed"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfixture"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SIMPLE_SELECTOR = re.compile(
    r'([a-zA-Z][\w-]*)|#([\w-]+)|\.([\w-]+)|\[([\w-]+)(?:([*^]?=)"([^"]*)")?\]'
)


def _parse(selector: str) -> List[List[tuple]]:
    alternatives = []
    for part in selector.split(","):
        part = part.strip()
        position, conditions = 0, []
        while position < len(part):
            match = _SIMPLE_SELECTOR.match(part, position)
            if match is None:
                raise ValueError(f"Unsupported selector: {selector}")
            tag, node_id, css_class, attr, op, value = match.groups()
            if tag:
                conditions.append(("tag", tag.lower()))
            elif node_id:
                conditions.append(("attr", "id", "=", node_id))
            elif css_class:
                conditions.append(("class", css_class))
            else:
                conditions.append(("attr", attr, op, value))
            position = match.end()
        alternatives.append(conditions)
    return alternatives


def _matches(node: "FakeNode", alternatives: List[List[tuple]]) -> bool:
    for conditions in alternatives:
        if all(_condition(node, condition) for condition in conditions):
            return True
    return False


def _condition(node: "FakeNode", condition: tuple) -> bool:
    kind = condition[0]
    if kind == "tag":
        return node.tag == condition[1]
    if kind == "class":
        return condition[1] in node.attrs.get("class", "").split()
    _, name, op, value = condition
    if name not in node.attrs:
        return False
    actual = str(node.attrs[name])
    if op is None:
        return True
    if op == "=":
        return actual == value
    if op == "*=":
        return value in actual
    return actual.startswith(value)


class FakeNode:
    """A DOM element with attributes, own text and children."""

    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, str]] = None,
        text: str = "",
        children: Optional[List["FakeNode"]] = None,
        on_click: Optional[Callable[["FakePage"], Any]] = None,
        visible: bool = True,
    ):
        self.tag = tag.lower()
        self.attrs = dict(attrs or {})
        self.text = text
        self.children = list(children or [])
        self.on_click = on_click
        self.visible = visible
        self.value: Optional[str] = None
        self.files: Optional[str] = None
        self.parent: Optional["FakeNode"] = None
        for child in self.children:
            child.parent = self

    def descendants(self):
        for child in self.children:
            yield child
            yield from child.descendants()

    def inner_text(self) -> str:
        parts = [self.text] if self.text else []
        parts.extend(child.inner_text() for child in self.children)
        return "\n".join(part for part in parts if part)

    def find(self, selector: str) -> List["FakeNode"]:
        alternatives = _parse(selector)
        return [node for node in self.descendants() if _matches(node, alternatives)]


class FakeLocator:
    """Lazily resolved element set, re-evaluated on every call like Playwright's."""

    def __init__(self, page: "FakePage", resolve: Callable[[], List[FakeNode]]):
        self._page = page
        self._resolve = resolve

    def _nodes(self) -> List[FakeNode]:
        self._page.ensure_open()
        return self._resolve()

    def _one(self) -> FakeNode:
        nodes = self._nodes()
        if not nodes:
            raise PlaywrightError("Timeout 1000ms exceeded waiting for locator")
        return nodes[0]

    def locator(self, selector: str) -> "FakeLocator":
        alternatives = _parse(selector)

        def resolve():
            found: List[FakeNode] = []
            for root in self._nodes():
                for node in root.descendants():
                    if _matches(node, alternatives) and node not in found:
                        found.append(node)
            return found

        return FakeLocator(self._page, resolve)

    def filter(self, has_text: Optional[str] = None) -> "FakeLocator":
        needle = (has_text or "").lower()
        return FakeLocator(
            self._page,
            lambda: [node for node in self._nodes() if needle in node.inner_text().lower()],
        )

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self._page, lambda: self._nodes()[index:index + 1])

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    async def count(self) -> int:
        return len(self._nodes())

    async def inner_text(self, timeout: Optional[float] = None) -> str:
        return self._one().inner_text()

    async def text_content(self, timeout: Optional[float] = None) -> str:
        return self._one().inner_text()

    async def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        return self._one().attrs.get(name)

    async def is_visible(self, timeout: Optional[float] = None) -> bool:
        nodes = self._nodes()
        return bool(nodes) and nodes[0].visible

    async def fill(self, value: str, timeout: Optional[float] = None) -> None:
        node = self._one()
        if node.attrs.get("type") == "date" and not _ISO_DATE.match(value):
            raise PlaywrightError(f"Error: Malformed value: {value}")
        if node.attrs.get("readonly") is not None:
            raise PlaywrightError("Error: Element is not editable")
        node.value = value
        self._page.events.append(("fill", node, value))

    async def click(self, timeout: Optional[float] = None) -> None:
        node = self._one()
        if node.attrs.get("disabled") is not None:
            raise PlaywrightError("Error: Element is not enabled")
        role = node.attrs.get("role")
        if role == "radio":
            group = node.parent.children if node.parent else [node]
            for sibling in group:
                if sibling.attrs.get("role") == "radio":
                    sibling.attrs["aria-checked"] = "false"
            node.attrs["aria-checked"] = "true"
        elif role == "checkbox":
            checked = node.attrs.get("aria-checked") == "true"
            node.attrs["aria-checked"] = "false" if checked else "true"
        self._page.events.append(("click", node, None))
        if node.on_click is not None:
            node.on_click(self._page)

    async def check(self, timeout: Optional[float] = None) -> None:
        node = self._one()
        node.attrs["checked"] = ""
        self._page.events.append(("check", node, None))

    async def select_option(self, label: Optional[str] = None, timeout: Optional[float] = None) -> List[str]:
        node = self._one()
        for option in node.find("option"):
            if option.inner_text() == label:
                node.value = option.attrs.get("value", label)
                self._page.events.append(("select", node, label))
                return [node.value]
        raise PlaywrightError(f"Error: no option with label {label}")

    async def set_input_files(self, files: str, timeout: Optional[float] = None) -> None:
        node = self._one()
        node.files = files
        self._page.events.append(("files", node, files))

    async def dispatch_event(self, event_type: str, timeout: Optional[float] = None) -> None:
        node = self._one()
        self._page.events.append(("event", node, event_type))


class FakePage:
    """A page showing one of several screens; buttons switch screens via ``on_click``."""

    def __init__(self, screens: List[FakeNode], url: str = FORM_URL):
        self.screens = screens
        self.screen_index = 0
        self.url = url
        self.closed = False
        self.events: List[tuple] = []
        self.visits: List[str] = []

    @property
    def body(self) -> FakeNode:
        return self.screens[self.screen_index]

    def ensure_open(self) -> None:
        if self.closed:
            raise PlaywrightError(CLOSED_MESSAGE)

    def show(self, index: int, url: Optional[str] = None) -> None:
        self.screen_index = index
        if url:
            self.url = url

    def locator(self, selector: str) -> FakeLocator:
        alternatives = _parse(selector)

        def resolve():
            nodes = [self.body] if _matches(self.body, alternatives) else []
            return nodes + [node for node in self.body.descendants() if _matches(node, alternatives)]

        return FakeLocator(self, resolve)

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.ensure_open()
        self.visits.append(url)

    async def screenshot(self, full_page: bool = False, path: Optional[str] = None) -> bytes:
        self.ensure_open()
        return PNG_BYTES

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class FakeBrowserAgent:
    """Stands in for BrowserAgent around a FakePage."""

    def __init__(
        self,
        page: FakePage,
        init_ok: bool = True,
        navigation_results: Optional[List[bool]] = None,
        on_load: Optional[Callable[[FakePage], Any]] = None,
    ):
        self.page = page
        self.init_ok = init_ok
        self.on_load = on_load
        self.navigation_results = list(navigation_results or [])
        self.navigations: List[str] = []
        self.close_calls = 0

    @property
    def is_closed(self) -> bool:
        return self.page.is_closed()

    async def initialize(self) -> bool:
        return self.init_ok

    async def navigate_to(self, url: str, timeout: Optional[int] = None) -> bool:
        if self.page.is_closed():
            raise PageUnavailable("Page is closed")
        self.navigations.append(url)
        loaded = self.navigation_results.pop(0) if self.navigation_results else True
        if loaded and self.on_load is not None:
            self.on_load(self.page)
        return loaded

    async def take_screenshot(self, path: Optional[str] = None) -> Optional[bytes]:
        if self.page.is_closed():
            return None
        return await self.page.screenshot(full_page=True)

    async def close(self) -> None:
        self.close_calls += 1
        await self.page.close()


# Markup builders shaped like Google Forms question cards.

def heading(label: str, required: bool = False) -> FakeNode:
    return FakeNode("div", {"role": "heading"}, label + (" *" if required else ""))


def text_question(
    label: str,
    required: bool = False,
    input_type: str = "text",
    name: Optional[str] = None,
    placeholder: Optional[str] = None,
    aria_label: Optional[str] = None,
    tag: str = "input",
) -> FakeNode:
    attrs = {"type": input_type} if tag == "input" else {}
    if name:
        attrs["name"] = name
    if placeholder:
        attrs["placeholder"] = placeholder
    if aria_label:
        attrs["aria-label"] = aria_label
    return FakeNode("div", {"role": "listitem"}, children=[heading(label, required), FakeNode(tag, attrs)])


def choice_question(
    label: str,
    options: List[str],
    role: str = "radio",
    required: bool = False,
    other_box: bool = False,
) -> FakeNode:
    group_role = "radiogroup" if role == "radio" else "list"
    choices = [
        FakeNode("div", {"role": role, "aria-label": option, "data-value": option, "aria-checked": "false"})
        for option in options
    ]
    children = [heading(label, required), FakeNode("div", {"role": group_role}, children=choices)]
    if other_box:
        children.append(FakeNode("input", {"type": "text", "aria-label": "Other response"}))
    return FakeNode("div", {"role": "listitem"}, children=children)


def select_question(label: str, options: List[str], required: bool = False) -> FakeNode:
    select = FakeNode(
        "select",
        {"name": "choice"},
        children=[FakeNode("option", {"value": option}, option) for option in options],
    )
    return FakeNode("div", {"role": "listitem"}, children=[heading(label, required), select])


def listbox_question(label: str, options: List[str]) -> FakeNode:
    listbox = FakeNode(
        "div",
        {"role": "listbox"},
        children=[FakeNode("div", {"role": "option", "data-value": option}, option) for option in options],
    )
    return FakeNode("div", {"role": "listitem"}, children=[heading(label), listbox])


def button(text: str, on_click: Optional[Callable[[FakePage], Any]] = None) -> FakeNode:
    return FakeNode("div", {"role": "button"}, text, on_click=on_click)


def screen(*children: FakeNode, title: str = "Placement Registration") -> FakeNode:
    return FakeNode("body", children=[FakeNode("div", {"class": "form-title"}, title), *children])


def confirmation_screen() -> FakeNode:
    return screen(FakeNode("div", text="Your response has been recorded."))


def two_page_form() -> FakePage:
    """Name and e-mail on page one, gender plus Submit on page two."""
    page_one = screen(
        text_question("Your Name"),
        text_question("E-mail address", required=True, input_type="email"),
        button("Next", on_click=lambda page: page.show(1)),
    )
    page_two = screen(
        choice_question("Gender", ["Male", "Female", "Other"]),
        button("Back", on_click=lambda page: page.show(0)),
        button("Submit", on_click=lambda page: page.show(2, url=FORM_URL.replace("viewform", "formResponse"))),
    )
    return FakePage([page_one, page_two, confirmation_screen()])


@pytest.fixture
def profile() -> Dict[str, Any]:
    return {"firstName": "Asha", "emailID": "asha@x.com", "gender": "Female"}


@pytest.fixture
def form_page() -> FakePage:
    return two_page_form()
