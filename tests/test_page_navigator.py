"""Tests for multi-page form traversal."""

import pytest

from campus_autofill.browser.navigator import (
    STOP_NAVIGATION_TIMEOUT,
    STOP_NO_CONTROLS,
    STOP_PAGE_CAP,
    STOP_SUBMIT_VISIBLE,
    PageNavigator,
)
from campus_autofill.browser.scanner import FormScanner
from campus_autofill.core.errors import NavigationTimeout, PageUnavailable
from campus_autofill.core.models import Diagnostics

from conftest import FORM_URL, FakeNode, FakePage, button, screen, text_question


def make_navigator(**overrides) -> PageNavigator:
    options = dict(max_pages=15, retries=2, poll_attempts=2, poll_interval=0, grace_period=0, timeout=1)
    options.update(overrides)
    return PageNavigator(scanner=FormScanner(timeout=1), **options)


class PageRecorder:
    """Collects the page indices the navigator hands out."""

    def __init__(self):
        self.indices = []

    async def __call__(self, page_index):
        self.indices.append(page_index)


class TestPageNavigator:
    """Test cases for PageNavigator."""

    @pytest.mark.asyncio
    async def test_stops_when_submit_is_visible(self, form_page):
        recorder = PageRecorder()
        diagnostics = await make_navigator().run(form_page, recorder, Diagnostics())

        assert recorder.indices == [0, 1]
        assert diagnostics.pages_visited == 2
        assert diagnostics.stop_reason == STOP_SUBMIT_VISIBLE
        assert diagnostics.warnings == []
        assert form_page.screen_index == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_count", [3, 5])
    async def test_visits_every_page_of_a_longer_form(self, page_count):
        """An N-page form is handed to the page handler exactly N times, in order."""
        screens = [
            screen(
                text_question(f"Question {index + 1}"),
                button("Next", on_click=lambda page, target=index + 1: page.show(target)),
            )
            for index in range(page_count - 1)
        ]
        screens.append(screen(text_question(f"Question {page_count}"), button("Submit")))
        page = FakePage(screens)
        recorder = PageRecorder()

        diagnostics = await make_navigator().run(page, recorder, Diagnostics())

        assert recorder.indices == list(range(page_count))
        assert diagnostics.pages_visited == page_count
        assert diagnostics.stop_reason == STOP_SUBMIT_VISIBLE
        assert diagnostics.warnings == []
        assert page.screen_index == page_count - 1

    @pytest.mark.asyncio
    async def test_stops_without_controls(self):
        page = FakePage([screen(text_question("Your Name"))])
        recorder = PageRecorder()

        diagnostics = await make_navigator().run(page, recorder, Diagnostics())

        assert recorder.indices == [0]
        assert diagnostics.stop_reason == STOP_NO_CONTROLS

    @pytest.mark.asyncio
    async def test_page_cap(self):
        """A Next control that never changes the page still terminates."""
        page = FakePage([screen(text_question("Your Name"), button("Next"))])
        recorder = PageRecorder()

        diagnostics = await make_navigator(max_pages=3).run(page, recorder, Diagnostics())

        assert recorder.indices == [0, 1, 2]
        assert diagnostics.stop_reason == STOP_PAGE_CAP
        assert len(diagnostics.warnings) == 3
        assert "transition not confirmed" in diagnostics.warnings[0]

    @pytest.mark.asyncio
    async def test_next_click_retries_then_gives_up(self):
        broken_next = FakeNode("div", {"role": "button", "disabled": ""}, "Next")
        page = FakePage([screen(text_question("Your Name"), broken_next)])
        navigator = make_navigator(retries=2)

        with pytest.raises(NavigationTimeout):
            await navigator.advance(page, await navigator.find_next(page))

        diagnostics = await navigator.run(page, PageRecorder(), Diagnostics())
        assert diagnostics.stop_reason == STOP_NAVIGATION_TIMEOUT
        assert len(diagnostics.warnings) == 1

    @pytest.mark.asyncio
    async def test_continue_control(self):
        page_one = screen(text_question("Your Name"), button("Continue", on_click=lambda page: page.show(1)))
        page_two = screen(text_question("CGPA"))
        page = FakePage([page_one, page_two])

        diagnostics = await make_navigator().run(page, PageRecorder(), Diagnostics())

        assert diagnostics.pages_visited == 2
        assert diagnostics.stop_reason == STOP_NO_CONTROLS

    @pytest.mark.asyncio
    async def test_hidden_controls_are_ignored(self):
        hidden_submit = FakeNode("div", {"role": "button"}, "Submit", visible=False)
        page = FakePage([screen(text_question("Your Name"), hidden_submit)])
        assert await make_navigator().find_submit(page) is None

    @pytest.mark.asyncio
    async def test_detect_login_wall(self, form_page):
        navigator = make_navigator()
        assert not await navigator.detect_login_wall(form_page)

        redirected = FakePage([screen()], url="https://accounts.google.com/v3/signin/identifier")
        assert await navigator.detect_login_wall(redirected)

        identifier = FakePage([screen(FakeNode("input", {"id": "identifierId", "type": "email"}))])
        assert await navigator.detect_login_wall(identifier)

    @pytest.mark.asyncio
    async def test_confirm_submission(self, form_page):
        navigator = make_navigator()
        assert not await navigator.confirm_submission(form_page, timeout=0)

        form_page.show(2)
        assert await navigator.confirm_submission(form_page, timeout=0)

        by_url = FakePage([screen()], url=FORM_URL.replace("viewform", "formResponse"))
        assert await navigator.confirm_submission(by_url, timeout=0)

    @pytest.mark.asyncio
    async def test_closed_page(self, form_page):
        await form_page.close()
        with pytest.raises(PageUnavailable):
            await make_navigator().find_next(form_page)
