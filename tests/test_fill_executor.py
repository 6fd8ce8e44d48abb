"""Tests for writing profile values into form widgets."""

import pytest

from campus_autofill.browser.executor import FillExecutor, desired_values, resolve_value
from campus_autofill.browser.scanner import FormScanner
from campus_autofill.core.errors import PageUnavailable
from campus_autofill.core.models import OutcomeStatus, UnmatchedReason, WidgetType

from conftest import (
    FakeNode,
    FakePage,
    choice_question,
    heading,
    listbox_question,
    screen,
    select_question,
    text_question,
)


async def scan_one(container):
    """Scan a single-question page and return (page, question)."""
    page = FakePage([screen(container)])
    questions = await FormScanner(timeout=1).scan(page)
    return page, questions[0]


def node_of(question, selector):
    return question.container._nodes()[0].find(selector)


class TestResolveValue:
    """Test cases for profile value resolution."""

    def test_direct_value(self):
        assert resolve_value("cgpa", {"cgpa": 8.7}) == 8.7

    def test_empty_values_are_missing(self):
        assert resolve_value("phone", {}) is None
        assert resolve_value("phone", {"phone": "  "}) is None
        assert resolve_value("skills", {"skills": []}) is None

    def test_name_parts_from_full_name(self):
        profile = {"fullName": "Asha Rao Patil"}
        assert resolve_value("firstName", profile) == "Asha"
        assert resolve_value("middleName", profile) == "Rao"
        assert resolve_value("lastName", profile) == "Patil"

    def test_name_parts_from_name(self):
        assert resolve_value("lastName", {"name": "Asha Patil"}) == "Patil"
        assert resolve_value("middleName", {"name": "Asha Patil"}) is None

    def test_full_name_from_parts(self):
        profile = {"firstName": "Asha", "middleName": "", "lastName": "Patil"}
        assert resolve_value("fullName", profile) == "Asha Patil"

    def test_desired_values(self):
        assert desired_values("Python, SQL ,") == ["Python", "SQL"]
        assert desired_values(["Python", "", "SQL"]) == ["Python", "SQL"]


class TestFillExecutor:
    """Test cases for FillExecutor.fill()."""

    @pytest.fixture
    def executor(self):
        return FillExecutor(timeout=1)

    @pytest.mark.asyncio
    async def test_text_field(self, executor):
        page, question = await scan_one(text_question("Your Name"))

        outcome = await executor.fill(question, "firstName", {"firstName": "Asha"}, page_index=2)

        assert outcome.status == OutcomeStatus.FILLED
        assert (outcome.method, outcome.value, outcome.page_index) == ("text", "Asha", 2)
        target = node_of(question, "input")[0]
        assert target.value == "Asha"
        assert ("event", target, "change") in page.events

    @pytest.mark.asyncio
    async def test_missing_value(self, executor):
        _, question = await scan_one(text_question("Phone", required=True))

        outcome = await executor.fill(question, "phone", {"firstName": "Asha"})

        assert outcome.status == OutcomeStatus.UNMATCHED
        assert outcome.reason == UnmatchedReason.NO_USER_DATA
        assert outcome.required

    @pytest.mark.asyncio
    async def test_contenteditable_region(self, executor):
        editor = FakeNode("div", {"contenteditable": "true", "role": "textbox"})
        container = FakeNode("div", {"role": "listitem"}, children=[heading("Permanent Address"), editor])
        page, question = await scan_one(container)

        outcome = await executor.fill(question, "permanentAddress", {"permanentAddress": "12 MG Road, Nagpur"})

        assert question.widget_type == WidgetType.CONTENTEDITABLE
        assert (outcome.method, outcome.value) == ("contenteditable", "12 MG Road, Nagpur")
        assert editor.value == "12 MG Road, Nagpur"
        assert ("event", editor, "change") in page.events

    @pytest.mark.asyncio
    async def test_list_value_in_text_box(self, executor):
        _, question = await scan_one(text_question("Skills", tag="textarea"))
        outcome = await executor.fill(question, "skills", {"skills": ["Python", "SQL"]})
        assert outcome.value == "Python, SQL"

    @pytest.mark.asyncio
    async def test_native_date_gets_iso(self, executor):
        _, question = await scan_one(text_question("Date of Birth", input_type="date"))

        outcome = await executor.fill(question, "dob", {"dob": "04/05/2001"})

        assert (outcome.method, outcome.value) == ("date", "2001-05-04")
        assert node_of(question, "input")[0].value == "2001-05-04"

    @pytest.mark.asyncio
    async def test_text_date_follows_placeholder(self, executor):
        _, question = await scan_one(text_question("Date of Birth", placeholder="dd-mm-yyyy"))

        outcome = await executor.fill(question, "dob", {"dob": "2001-05-04"})

        assert outcome.value == "04-05-2001"

    @pytest.mark.asyncio
    async def test_date_rejected_everywhere(self, executor):
        """A control that refuses every rendering is a fill error, not a crash."""
        _, question = await scan_one(text_question("Date of Birth", input_type="date"))

        outcome = await executor.fill(question, "dob", {"dob": "sometime in May"})

        assert outcome.reason == UnmatchedReason.FILL_ERROR
        assert "Malformed" in outcome.detail

    @pytest.mark.asyncio
    async def test_widget_error(self, executor):
        container = FakeNode("div", {"role": "listitem"}, children=[
            FakeNode("div", {"role": "heading"}, "CGPA"),
            FakeNode("input", {"type": "text", "readonly": ""}),
        ])
        _, question = await scan_one(container)

        outcome = await executor.fill(question, "cgpa", {"cgpa": "8.7"})

        assert outcome.reason == UnmatchedReason.FILL_ERROR

    @pytest.mark.asyncio
    async def test_radio_exact_choice(self, executor):
        _, question = await scan_one(choice_question("Gender", ["Male", "Female", "Other"]))

        outcome = await executor.fill(question, "gender", {"gender": "Female"})

        assert (outcome.method, outcome.value) == ("radio", "Female")
        checked = [n.attrs["aria-label"] for n in node_of(question, '[role="radio"]') if n.attrs["aria-checked"] == "true"]
        assert checked == ["Female"]

    @pytest.mark.asyncio
    async def test_radio_falls_back_to_other(self, executor):
        _, question = await scan_one(choice_question("Branch", ["Mechanical", "Civil", "Other"], other_box=True))

        outcome = await executor.fill(question, "branch", {"branch": "Biotechnology"})

        assert outcome.status == OutcomeStatus.FILLED
        assert outcome.value == "Biotechnology"
        other = node_of(question, '[role="radio"]')[2]
        assert other.attrs["aria-checked"] == "true"
        assert node_of(question, "input")[0].value == "Biotechnology"

    @pytest.mark.asyncio
    async def test_radio_without_match(self, executor):
        _, question = await scan_one(choice_question("Willing to relocate", ["Yes", "No"], required=True))

        outcome = await executor.fill(question, "relocate", {"relocate": "Maybe"})

        assert outcome.reason == UnmatchedReason.NO_INPUT_MATCHED
        assert outcome.required

    @pytest.mark.asyncio
    async def test_checkbox_group(self, executor):
        _, question = await scan_one(choice_question("Skills", ["Python", "Java", "SQL"], role="checkbox"))

        outcome = await executor.fill(question, "skills", {"skills": "python, sql"})

        assert (outcome.method, outcome.value) == ("checkbox", ["Python", "SQL"])
        states = [n.attrs["aria-checked"] for n in node_of(question, '[role="checkbox"]')]
        assert states == ["true", "false", "true"]

    @pytest.mark.asyncio
    async def test_native_select_with_abbreviation(self, executor):
        _, question = await scan_one(select_question("Branch", ["Mechanical", "Computer Science and Engineering"]))

        outcome = await executor.fill(question, "branch", {"branch": "CSE"})

        assert (outcome.method, outcome.value) == ("select", "Computer Science and Engineering")
        assert node_of(question, "select")[0].value == "Computer Science and Engineering"

    @pytest.mark.asyncio
    async def test_listbox(self, executor):
        page, question = await scan_one(listbox_question("College Year", ["First", "Second", "Third"]))

        outcome = await executor.fill(question, "collegeYear", {"collegeYear": "third"})

        assert outcome.value == "Third"
        clicked = [node.inner_text() for kind, node, _ in page.events if kind == "click"]
        assert clicked == ["First\nSecond\nThird", "Third"]

    @pytest.mark.asyncio
    async def test_file_upload(self, executor, tmp_path):
        resume = tmp_path / "resume.pdf"
        resume.write_bytes(b"%PDF-1.4")
        _, question = await scan_one(text_question("Resume", input_type="file"))

        outcome = await executor.fill(question, "resume", {"resume": str(resume)})

        assert (outcome.method, outcome.value) == ("file", str(resume))
        assert node_of(question, "input")[0].files == str(resume)

    @pytest.mark.asyncio
    async def test_file_upload_needs_local_file(self, executor, tmp_path):
        _, question = await scan_one(text_question("Resume", input_type="file"))
        outcome = await executor.fill(question, "resume", {"resume": "https://drive.example/resume"})
        assert outcome.reason == UnmatchedReason.NO_INPUT_MATCHED

    @pytest.mark.asyncio
    async def test_closed_page_raises(self, executor):
        page, question = await scan_one(text_question("Your Name"))
        await page.close()

        with pytest.raises(PageUnavailable):
            await executor.fill(question, "firstName", {"firstName": "Asha"})
