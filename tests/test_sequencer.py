import pytest

from exam_runner.errors import DataIntegrityError, ExamNotReadyError
from exam_runner.section_tree import build_section_tree, flatten_sections
from exam_runner.sequencer import build_flat_question_list, load_exam_content
from helpers import FakeBackend, make_question, make_section


def test_flat_list_groups_by_section_order_and_question_number() -> None:
    sections = flatten_sections(build_section_tree([
        make_section("s2", 2, prep=3, speak=6),
        make_section("s1", 1, prep=5, speak=10),
        make_section("s1a", 1, parent="s1", prep=1, speak=2),
    ]))
    questions = {
        "s1": [make_question("q12", "s1", 2), make_question("q11", "s1", 1)],
        "s1a": [make_question("qa", "s1a", 1)],
        "s2": [make_question("q21", "s2", 1)],
    }

    flat = build_flat_question_list(sections, questions)

    assert [q.id for q in flat] == ["q11", "q12", "qa", "q21"]
    assert [q.section_index for q in flat] == [0, 0, 1, 2]


def test_question_overrides_win_over_section_defaults() -> None:
    sections = [make_section("s1", 1, prep=30, speak=60)]
    questions = {
        "s1": [
            make_question("plain", "s1", 1),
            make_question("custom", "s1", 2, prep=0, speak=90),
        ]
    }

    plain, custom = build_flat_question_list(sections, questions)

    assert (plain.effective_preparation_time, plain.effective_speaking_time) == (30, 60)
    # Zero is a valid override, not "unset".
    assert (custom.effective_preparation_time, custom.effective_speaking_time) == (0, 90)


def test_section_image_is_fallback() -> None:
    sections = [make_section("s1", 1, image_url="/img/section.png")]
    own = make_question("own", "s1", 1)
    own.image_url = "/img/own.png"
    questions = {"s1": [own, make_question("inherit", "s1", 2)]}

    flat = build_flat_question_list(sections, questions)

    assert [q.display_image_url for q in flat] == ["/img/own.png", "/img/section.png"]


def test_section_without_questions_is_skipped() -> None:
    sections = [make_section("empty", 1), make_section("s2", 2)]
    flat = build_flat_question_list(sections, {"s2": [make_question("q", "s2", 1)]})
    assert [q.id for q in flat] == ["q"]
    assert flat[0].section_index == 1


@pytest.mark.asyncio
async def test_load_exam_content() -> None:
    backend = FakeBackend(
        sections=[make_section("s2", 2), make_section("s1", 1)],
        questions={
            "s1": [make_question("q1", "s1", 1)],
            "s2": [make_question("q2", "s2", 1)],
        },
    )

    content = await load_exam_content(backend, "t1")

    assert [s.id for s in content.sections] == ["s1", "s2"]
    assert [q.id for q in content.questions] == ["q1", "q2"]
    assert content.orphans == []


@pytest.mark.asyncio
async def test_load_reports_orphans() -> None:
    backend = FakeBackend(
        sections=[make_section("s1", 1), make_section("lost", 2, parent="gone")],
        questions={"lost": [make_question("q", "lost", 1)]},
    )

    content = await load_exam_content(backend, "t1")

    assert [s.id for s in content.orphans] == ["lost"]
    assert [q.id for q in content.questions] == ["q"]


@pytest.mark.asyncio
async def test_failed_section_fetch_blocks_the_exam() -> None:
    backend = FakeBackend(
        sections=[make_section("s1", 1), make_section("s2", 2)],
        questions={"s1": [make_question("q1", "s1", 1)]},
    )
    backend.failing_sections = {"s2"}

    with pytest.raises(DataIntegrityError, match="section\\(s\\): 2"):
        await load_exam_content(backend, "t1")


@pytest.mark.asyncio
async def test_no_sections_is_not_ready() -> None:
    with pytest.raises(ExamNotReadyError):
        await load_exam_content(FakeBackend(), "t1")


@pytest.mark.asyncio
async def test_no_questions_is_not_ready() -> None:
    backend = FakeBackend(sections=[make_section("s1", 1)])
    with pytest.raises(ExamNotReadyError):
        await load_exam_content(backend, "t1")
