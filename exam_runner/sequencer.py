"""Merge per-section questions into the single ordered list the exam walks."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Iterable, Mapping

from exam_runner.errors import DataIntegrityError, ExamNotReadyError
from exam_runner.models import FlatQuestion, HierarchicalSection, Question, Section
from exam_runner.section_tree import build_section_tree, find_orphans, flatten_sections

if TYPE_CHECKING:
    from exam_runner.backend import ExamBackend

logger = logging.getLogger(__name__)

_QUESTION_FIELDS = tuple(f.name for f in fields(Question))


@dataclass
class ExamContent:
    """Everything the runner needs to start a test."""

    test_id: str
    tree: list[HierarchicalSection]
    sections: list[HierarchicalSection]
    questions: list[FlatQuestion]
    orphans: list[Section] = field(default_factory=list)


def build_flat_question_list(
    sections: Iterable[Section],
    questions_by_section: Mapping[str, Iterable[Question]],
) -> list[FlatQuestion]:
    """
    Produce the global question order.

    Questions are grouped by section in the given (flattened) section order and
    sorted by question number inside a section. Each item carries the section's
    default timers and image; per-question timer overrides take precedence.
    """
    flat: list[FlatQuestion] = []
    for section_index, section in enumerate(sections):
        section_questions = sorted(
            questions_by_section.get(section.id, []),
            key=lambda question: question.question_number,
        )
        for question in section_questions:
            values = {name: getattr(question, name) for name in _QUESTION_FIELDS}
            flat.append(
                FlatQuestion(
                    **values,
                    section_index=section_index,
                    section_title=section.title,
                    section_preparation_time=section.preparation_time,
                    section_speaking_time=section.speaking_time,
                    section_image_url=section.image_url,
                )
            )
    return flat


async def load_exam_content(backend: ExamBackend, test_id: str) -> ExamContent:
    """
    Fetch sections and questions for a test and build the question sequence.

    Raises ExamNotReadyError when the test has no sections or no questions and
    DataIntegrityError when any section's questions could not be fetched, so a
    partial question list is never returned.
    """
    raw_sections = await backend.fetch_sections(test_id)
    if not raw_sections:
        raise ExamNotReadyError(f"Test {test_id} has no sections")

    orphans = find_orphans(raw_sections)
    tree = build_section_tree(raw_sections)
    ordered = flatten_sections(tree)

    results = await asyncio.gather(
        *(backend.fetch_questions(section.id) for section in ordered),
        return_exceptions=True,
    )

    questions_by_section: dict[str, list[Question]] = {}
    failed: list[str] = []
    for section, result in zip(ordered, results):
        if isinstance(result, BaseException):
            logger.error(
                "Failed to load questions for section %s: %s", section.id, result
            )
            failed.append(section.display_number or section.id)
            continue
        questions_by_section[section.id] = list(result)

    if failed:
        raise DataIntegrityError(
            "Questions could not be loaded for section(s): " + ", ".join(failed)
        )

    questions = build_flat_question_list(ordered, questions_by_section)
    if not questions:
        raise ExamNotReadyError(f"Test {test_id} has no questions")

    logger.info(
        "Loaded test %s: %d sections, %d questions",
        test_id,
        len(ordered),
        len(questions),
    )
    return ExamContent(
        test_id=test_id,
        tree=tree,
        sections=ordered,
        questions=questions,
        orphans=orphans,
    )
