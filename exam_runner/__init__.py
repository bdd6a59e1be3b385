"""Client-side runner for timed oral exams."""
from exam_runner.section_tree import build_section_tree, flatten_sections
from exam_runner.sequencer import build_flat_question_list, load_exam_content
from exam_runner.session import ExamSession, SessionState
from exam_runner.state_machine import ExamStateMachine, Phase

__all__ = [
    "ExamSession",
    "ExamStateMachine",
    "Phase",
    "SessionState",
    "build_flat_question_list",
    "build_section_tree",
    "flatten_sections",
    "load_exam_content",
]
