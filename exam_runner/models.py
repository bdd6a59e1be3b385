"""Data classes shared by the exam runner."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass
class Section:
    id: str
    test_id: str
    section_number: int
    title: str
    instructions: str | None = None
    preparation_time: int = 0  # seconds
    speaking_time: int = 0  # seconds
    image_url: str | None = None
    parent_section_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Section:
        """Build a section from an API payload."""
        return cls(
            id=str(payload["id"]),
            test_id=str(payload["test_id"]),
            section_number=int(payload["section_number"]),
            title=payload.get("title") or "",
            instructions=payload.get("instructions"),
            preparation_time=int(payload.get("preparation_time") or 0),
            speaking_time=int(payload.get("speaking_time") or 0),
            image_url=payload.get("image_url"),
            parent_section_id=(
                str(payload["parent_section_id"])
                if payload.get("parent_section_id")
                else None
            ),
        )


@dataclass
class HierarchicalSection(Section):
    children: list[HierarchicalSection] = field(default_factory=list)
    display_number: str = ""


@dataclass
class Question:
    id: str
    section_id: str
    question_number: int
    question_text: str
    image_url: str | None = None
    question_audio_url: str | None = None
    preparation_time: int | None = None  # overrides the section when set
    speaking_time: int | None = None
    key_facts_plus: str | None = None
    key_facts_plus_label: str | None = None
    key_facts_minus: str | None = None
    key_facts_minus_label: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Question:
        """Build a question from an API payload."""
        return cls(
            id=str(payload["id"]),
            section_id=str(payload["section_id"]),
            question_number=int(payload["question_number"]),
            question_text=payload.get("question_text") or "",
            image_url=payload.get("image_url"),
            question_audio_url=payload.get("question_audio_url"),
            preparation_time=_optional_int(payload.get("preparation_time")),
            speaking_time=_optional_int(payload.get("speaking_time")),
            key_facts_plus=payload.get("key_facts_plus"),
            key_facts_plus_label=payload.get("key_facts_plus_label"),
            key_facts_minus=payload.get("key_facts_minus"),
            key_facts_minus_label=payload.get("key_facts_minus_label"),
        )


@dataclass
class FlatQuestion(Question):
    section_index: int = 0
    section_title: str = ""
    section_preparation_time: int = 0
    section_speaking_time: int = 0
    section_image_url: str | None = None

    @property
    def effective_preparation_time(self) -> int:
        if self.preparation_time is not None:
            return self.preparation_time
        return self.section_preparation_time

    @property
    def effective_speaking_time(self) -> int:
        if self.speaking_time is not None:
            return self.speaking_time
        return self.section_speaking_time

    @property
    def display_image_url(self) -> str | None:
        return self.image_url or self.section_image_url


@dataclass
class Recording:
    """Audio captured for one question, kept in memory until uploaded."""

    question_id: str
    data: bytes
    duration: float  # seconds
    content_type: str = "audio/wav"
    url: str | None = None

    @property
    def filename(self) -> str:
        return f"answer-{self.question_id}.wav"
