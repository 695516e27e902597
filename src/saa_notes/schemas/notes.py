"""
Note Schemas

Pydantic models for explained exam-question notes.
StructuredNote is the domain entity handed to the note store; StoredNote and
NoteUpsertResponse are the API response shapes.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from saa_notes.services.pillars import normalize_pillar

MIN_CHOICES = 2
MAX_CHOICES = 8

_LINE_BREAK = re.compile(r"\s*[\r\n]+\s*")
_BULLETED_LINE = re.compile(r"\s*[\r\n]+\s*•\s*")
_LEADING_BULLETS = re.compile(r"^[•\s]+")

# Notion rejects select option names containing a comma
_TAG_FORBIDDEN = ","


def _single_line(value: str) -> str:
    """Collapse embedded line breaks; one choice occupies one stored line."""
    return _LINE_BREAK.sub(" ", value)


def _bare_point(value: str) -> str:
    """Drop bullets a learning point carries; the stored list adds its own."""
    return _LEADING_BULLETS.sub("", _BULLETED_LINE.sub(" ", value)).strip()


def _check_tags(field: str, tags: frozenset[str]) -> frozenset[str]:
    bad = sorted(tag for tag in tags if _TAG_FORBIDDEN in tag)
    if bad:
        raise ValueError(f"{field} entries must not contain ',': {bad}")
    return tags


class ChoiceExplanation(BaseModel):
    """Why one choice is right or wrong."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    choice_number: int = Field(ge=1, description="1-indexed position in choices")
    choice_text: str
    is_correct: bool
    explanation: str = ""

    @field_validator("choice_text")
    @classmethod
    def _collapse_choice_text(cls, value: str) -> str:
        return _single_line(value)


class StructuredNote(BaseModel):
    """
    One fully-explained multiple-choice exam question.

    Invariants (checked on construction and on re-validation):
        - one choice explanation per choice, numbered exactly 1..len(choices)
        - ``is_correct`` is true exactly for the numbers in ``correct_answers``
        - every correct answer lies within [1, len(choices)]

    ``well_architected_categories`` is normalized to pillar slugs; unknown
    labels are kept in their fallback slug form rather than rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        revalidate_instances="always",  # model_validate(note) re-checks invariants
    )

    question_text: str = Field(..., min_length=1)
    choices: list[str] = Field(..., min_length=MIN_CHOICES, max_length=MAX_CHOICES)
    correct_answer: int | frozenset[int] = Field(
        ...,
        description="1-indexed correct choice, or a set of them",
    )
    correct_choice_text: str
    explanation: str
    related_services: frozenset[str] = Field(default_factory=frozenset)
    well_architected_categories: frozenset[str] = Field(default_factory=frozenset)
    choice_explanations: list[ChoiceExplanation]
    learning_points: list[str] = Field(default_factory=list)
    architecture_diagram: str | None = None
    similar_questions_hint: str | None = None

    @field_validator("choices")
    @classmethod
    def _check_choices(cls, value: list[str]) -> list[str]:
        choices = [_single_line(choice) for choice in value]
        if any(not choice for choice in choices):
            raise ValueError("choices must not be blank")
        return choices

    @field_validator("correct_answer")
    @classmethod
    def _collapse_single_answer(cls, value: int | frozenset[int]) -> int | frozenset[int]:
        if isinstance(value, frozenset):
            if not value:
                raise ValueError("correct_answer must name at least one choice")
            if len(value) == 1:
                return next(iter(value))
        return value

    @field_validator("related_services")
    @classmethod
    def _drop_blank_services(cls, value: frozenset[str]) -> frozenset[str]:
        return _check_tags(
            "related_services", frozenset(service for service in value if service)
        )

    @field_validator("well_architected_categories")
    @classmethod
    def _normalize_categories(cls, value: frozenset[str]) -> frozenset[str]:
        return _check_tags(
            "well_architected_categories",
            frozenset(normalize_pillar(label) for label in value if label),
        )

    @field_validator("learning_points")
    @classmethod
    def _drop_blank_points(cls, value: list[str]) -> list[str]:
        points = (_bare_point(point) for point in value)
        return [point for point in points if point]

    @field_validator("architecture_diagram", "similar_questions_hint")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None

    @model_validator(mode="after")
    def _check_invariants(self) -> StructuredNote:
        count = len(self.choices)

        out_of_range = sorted(n for n in self.correct_answers if not 1 <= n <= count)
        if out_of_range:
            raise ValueError(
                f"correct_answer {out_of_range} outside 1..{count} for {count} choices"
            )

        numbers = [ce.choice_number for ce in self.choice_explanations]
        if sorted(numbers) != list(range(1, count + 1)):
            raise ValueError(
                f"choice_explanations must number exactly 1..{count}, got {numbers}"
            )

        marked = {ce.choice_number for ce in self.choice_explanations if ce.is_correct}
        if marked != self.correct_answers:
            raise ValueError(
                f"choice_explanations mark {sorted(marked)} correct, "
                f"but correct_answer is {sorted(self.correct_answers)}"
            )
        return self

    @property
    def correct_answers(self) -> frozenset[int]:
        """Correct choice numbers as a set, whatever the stored shape."""
        if isinstance(self.correct_answer, int):
            return frozenset({self.correct_answer})
        return self.correct_answer


class StoredNote(BaseModel):
    """A note together with the Notion page that holds it."""

    id: str = Field(description="Notion page id")
    note: StructuredNote


class NoteUpsertResponse(BaseModel):
    """Response schema for POST /notes."""

    id: str = Field(description="Notion page id created or updated")
