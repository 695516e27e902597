"""
Note Property Codec

Translates between StructuredNote and the flat Notion property bag.
This is the only module aware of the Notion property layout; everything else
in the package works with StructuredNote.

Wire formats (one per rich-text property):
    Choices:             "1. <choice>\\n2. <choice>..."
    Choice Explanations: "【選択肢<N>】✓ 正解\\n<choice text>\\n<explanation>"
                         sections joined by a blank line
    Learning Points:     points joined by "\\n• "
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Final

from pydantic import ValidationError

from saa_notes.schemas.notes import ChoiceExplanation, StructuredNote
from saa_notes.services.pillars import is_known_pillar, normalize_pillar

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Notion property contract
# ---------------------------------------------------------------------------

QUESTION_TEXT: Final = "Question Text"
CHOICES: Final = "Choices"
CORRECT_ANSWER: Final = "Correct Answer"
CORRECT_CHOICE_TEXT: Final = "Correct Choice Text"
EXPLANATION: Final = "Explanation"
RELATED_SERVICES: Final = "Related Services"
WELL_ARCHITECTED_CATEGORY: Final = "Well-Architected Category"
CHOICE_EXPLANATIONS: Final = "Choice Explanations"
LEARNING_POINTS: Final = "Learning Points"
ARCHITECTURE_DIAGRAM: Final = "Architecture Diagram"
SIMILAR_QUESTIONS_HINT: Final = "Similar Questions Hint"

PROPERTY_TYPES: Final[Mapping[str, str]] = {
    QUESTION_TEXT: "title",
    CHOICES: "rich_text",
    CORRECT_ANSWER: "number",
    CORRECT_CHOICE_TEXT: "rich_text",
    EXPLANATION: "rich_text",
    RELATED_SERVICES: "multi_select",
    WELL_ARCHITECTED_CATEGORY: "multi_select",
    CHOICE_EXPLANATIONS: "rich_text",
    LEARNING_POINTS: "rich_text",
    ARCHITECTURE_DIAGRAM: "rich_text",
    SIMILAR_QUESTIONS_HINT: "rich_text",
}
OPTIONAL_PROPERTIES: Final = frozenset({ARCHITECTURE_DIAGRAM, SIMILAR_QUESTIONS_HINT})
REQUIRED_PROPERTIES: Final = tuple(
    name for name in PROPERTY_TYPES if name not in OPTIONAL_PROPERTIES
)

# Notion rejects text objects longer than this
MAX_TEXT_LENGTH: Final = 2000

CORRECT_MARK: Final = "✓ 正解"
INCORRECT_MARK: Final = "✗ 不正解"
SUCCESS_GLYPH: Final = "✓"
LEARNING_POINT_SEPARATOR: Final = "\n• "
SECTION_SEPARATOR: Final = "\n\n"

SECTION_MARKER: Final = re.compile(r"【選択肢(\d+)】")
_CHOICE_PREFIX = re.compile(r"^\d+\.\s?")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _text_objects(content: str) -> list[dict[str, Any]]:
    """Split ``content`` into Notion text objects within the length limit."""
    return [
        {"type": "text", "text": {"content": content[i : i + MAX_TEXT_LENGTH]}}
        for i in range(0, len(content), MAX_TEXT_LENGTH)
    ]


def _rich_text(content: str) -> dict[str, Any]:
    return {"rich_text": _text_objects(content)}


def _multi_select(names: frozenset[str]) -> dict[str, Any]:
    # Sorted for a deterministic payload; Notion does not keep tag order
    return {"multi_select": [{"name": name} for name in sorted(names)]}


def format_choices(choices: list[str]) -> str:
    """Render choices as numbered lines: ``"1. S3\\n2. EBS"``."""
    return "\n".join(f"{i}. {choice}" for i, choice in enumerate(choices, 1))


def format_choice_explanations(explanations: list[ChoiceExplanation]) -> str:
    """Render one marker-delimited section per choice, in choice order."""
    sections = []
    for ce in sorted(explanations, key=lambda ce: ce.choice_number):
        status = CORRECT_MARK if ce.is_correct else INCORRECT_MARK
        sections.append(
            f"【選択肢{ce.choice_number}】{status}\n{ce.choice_text}\n{ce.explanation}"
        )
    return SECTION_SEPARATOR.join(sections)


def encode_note(note: StructuredNote) -> dict[str, Any]:
    """
    Build the Notion ``properties`` payload for a note.

    Optional properties are omitted when empty, so an update leaves any
    previously stored value in place.
    """
    for ce in note.choice_explanations:
        if SECTION_MARKER.search(ce.choice_text) or SECTION_MARKER.search(
            ce.explanation
        ):
            logger.warning(
                "Choice %d text contains a section marker; it will not "
                "decode back to the same explanations",
                ce.choice_number,
            )
    unknown = sorted(c for c in note.well_architected_categories if not is_known_pillar(c))
    if unknown:
        logger.info("Writing non-standard Well-Architected categories: %s", unknown)

    properties: dict[str, Any] = {
        QUESTION_TEXT: {"title": _text_objects(note.question_text)},
        CHOICES: _rich_text(format_choices(note.choices)),
        # Single number column: the lowest correct choice. Every correct
        # choice also carries CORRECT_MARK in CHOICE_EXPLANATIONS.
        CORRECT_ANSWER: {"number": min(note.correct_answers)},
        CORRECT_CHOICE_TEXT: _rich_text(note.correct_choice_text),
        EXPLANATION: _rich_text(note.explanation),
        RELATED_SERVICES: _multi_select(note.related_services),
        WELL_ARCHITECTED_CATEGORY: _multi_select(note.well_architected_categories),
        CHOICE_EXPLANATIONS: _rich_text(
            format_choice_explanations(note.choice_explanations)
        ),
        LEARNING_POINTS: _rich_text(LEARNING_POINT_SEPARATOR.join(note.learning_points)),
    }
    if note.architecture_diagram:
        properties[ARCHITECTURE_DIAGRAM] = _rich_text(note.architecture_diagram)
    if note.similar_questions_hint:
        properties[SIMILAR_QUESTIONS_HINT] = _rich_text(note.similar_questions_hint)
    return properties


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _read_text(properties: Mapping[str, Any], name: str) -> str:
    """Concatenate every text element of a title or rich-text property."""
    prop = properties.get(name)
    if not isinstance(prop, Mapping):
        return ""
    items = prop.get(PROPERTY_TYPES[name]) or []
    parts = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        text = item.get("plain_text")
        if text is None:
            text = (item.get("text") or {}).get("content", "")
        parts.append(str(text))
    return "".join(parts)


def _read_number(properties: Mapping[str, Any], name: str) -> int | None:
    prop = properties.get(name)
    if not isinstance(prop, Mapping):
        return None
    value = prop.get("number")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def _read_tags(properties: Mapping[str, Any], name: str) -> list[str]:
    prop = properties.get(name)
    if not isinstance(prop, Mapping):
        return []
    return [
        str(option["name"])
        for option in prop.get("multi_select") or []
        if isinstance(option, Mapping) and option.get("name")
    ]


def parse_choices(block: str) -> list[str]:
    """Inverse of format_choices; blank lines are dropped."""
    choices = []
    for line in block.split("\n"):
        text = _CHOICE_PREFIX.sub("", line.strip(), count=1).strip()
        if text:
            choices.append(text)
    return choices


def parse_learning_points(block: str) -> list[str]:
    """Inverse of the ``"\\n• "`` join; the first point carries no bullet."""
    points = []
    for part in block.split(LEARNING_POINT_SEPARATOR):
        point = part.strip().removeprefix("•").strip()
        if point:
            points.append(point)
    return points


def _resolve_choice_number(
    text: str,
    marker_number: int,
    choices: list[str],
    claimed: set[int],
) -> int | None:
    """
    Match a section back to its choice by text, not by its marker number.

    Exact match first, then substring match either way; the marker number
    is only used when the text matches no unclaimed choice.
    """
    candidates = [
        (number, choice)
        for number, choice in enumerate(choices, 1)
        if number not in claimed
    ]
    for number, choice in candidates:
        if text == choice:
            return number
    if text:
        for number, choice in candidates:
            if text in choice or choice in text:
                return number
    if 1 <= marker_number <= len(choices) and marker_number not in claimed:
        return marker_number
    return None


def parse_choice_explanations(
    block: str, choices: list[str]
) -> list[ChoiceExplanation]:
    """
    Parse marker-delimited sections; unmatched or duplicate sections are dropped.

    The returned list may be incomplete; see decode_note for repair.
    """
    pieces = SECTION_MARKER.split(block)
    # re.split with one group: [preamble, n1, body1, n2, body2, ...]
    parsed: list[ChoiceExplanation] = []
    claimed: set[int] = set()
    for marker, body in zip(pieces[1::2], pieces[2::2], strict=True):
        lines = body.strip().split("\n", 2)
        status = lines[0]
        text = lines[1].strip() if len(lines) > 1 else ""
        explanation = lines[2].strip() if len(lines) > 2 else ""

        number = _resolve_choice_number(text, int(marker), choices, claimed)
        if number is None:
            logger.debug("Dropping choice explanation section %s: no matching choice", marker)
            continue
        claimed.add(number)
        parsed.append(
            ChoiceExplanation(
                choice_number=number,
                choice_text=text,
                is_correct=SUCCESS_GLYPH in status,
                explanation=explanation,
            )
        )
    return parsed


def _complete_explanations(
    parsed: list[ChoiceExplanation],
    choices: list[str],
    correct: frozenset[int],
) -> list[ChoiceExplanation]:
    """Backfill missing choices, sort, and align is_correct with ``correct``."""
    by_number = {ce.choice_number: ce for ce in parsed}
    completed = []
    for number, choice in enumerate(choices, 1):
        ce = by_number.get(number)
        if ce is None:
            ce = ChoiceExplanation(
                choice_number=number,
                choice_text=choice,
                is_correct=False,
                explanation="",
            )
        is_correct = number in correct
        if ce.is_correct != is_correct:
            ce = ce.model_copy(update={"is_correct": is_correct})
        completed.append(ce)
    return completed


def decode_note(properties: Mapping[str, Any]) -> StructuredNote | None:
    """
    Rebuild a StructuredNote from a Notion page's ``properties``.

    Returns None (and logs why) when the page cannot represent a note:
    empty title, fewer than two choices, or a missing/out-of-range correct
    answer. A missing or garbled choice-explanation block never causes a
    failure; explanations are rebuilt from the choices instead.
    """
    question_text = _read_text(properties, QUESTION_TEXT).strip()
    choices_block = _read_text(properties, CHOICES)
    if not question_text or not choices_block.strip():
        logger.warning("Skipping record: empty question text or choices")
        return None

    choices = parse_choices(choices_block)
    if len(choices) < 2:
        logger.warning("Skipping record %r: fewer than two choices", question_text[:50])
        return None

    stored_answer = _read_number(properties, CORRECT_ANSWER)
    if stored_answer is None or not 1 <= stored_answer <= len(choices):
        logger.warning(
            "Skipping record %r: correct answer %r outside 1..%d",
            question_text[:50],
            stored_answer,
            len(choices),
        )
        return None

    parsed = parse_choice_explanations(
        _read_text(properties, CHOICE_EXPLANATIONS), choices
    )
    if not parsed:
        logger.debug("No choice explanations parsed for %r; rebuilding", question_text[:50])

    marked = frozenset(ce.choice_number for ce in parsed if ce.is_correct)
    correct_answer: int | frozenset[int] = stored_answer
    if stored_answer in marked and len(marked) > 1:
        correct_answer = marked
    correct = marked if isinstance(correct_answer, frozenset) else frozenset({stored_answer})

    try:
        return StructuredNote(
            question_text=question_text,
            choices=choices,
            correct_answer=correct_answer,
            correct_choice_text=_read_text(properties, CORRECT_CHOICE_TEXT),
            explanation=_read_text(properties, EXPLANATION),
            related_services=frozenset(_read_tags(properties, RELATED_SERVICES)),
            well_architected_categories=frozenset(
                normalize_pillar(tag)
                for tag in _read_tags(properties, WELL_ARCHITECTED_CATEGORY)
            ),
            choice_explanations=_complete_explanations(parsed, choices, correct),
            learning_points=parse_learning_points(
                _read_text(properties, LEARNING_POINTS)
            ),
            architecture_diagram=_read_text(properties, ARCHITECTURE_DIAGRAM),
            similar_questions_hint=_read_text(properties, SIMILAR_QUESTIONS_HINT),
        )
    except ValidationError as e:
        logger.warning(
            "Skipping record %r: %d validation error(s): %s",
            question_text[:50],
            e.error_count(),
            e.errors()[0]["msg"],
        )
        return None
