"""
Pytest Configuration and Fixtures

Shared fixtures: environment defaults, an in-memory Notion database fake,
and a factory for valid notes.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults — MUST be before any saa_notes imports.
#
# 1. Load .env first so live credentials are available to integration tests.
# 2. setdefault fills in anything still missing (CI runners, fresh clones
#    without a .env file) so that pydantic Settings validation doesn't crash.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "NOTION_API_KEY": "secret_test_key",
    "NOTION_DATABASE_ID": "db-test",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
import copy  # noqa: E402
import logging  # noqa: E402
from collections.abc import Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from saa_notes.core.exceptions import TransportError  # noqa: E402
from saa_notes.repositories.properties import PROPERTY_TYPES, QUESTION_TEXT  # noqa: E402
from saa_notes.schemas.notes import ChoiceExplanation, StructuredNote  # noqa: E402


class FakeNotionStore:
    """
    In-memory stand-in for NotionClient.

    Stores properties in the shape Notion returns them (text objects carry
    ``plain_text``), supports the title "contains" filter, cursor pagination,
    and per-operation failure injection via ``fail``.
    """

    def __init__(self) -> None:
        self.pages: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.failures: dict[str, TransportError] = {}
        self._next_id = 1

    def fail(self, operation: str, message: str, **kwargs: Any) -> None:
        self.failures[operation] = TransportError(message, operation=operation, **kwargs)

    def add_raw_page(self, properties: dict[str, Any]) -> str:
        """Insert properties exactly as given (already in read shape)."""
        page_id = self._new_id()
        self.pages[page_id] = properties
        return page_id

    def title_of(self, page_id: str) -> str:
        items = self.pages[page_id].get(QUESTION_TEXT, {}).get("title", [])
        return "".join(item.get("plain_text", "") for item in items)

    async def create_page(
        self, database_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        self._record("create_page")
        page_id = self._new_id()
        self.pages[page_id] = self._as_read_shape(properties)
        return {"object": "page", "id": page_id}

    async def update_page(
        self, page_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        self._record("update_page")
        self.pages[page_id].update(self._as_read_shape(properties))
        return {"object": "page", "id": page_id}

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        start_cursor: str | None = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        self._record("query_database")
        ids = list(self.pages)
        if filter is not None:
            needle = filter["title"]["contains"].lower()
            ids = [i for i in ids if needle in self.title_of(i).lower()]

        start = int(start_cursor or 0)
        end = start + page_size
        has_more = end < len(ids)
        return {
            "object": "list",
            "results": [
                {"object": "page", "id": i, "properties": copy.deepcopy(self.pages[i])}
                for i in ids[start:end]
            ],
            "has_more": has_more,
            "next_cursor": str(end) if has_more else None,
        }

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]

    def _new_id(self) -> str:
        page_id = f"page-{self._next_id}"
        self._next_id += 1
        return page_id

    @staticmethod
    def _as_read_shape(properties: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(properties)
        for name, value in stored.items():
            kind = PROPERTY_TYPES.get(name)
            if kind in ("title", "rich_text"):
                for item in value[kind]:
                    item["plain_text"] = item["text"]["content"]
            stored[name] = {"type": kind, **value}
        return stored


@pytest.fixture
def log_capture(caplog: pytest.LogCaptureFixture):
    """
    caplog wired to the package logger.

    setup_logging() stops "saa_notes" records from propagating to the root
    logger, where caplog listens by default.
    """
    package_logger = logging.getLogger("saa_notes")
    package_logger.addHandler(caplog.handler)
    yield caplog
    package_logger.removeHandler(caplog.handler)


@pytest.fixture
def store() -> FakeNotionStore:
    """Empty in-memory Notion database."""
    return FakeNotionStore()


@pytest.fixture
def make_note() -> Callable[..., StructuredNote]:
    """
    Factory for valid notes.

    Choice explanations are derived from ``choices`` and ``correct_answer``
    unless passed explicitly; any field can be overridden.
    """

    def _make(**overrides: Any) -> StructuredNote:
        choices = overrides.pop(
            "choices",
            ["Amazon S3", "Amazon EBS", "Amazon EFS", "Instance store"],
        )
        correct_answer = overrides.pop("correct_answer", 3)
        correct = (
            {correct_answer} if isinstance(correct_answer, int) else set(correct_answer)
        )
        explanations = overrides.pop(
            "choice_explanations",
            [
                ChoiceExplanation(
                    choice_number=i,
                    choice_text=choice,
                    is_correct=i in correct,
                    explanation=f"Why {choice} {'fits' if i in correct else 'does not fit'}.",
                )
                for i, choice in enumerate(choices, 1)
            ],
        )
        fields: dict[str, Any] = {
            "question_text": (
                "A company needs shared POSIX file storage that many EC2 instances "
                "in several Availability Zones can mount at once. Which service fits?"
            ),
            "choices": choices,
            "correct_answer": correct_answer,
            "correct_choice_text": choices[min(correct) - 1],
            "explanation": "EFS is a regional, multi-AZ NFS file system.",
            "related_services": {"Amazon EFS", "Amazon EC2"},
            "well_architected_categories": {"Reliability", "performance-efficiency"},
            "choice_explanations": explanations,
            "learning_points": ["EFS is mountable from many AZs", "EBS attaches to one AZ"],
            "architecture_diagram": "graph TD\n  EC2a --> EFS\n  EC2b --> EFS",
            "similar_questions_hint": "Look for 'shared' and 'multiple AZs'.",
        }
        fields.update(overrides)
        return StructuredNote(**fields)

    return _make
