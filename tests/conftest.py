"""Shared test fixtures for sqlnb tests."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from sqlnb.files.handler import SQLNBFileHandler
from sqlnb.notebook.cell import Attachment, Cell, CellMetadata, CellResult, CellType
from sqlnb.notebook.notebook import Notebook
from sqlnb.storage.memory import InMemoryStorageAdapter

CREATED = datetime(2025, 1, 14, 9, 30, tzinfo=UTC)
UPDATED = datetime(2025, 1, 15, 17, 5, 12, tzinfo=UTC)

GROWTH_SQL = """\
SELECT DATE(created_at) AS date, COUNT(*) AS users
FROM users
WHERE note = 'a: b # c'
GROUP BY 1;"""


def make_notebook(title: str = "Weekly Analysis") -> Notebook:
    return Notebook(
        id="n1",
        title=title,
        created_at=CREATED,
        updated_at=UPDATED,
        cells=[
            Cell(id="c1", type=CellType.MARKDOWN, content="# Weekly User Analysis\n\nActivity: past week.", order=0),
            Cell(
                id="c2",
                type=CellType.SQL,
                content=GROWTH_SQL,
                order=1,
                metadata=CellMetadata(executed=True, execution_time_ms=245, result_count=7),
            ),
            Cell(id="c3", type=CellType.SQL, content="SELECT broken", order=2),
            Cell(
                id="c4",
                type=CellType.IMAGE,
                content=Attachment(
                    id="att_1",
                    type="image",
                    url="https://example.com/chart.png",
                    filename="chart.png",
                    mime_type="image/png",
                    size=2048,
                ),
                order=3,
            ),
        ],
    )


def make_results() -> dict[str, CellResult]:
    return {
        "c2": CellResult(
            cell_id="c2",
            data=[{"date": "2025-01-14", "users": 3}],
            columns=["date", "users"],
            executed_at=UPDATED,
            execution_time_ms=245,
        ),
        "c3": CellResult(cell_id="c3", executed_at=UPDATED, error='column "broken" does not exist'),
    }


class CountingStorage(InMemoryStorageAdapter):
    """Records every write."""

    def __init__(self) -> None:
        super().__init__()
        self.saves: list[tuple[str, str]] = []

    async def save(self, key: str, text: str) -> None:
        self.saves.append((key, text))
        await super().save(key, text)


class FailingStorage(InMemoryStorageAdapter):
    async def save(self, key: str, text: str) -> None:
        raise OSError("disk full")


class SlowStorage(InMemoryStorageAdapter):
    async def save(self, key: str, text: str) -> None:
        await asyncio.sleep(1)
        await super().save(key, text)


@pytest.fixture
def storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture
def handler(storage: CountingStorage) -> SQLNBFileHandler:
    return SQLNBFileHandler(storage)
