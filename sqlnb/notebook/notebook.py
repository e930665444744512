"""Notebook model: an ordered list of cells plus timestamps."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from sqlnb.errors import FormatError
from sqlnb.notebook.cell import Attachment, Cell, CellType, TextContent


def generate_notebook_id() -> str:
    """Generate a notebook ID: 'nb_' + 12 hex chars from uuid4."""
    return "nb_" + uuid.uuid4().hex[:12]


def _now() -> datetime:
    return datetime.now(UTC)


class Notebook(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    id: str = Field(default_factory=generate_notebook_id)
    title: str = "Untitled"
    cells: list[Cell] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def touch(self) -> None:
        self.updated_at = _now()

    def sorted_cells(self) -> list[Cell]:
        return sorted(self.cells, key=lambda c: c.order)

    def get_cell(self, cell_id: str) -> Cell | None:
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        return None

    def normalize_order(self) -> None:
        """Sort cells by order (stable) and renumber them 0..n-1."""
        self.cells = self.sorted_cells()
        for i, cell in enumerate(self.cells):
            cell.order = i

    def add_cell(
        self,
        cell_type: CellType,
        content: TextContent | Attachment | str | None = None,
        *,
        after_cell_id: str | None = None,
    ) -> Cell:
        """Create a cell at the end, or directly after ``after_cell_id``.

        Raises KeyError if ``after_cell_id`` is not in the notebook.
        """
        self.normalize_order()
        if after_cell_id is None:
            position = len(self.cells)
        else:
            anchor = self.get_cell(after_cell_id)
            if anchor is None:
                raise KeyError(after_cell_id)
            position = anchor.order + 1

        if content is None:
            content = TextContent()
        cell = Cell(type=cell_type, content=content, order=position)
        self.cells.insert(position, cell)
        self.normalize_order()
        self.touch()
        return cell

    def update_cell(self, cell_id: str, content: TextContent | Attachment | str) -> bool:
        """Replace a cell's content, return True if found.

        Raises FormatError if ``content`` does not fit the cell's type (e.g. a
        string that is not attachment JSON for an image cell); the cell is
        left unchanged.
        """
        for i, existing in enumerate(self.cells):
            if existing.id == cell_id:
                data = existing.model_dump()
                data["content"] = content
                try:
                    self.cells[i] = Cell.model_validate(data)
                except ValidationError as e:
                    raise FormatError(f"Cell {cell_id}: content does not match a {existing.type} cell") from e
                self.touch()
                return True
        return False

    def delete_cell(self, cell_id: str) -> bool:
        """Remove a cell by ID and renumber the rest, return True if found."""
        for i, cell in enumerate(self.cells):
            if cell.id == cell_id:
                self.cells.pop(i)
                self.normalize_order()
                self.touch()
                return True
        return False

    def reorder_cells(self, cell_ids: list[str]) -> None:
        """Rebuild the cell sequence from ``cell_ids``.

        Unknown and repeated ids are ignored; cells not listed are removed.
        """
        by_id = {cell.id: cell for cell in self.cells}
        self.cells = [by_id.pop(cid) for cid in cell_ids if cid in by_id]
        for i, cell in enumerate(self.cells):
            cell.order = i
        self.touch()
