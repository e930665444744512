"""Editing session for one open notebook file.

Holds the live Notebook and its latest execution results. Every edit
schedules a debounced save; ``save_now`` and ``close`` force one.
"""

from __future__ import annotations

import logging

from sqlnb.core import Result
from sqlnb.document.codec import import_from_yaml
from sqlnb.errors import NotebookError, NotFoundError
from sqlnb.files.autosave import AutoSaver
from sqlnb.files.handler import FileMeta, report_error
from sqlnb.notebook.cell import Attachment, Cell, CellMetadata, CellResult, CellType, TextContent
from sqlnb.notebook.notebook import Notebook

logger = logging.getLogger("sqlnb.session")


class NotebookSession:
    def __init__(self, path: str, notebook: Notebook, autosaver: AutoSaver) -> None:
        self._path = path
        self._notebook = notebook
        self._autosaver = autosaver
        self._results: dict[str, CellResult] = {}

    @classmethod
    async def open(cls, path: str, autosaver: AutoSaver, *, create: bool = True) -> Result[NotebookSession]:
        """Load ``path`` into a session, starting a new notebook if it does not exist yet."""
        result: Result[NotebookSession] = Result()
        loaded = await autosaver.handler.load(path)
        if loaded.data is not None:
            result.diagnostics.extend(loaded.diagnostics)
            result.data = cls(path, loaded.data, autosaver)
            return result

        not_found = [d for d in loaded.diagnostics if d.code == NotFoundError.code]
        if create and not_found and len(not_found) == len(loaded.errors):
            title = path.removesuffix(".sqlnb") or "Untitled"
            logger.info("Starting new notebook for %s", path)
            result.data = cls(path, Notebook(title=title), autosaver)
            return result

        result.extend(loaded)
        return result

    @property
    def path(self) -> str:
        return self._path

    @property
    def notebook(self) -> Notebook:
        return self._notebook

    @property
    def results(self) -> dict[str, CellResult]:
        return dict(self._results)

    def _changed(self) -> None:
        self._autosaver.schedule_save(self._path, self._notebook, self._results)

    def add_cell(
        self,
        cell_type: CellType,
        content: TextContent | Attachment | str | None = None,
        *,
        after_cell_id: str | None = None,
    ) -> Cell:
        cell = self._notebook.add_cell(cell_type, content, after_cell_id=after_cell_id)
        self._changed()
        return cell

    def update_cell(self, cell_id: str, content: TextContent | Attachment | str) -> bool:
        """Replace a cell's content. Raises FormatError if it does not fit the cell type."""
        if not self._notebook.update_cell(cell_id, content):
            return False
        self._changed()
        return True

    def delete_cell(self, cell_id: str) -> bool:
        """Remove a cell, renumber the rest and drop its cached result."""
        if not self._notebook.delete_cell(cell_id):
            return False
        self._results.pop(cell_id, None)
        self._changed()
        return True

    def reorder_cells(self, cell_ids: list[str]) -> None:
        self._notebook.reorder_cells(cell_ids)
        self._changed()

    def update_title(self, title: str) -> None:
        self._notebook.title = title
        self._notebook.touch()
        self._changed()

    def record_result(self, result: CellResult) -> bool:
        """Store an execution result; on success also mark the cell as executed."""
        cell = self._notebook.get_cell(result.cell_id)
        if cell is None or cell.type != CellType.SQL:
            return False
        self._results[cell.id] = result
        if result.error is None:
            cell.metadata = CellMetadata(
                executed=True,
                execution_time_ms=result.execution_time_ms,
                result_count=result.row_count,
            )
        self._changed()
        return True

    def update_from_yaml(self, text: str) -> Result[Notebook]:
        """Replace the notebook from edited .sqlnb text.

        Text that fails to parse or validate (wrong format tag, unsupported
        version, duplicate ids, ...) leaves the notebook untouched.
        """
        result: Result[Notebook] = Result()
        try:
            notebook = import_from_yaml(text)
        except NotebookError as e:
            report_error(result, e)
            return result

        notebook.touch()
        kept = {cell.id for cell in notebook.cells}
        self._results = {cid: r for cid, r in self._results.items() if cid in kept}
        self._notebook = notebook
        self._changed()
        result.data = notebook
        return result

    async def save_now(self) -> Result[FileMeta]:
        return await self._autosaver.force_save(self._path, self._notebook, self._results)

    async def close(self) -> Result[FileMeta]:
        """Flush the current state so no debounced edit is lost on teardown."""
        result = await self.save_now()
        logger.info("Closed %s", self._path)
        return result
