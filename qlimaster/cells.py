"""Addressable cells of a table row, used for edit-mode navigation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .layout import Layout

__all__ = ["CellKind", "Cell", "NO_CELL", "addressable_cells", "cell_index"]


class CellKind(Enum):
    """Kind of a cell in a data row."""

    NONE = 0
    POSITION = 1
    TEAM = 2
    PLAYERS = 3
    ROUND = 4
    CHECKPOINT = 5
    TOTAL = 6


_EDITABLE = frozenset({CellKind.TEAM, CellKind.PLAYERS, CellKind.ROUND})


@dataclass(frozen=True)
class Cell:
    """One cell; ``round_number`` is meaningful for round and checkpoint cells."""

    kind: CellKind = CellKind.NONE
    round_number: int = 0

    def is_editable(self) -> bool:
        """Whether the cell can be written to."""
        return self.kind in _EDITABLE


NO_CELL = Cell()


def addressable_cells(layout: Layout) -> list[Cell]:
    """Visible cells from left to right; hidden columns are left out."""
    cells = [Cell(CellKind.POSITION), Cell(CellKind.TEAM)]
    if layout.show_players:
        cells.append(Cell(CellKind.PLAYERS))
    checkpoints = set(layout.visible_checkpoints)
    for r in layout.visible_rounds:
        cells.append(Cell(CellKind.ROUND, r))
        if r in checkpoints:
            cells.append(Cell(CellKind.CHECKPOINT, r))
    cells.append(Cell(CellKind.TOTAL))
    return cells


def cell_index(cells: Sequence[Cell], cell: Cell) -> int:
    """Position of ``cell`` in ``cells``, or -1 when it is absent."""
    return next((i for i, c in enumerate(cells) if c == cell), -1)