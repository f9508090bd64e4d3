#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# board.py — Grid geometry for Pins: edges, cells, and adjacency
#
# Everything here is pure. A Board only knows its size; which edges are drawn
# and who owns what lives in pins.GameState.

from __future__ import annotations

from dataclasses import dataclass

HORIZONTAL = "horizontal"
VERTICAL = "vertical"
ORIENTATIONS = (HORIZONTAL, VERTICAL)


@dataclass(frozen=True, order=True)
class Edge:
    """One segment between two adjacent dots. The atomic move unit."""
    orientation: str
    row: int
    col: int

    @property
    def id(self) -> str:
        return f"{self.orientation}-{self.row}-{self.col}"

    @classmethod
    def from_id(cls, text: str) -> Edge:
        """Parse an id like 'horizontal-0-1' back into an Edge."""
        parts = str(text).split("-")
        if len(parts) != 3 or parts[0] not in ORIENTATIONS:
            raise ValueError(f"Malformed edge id: {text!r}")
        try:
            row, col = int(parts[1]), int(parts[2])
        except ValueError:
            raise ValueError(f"Malformed edge id: {text!r}") from None
        return cls(parts[0], row, col)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True, order=True)
class Cell:
    """A unit square (box) bounded by four edges."""
    row: int
    col: int

    @property
    def id(self) -> str:
        return f"{self.row}-{self.col}"

    @classmethod
    def from_id(cls, text: str) -> Cell:
        parts = str(text).split("-")
        if len(parts) != 2:
            raise ValueError(f"Malformed cell id: {text!r}")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError:
            raise ValueError(f"Malformed cell id: {text!r}") from None

    def __str__(self) -> str:
        return self.id


class Board(object):
    """Geometry of an N×N grid of dots: (N-1)² cells and 2·N·(N-1) edges."""

    def __init__(self, grid_size: int):
        if grid_size < 2:
            raise ValueError(f"Grid size must be at least 2, got {grid_size}")
        self.grid_size = grid_size

    @property
    def cell_count(self) -> int:
        return (self.grid_size - 1) ** 2

    @property
    def edge_count(self) -> int:
        return 2 * self.grid_size * (self.grid_size - 1)

    def edges(self) -> list[Edge]:
        """All edges in canonical order: horizontals row-major, then verticals row-major."""
        n = self.grid_size
        horizontals = [Edge(HORIZONTAL, row, col) for row in range(n) for col in range(n - 1)]
        verticals = [Edge(VERTICAL, row, col) for row in range(n - 1) for col in range(n)]
        return horizontals + verticals

    def cells(self) -> list[Cell]:
        n = self.grid_size - 1
        return [Cell(row, col) for row in range(n) for col in range(n)]

    def contains_edge(self, edge: Edge) -> bool:
        n = self.grid_size
        if edge.orientation == HORIZONTAL:
            return 0 <= edge.row < n and 0 <= edge.col < n - 1
        if edge.orientation == VERTICAL:
            return 0 <= edge.row < n - 1 and 0 <= edge.col < n
        return False

    def contains_cell(self, cell: Cell) -> bool:
        n = self.grid_size - 1
        return 0 <= cell.row < n and 0 <= cell.col < n

    def edges_of_cell(self, cell: Cell) -> list[Edge]:
        """Return [top, bottom, left, right] for cell. Every higher layer depends on this order."""
        row, col = cell.row, cell.col
        return [
            Edge(HORIZONTAL, row, col),      # top
            Edge(HORIZONTAL, row + 1, col),  # bottom
            Edge(VERTICAL, row, col),        # left
            Edge(VERTICAL, row, col + 1),    # right
        ]

    def cells_adjacent_to_edge(self, edge: Edge) -> list[Cell]:
        """Return the 0-2 cells an edge bounds.

        Horizontal (row, col): above is cell(row-1, col), below is cell(row, col).
        Vertical (row, col): left is cell(row, col-1), right is cell(row, col).
        """
        last = self.grid_size - 1
        cells = []
        if edge.orientation == HORIZONTAL:
            if edge.row > 0:
                cells.append(Cell(edge.row - 1, edge.col))
            if edge.row < last:
                cells.append(Cell(edge.row, edge.col))
        else:
            if edge.col > 0:
                cells.append(Cell(edge.row, edge.col - 1))
            if edge.col < last:
                cells.append(Cell(edge.row, edge.col))
        return cells

    def neighbor_cells(self, cell: Cell) -> list[Cell]:
        """Up to four in-bounds cells sharing an edge with cell (up, down, left, right)."""
        candidates = [
            Cell(cell.row - 1, cell.col),
            Cell(cell.row + 1, cell.col),
            Cell(cell.row, cell.col - 1),
            Cell(cell.row, cell.col + 1),
        ]
        return [c for c in candidates if self.contains_cell(c)]

    def shared_edge(self, a: Cell, b: Cell) -> Edge | None:
        """The edge two orthogonally adjacent cells share, or None if they aren't adjacent."""
        if a.col == b.col and abs(a.row - b.row) == 1:
            return Edge(HORIZONTAL, max(a.row, b.row), a.col)
        if a.row == b.row and abs(a.col - b.col) == 1:
            return Edge(VERTICAL, a.row, max(a.col, b.col))
        return None

    def other_cell(self, cell: Cell, edge: Edge) -> Cell | None:
        """The cell on the far side of edge from cell, if there is one."""
        for other in self.cells_adjacent_to_edge(edge):
            if other != cell:
                return other
        return None
