#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# utility.py - Helper functions for talking about edges and drawing the grid as text

from board import HORIZONTAL, VERTICAL, Cell, Edge

def describe_edge(edge):
    """Human-readable name, e.g. 'horizontal line at row 0, col 1'."""
    return "{} line at row {}, col {}".format(edge.orientation, edge.row, edge.col)

def board_text(state, marks=None):
    """ASCII picture of the grid. Owned boxes show their owner's id (or marks[id])."""
    n = state.grid_size
    lines = []
    for row in range(n):
        dots = ""
        for col in range(n - 1):
            drawn = Edge(HORIZONTAL, row, col) in state.drawn
            dots += "o" + ("---" if drawn else "   ")
        lines.append(dots + "o")
        if row == n - 1:
            break
        sides = ""
        for col in range(n):
            sides += "|" if Edge(VERTICAL, row, col) in state.drawn else " "
            if col < n - 1:
                owner = state.owners.get(Cell(row, col))
                if owner is None:
                    sides += "   "
                else:
                    label = marks.get(owner, str(owner)) if marks else str(owner)
                    sides += "{:^3}".format(label[:3])
        lines.append(sides)
    return "\n".join(lines)
