#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# strategy.py — Board analysis library for Pins bots
# Pure functions only: no I/O, and nothing here leaves a GameState changed.
# Returns scores and candidate edges; bots.py decides how to act on them.

from __future__ import annotations

import math
from collections import deque
from typing import Callable

from board import Board, Cell, Edge
from pins import GameState, clone_state, drawn_count, list_undrawn_edges, play_edge

# ---------------------------------------------------------------------------
# Tuning constants
# ---------------------------------------------------------------------------

DANGER_TWO_SIDED: int = 10   # drawing next to a 2-edge cell makes a 3-edge cell
DANGER_ONE_SIDED: int = 1
LONG_CHAIN: int = 3          # chains at least this long count as "long" in evaluation
SEARCH_DEPTH: int = 4
MAX_BRANCHING: int = 8       # children explored per ply, after move ordering
ENDGAME_CELLS: int = 6       # minimax only runs when this few boxes are left


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _adjacent_counts(state: GameState, edge: Edge, board: Board | None = None) -> list[int]:
    """Drawn-edge counts of the unowned cells on either side of edge."""
    board = board or state.board
    return [
        drawn_count(state, cell, board)
        for cell in board.cells_adjacent_to_edge(edge)
        if cell not in state.owners
    ]


def _with_edge_drawn(state: GameState, edge: Edge, fn: Callable[[], object]) -> object:
    """Temporarily mark edge as drawn by the current player, call fn(), restore.

    No boxes are claimed and the turn doesn't move: this is a "what would the
    lines look like" look-ahead, not a move. Restores state even if fn() raises.
    """
    if edge in state.drawn:
        return fn()
    state.drawn[edge] = state.current_player
    try:
        return fn()
    finally:
        del state.drawn[edge]


# ---------------------------------------------------------------------------
# Edge primitives
# ---------------------------------------------------------------------------

def cells_completed_by(state: GameState, edge: Edge) -> int:
    """Number of boxes drawing edge would close right now (0, 1 or 2)."""
    return sum(1 for count in _adjacent_counts(state, edge) if count == 3)


def would_complete_cell(state: GameState, edge: Edge) -> bool:
    return cells_completed_by(state, edge) > 0


def danger_score(state: GameState, edge: Edge) -> int:
    """+10 for each neighbouring 2-edge cell (it would become a gift), +1 for each 1-edge cell."""
    score = 0
    for count in _adjacent_counts(state, edge):
        if count == 2:
            score += DANGER_TWO_SIDED
        elif count == 1:
            score += DANGER_ONE_SIDED
    return score


def find_completing_edge(state: GameState, edges: list[Edge]) -> Edge | None:
    """The edge closing the most boxes; the earliest one wins ties. None if nothing closes."""
    best, best_count = None, 0
    for edge in edges:
        count = cells_completed_by(state, edge)
        if count > best_count:
            best, best_count = edge, count
    return best


def find_safe_edges(state: GameState, edges: list[Edge]) -> list[Edge]:
    """Edges whose neighbouring cells all have at most one drawn edge before the move."""
    return [e for e in edges if all(count <= 1 for count in _adjacent_counts(state, e))]


def find_super_safe_edges(state: GameState, edges: list[Edge]) -> list[Edge]:
    """Edges touching only untouched cells."""
    return [e for e in edges if all(count == 0 for count in _adjacent_counts(state, e))]


def least_dangerous_edges(state: GameState, edges: list[Edge]) -> list[Edge]:
    if not edges:
        return []
    scores = {e: danger_score(state, e) for e in edges}
    lowest = min(scores.values())
    return [e for e in edges if scores[e] == lowest]


def two_sided_cells_created(state: GameState, edge: Edge) -> int:
    """How many neighbouring cells would go from one drawn edge to two."""
    return sum(1 for count in _adjacent_counts(state, edge) if count == 1)


def safe_edges_after(state: GameState, edge: Edge) -> int:
    """Safe edges left for the next player once edge is drawn."""
    rest = [e for e in list_undrawn_edges(state) if e != edge]
    return _with_edge_drawn(state, edge, lambda: len(find_safe_edges(state, rest)))


# ---------------------------------------------------------------------------
# Chain analysis
# ---------------------------------------------------------------------------

def is_chain_cell(state: GameState, cell: Cell, min_edges: int = 2, board: Board | None = None) -> bool:
    return cell not in state.owners and drawn_count(state, cell, board) >= min_edges


def explore_chain(
    state: GameState,
    start: Cell,
    member: Callable[[Cell], bool],
    visited: set[Cell],
    board: Board | None = None,
) -> list[Cell]:
    """Breadth-first walk from start through neighbours that share a drawn edge and satisfy member.

    Adds every cell reached to visited. Returns the cells in visiting order.
    """
    board = board or state.board
    chain = [start]
    visited.add(start)
    queue = deque([start])
    while queue:
        cell = queue.popleft()
        for neighbor in board.neighbor_cells(cell):
            if neighbor in visited or not member(neighbor):
                continue
            if board.shared_edge(cell, neighbor) not in state.drawn:
                continue
            visited.add(neighbor)
            chain.append(neighbor)
            queue.append(neighbor)
    return chain


def identify_chains(state: GameState, min_edges: int = 2, min_length: int = 2) -> list[list[Cell]]:
    """Every chain of unowned cells with at least min_edges drawn edges, longest first.

    min_edges=2 is the chain view the bots reason about; min_edges=1 shows
    potential chains that are still forming. Chains shorter than min_length are dropped.
    """
    board = state.board
    visited: set[Cell] = set()
    chains = []

    def member(cell: Cell) -> bool:
        return is_chain_cell(state, cell, min_edges, board)

    for cell in board.cells():
        if cell in visited or not member(cell):
            continue
        chain = explore_chain(state, cell, member, visited, board)
        if len(chain) >= min_length:
            chains.append(chain)
    chains.sort(key=len, reverse=True)
    return chains


def chain_edges(state: GameState, chain: list[Cell]) -> list[Edge]:
    """Undrawn edges touching any cell of chain, in board order."""
    board = state.board
    touching = {e for cell in chain for e in board.edges_of_cell(cell) if e not in state.drawn}
    return [e for e in board.edges() if e in touching]


def chain_counts(state: GameState) -> tuple[int, int]:
    """(long chains, short chains) under the default chain view."""
    chains = identify_chains(state)
    long_chains = sum(1 for chain in chains if len(chain) >= LONG_CHAIN)
    return long_chains, len(chains) - long_chains


def builds_chain(state: GameState, edge: Edge) -> bool:
    """True if, once edge is drawn, one of its cells sits in a chain of two or more."""
    adjacent = set(state.board.cells_adjacent_to_edge(edge))

    def in_chain() -> bool:
        return any(adjacent.intersection(chain) for chain in identify_chains(state))

    return _with_edge_drawn(state, edge, in_chain)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def evaluate_position(state: GameState, me: int) -> float:
    """(my score - best other score) * 10 + long chains * 5 - short chains * 2."""
    mine = state.scores[me]
    theirs = max(score for pid, score in state.scores.items() if pid != me)
    long_chains, short_chains = chain_counts(state)
    return (mine - theirs) * 10 + long_chains * 5 - short_chains * 2


def order_moves(state: GameState, edges: list[Edge]) -> list[Edge]:
    """Closing moves first, then least dangerous. Stable, so board order breaks ties."""
    return sorted(edges, key=lambda e: (-cells_completed_by(state, e), danger_score(state, e)))


def minimax(
    state: GameState,
    depth: int,
    alpha: float,
    beta: float,
    me: int,
    max_branching: int = MAX_BRANCHING,
) -> float:
    """Alpha-beta value of state for player me. Children are played on clones."""
    if depth == 0 or state.game_over:
        return evaluate_position(state, me)
    moves = order_moves(state, list_undrawn_edges(state))[:max_branching]
    if state.current_player == me:
        best = -math.inf
        for edge in moves:
            child = clone_state(state)
            play_edge(child, edge)
            best = max(best, minimax(child, depth - 1, alpha, beta, me, max_branching))
            alpha = max(alpha, best)
            if alpha >= beta:
                break
        return best
    best = math.inf
    for edge in moves:
        child = clone_state(state)
        play_edge(child, edge)
        best = min(best, minimax(child, depth - 1, alpha, beta, me, max_branching))
        beta = min(beta, best)
        if alpha >= beta:
            break
    return best


def best_minimax_move(
    state: GameState,
    edges: list[Edge],
    depth: int = SEARCH_DEPTH,
    max_branching: int = MAX_BRANCHING,
) -> Edge | None:
    """Root of the search for the player to move. Earliest edge wins ties."""
    me = state.current_player
    best_edge, best_value = None, -math.inf
    alpha, beta = -math.inf, math.inf
    for edge in order_moves(state, edges)[:max_branching]:
        child = clone_state(state)
        play_edge(child, edge)
        value = minimax(child, depth - 1, alpha, beta, me, max_branching)
        if value > best_value:
            best_edge, best_value = edge, value
        alpha = max(alpha, best_value)
    return best_edge
