#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# bots.py — Difficulty tiers for Pins
#
# Every class here subclasses Bot (defined in pins.py) and leans on the board
# analysis in strategy.py. The plain random Bot stays in pins.py because it has
# no dependencies; each tier that does something smarter lives here. All
# randomness goes through self.rng so a seeded random.Random replays a game.

from __future__ import annotations

import random

from board import Edge
from pins import Bot, GameState, InvariantViolation, list_undrawn_edges, remaining_cells
from strategy import (
    ENDGAME_CELLS,
    LONG_CHAIN,
    MAX_BRANCHING,
    SEARCH_DEPTH,
    best_minimax_move,
    builds_chain,
    chain_edges,
    find_completing_edge,
    find_safe_edges,
    find_super_safe_edges,
    identify_chains,
    least_dangerous_edges,
    safe_edges_after,
    two_sided_cells_created,
)


def _pick(rng: random.Random, edges: list[Edge]) -> Edge | None:
    return rng.choice(edges) if edges else None


def _chain_control(state: GameState, rng: random.Random, min_length: int = LONG_CHAIN) -> Edge | None:
    """Least-dangerous edge touching the longest chain, if that chain has min_length cells."""
    chains = identify_chains(state)
    if not chains or len(chains[0]) < min_length:
        return None
    return _pick(rng, least_dangerous_edges(state, chain_edges(state, chains[0])))


def _sacrifice(state: GameState, rng: random.Random) -> Edge | None:
    """Give away a two-cell chain while a chain of four or more is still on the board."""
    chains = identify_chains(state)
    short = [c for c in chains if len(c) == 2]
    if not short or not any(len(c) >= 4 for c in chains):
        return None
    return _pick(rng, least_dangerous_edges(state, chain_edges(state, short[0])))


def _parity_move(state: GameState, edges: list[Edge], rng: random.Random) -> Edge | None:
    """A safe edge that leaves the opponent an even number of safe replies, else any safe edge.

    Facing an even count, the opponent runs out of safe lines first.
    """
    safe = find_safe_edges(state, edges)
    if not safe:
        return None
    even = [e for e in safe if safe_edges_after(state, e) % 2 == 0]
    return _pick(rng, even or safe)


class EasyBot(Bot):
    """Grabs boxes most of the time, avoids gifts about half the time, otherwise plays at random."""

    TAKE_BOX_CHANCE = 0.6
    PLAY_SAFE_CHANCE = 0.5

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        if self.rng.random() < self.TAKE_BOX_CHANCE:
            completing = find_completing_edge(state, edges)
            if completing is not None:
                return completing
        if self.rng.random() < self.PLAY_SAFE_CHANCE:
            safe = find_safe_edges(state, edges)
            if safe:
                return self.rng.choice(safe)
        return self.rng.choice(edges)


class MediumBot(Bot):
    """Always takes boxes, then builds chains (safe or not), then plays safe, then plays least-bad."""

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        completing = find_completing_edge(state, edges)
        if completing is not None:
            return completing
        building = [e for e in edges if builds_chain(state, e)]
        if building:
            return self.rng.choice(building)
        safe = find_safe_edges(state, edges)
        super_safe = find_super_safe_edges(state, safe)
        if super_safe:
            return self.rng.choice(super_safe)
        if safe:
            return self.rng.choice(safe)
        return self.rng.choice(least_dangerous_edges(state, edges))


class HardBot(Bot):
    """Chain-aware: controls long chains, sacrifices short ones, and plays for parity."""

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        completing = find_completing_edge(state, edges)
        if completing is not None:
            return completing
        for tactic in (
            lambda: _chain_control(state, self.rng),
            lambda: _sacrifice(state, self.rng),
            lambda: _parity_move(state, edges, self.rng),
        ):
            edge = tactic()
            if edge is not None:
                return edge
        return edges[0]


class ExpertBot(Bot):
    """Hard's chain sense plus an alpha-beta search once the board is nearly full.

    search_depth and max_branching bound the search; the defaults keep a
    6x6 endgame well under a second.
    """

    def __init__(self, name: str = "Expert", rng: random.Random | None = None,
                 search_depth: int = SEARCH_DEPTH, max_branching: int = MAX_BRANCHING,
                 endgame_cells: int = ENDGAME_CELLS) -> None:
        super().__init__(name=name, rng=rng)
        self.search_depth = search_depth
        self.max_branching = max_branching
        self.endgame_cells = endgame_cells

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        completing = find_completing_edge(state, edges)
        if completing is not None:
            return completing
        for tactic in (
            lambda: self._chain_master(state, edges),
            lambda: self._endgame(state, edges),
            lambda: self._tempo(state, edges),
            lambda: _parity_move(state, edges, self.rng),
        ):
            edge = tactic()
            if edge is not None:
                return edge
        return edges[0]

    # ------------------------------------------------------------------
    # Tactics
    # ------------------------------------------------------------------

    def _chain_master(self, state: GameState, edges: list[Edge]) -> Edge | None:
        for tactic in (self._double_deal, self._chain_merge):
            edge = tactic(state, edges)
            if edge is not None:
                return edge
        return _chain_control(state, self.rng)

    def _double_deal(self, state: GameState, edges: list[Edge]) -> Edge | None:
        # Placeholder: leaving the last two boxes of a long chain is not played yet.
        return None

    def _chain_merge(self, state: GameState, edges: list[Edge]) -> Edge | None:
        # Placeholder: joining two chains into one is not played yet.
        return None

    def _endgame(self, state: GameState, edges: list[Edge]) -> Edge | None:
        if remaining_cells(state) > self.endgame_cells:
            return None
        return best_minimax_move(state, edges, depth=self.search_depth, max_branching=self.max_branching)

    def _tempo(self, state: GameState, edges: list[Edge]) -> Edge | None:
        """Safe edge that turns the most cells two-sided, forcing the opponent's hand."""
        safe = find_safe_edges(state, edges)
        created = {e: two_sided_cells_created(state, e) for e in safe}
        most = max(created.values(), default=0)
        if most == 0:
            return None
        return self.rng.choice([e for e in safe if created[e] == most])


BOT_TIERS: dict[str, type[Bot]] = {
    "easy": EasyBot,
    "medium": MediumBot,
    "hard": HardBot,
    "expert": ExpertBot,
}


def bot_for(difficulty: str, name: str | None = None, rng: random.Random | None = None) -> Bot:
    """Build a bot of the named tier."""
    try:
        cls = BOT_TIERS[difficulty]
    except KeyError:
        raise ValueError(f"Unknown difficulty {difficulty!r}; pick one of {sorted(BOT_TIERS)}") from None
    return cls(name=name or difficulty.capitalize(), rng=rng)


def select_bot_move(state: GameState, difficulty: str, rng: random.Random | None = None) -> Edge:
    """Choose an edge for the player to move in state at the given difficulty.

    Raises InvariantViolation if there is nothing left to draw; the caller
    should have noticed the game was over.
    """
    bot = bot_for(difficulty, rng=rng)
    edges = list_undrawn_edges(state)
    if not edges:
        raise InvariantViolation("Bot asked to move with no undrawn edges left")
    edge = bot.chooseEdge(state, edges)
    if edge in state.drawn:
        raise InvariantViolation(f"{type(bot).__name__} chose {edge}, which is already drawn")
    return edge
