#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# tournament.py — Swiss tournament harness for comparing Pins bot tiers
#
# Twelve bots (three per difficulty tier) play four rounds a day: random or
# seeded pairs, seeded pairs again, seeded triples, striped quads. Every table
# is one rating period under Glicko-1, with each pair of seats scored as a
# head-to-head result on boxes.
#
# Usage:
#   python tournament.py                     # one day on a 5x5 grid
#   python tournament.py --days 10 --grid 6  # ten days on the full-size board
#   python tournament.py --seed 7            # reproducible pairings and bot choices
#   python tournament.py --records out.jsonl # one JSON line per game
#   python tournament.py --stats out.txt     # one summary line per game

from __future__ import annotations

import argparse
import json
import math
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable

from pins import Bot, Game, Player, RecordingDisplay
from bots import EasyBot, ExpertBot, HardBot, MediumBot

DEFAULT_TOURNAMENT_GRID: int = 5
FIELD_MULTIPLE: int = 12      # pairs, triples and quads all divide twelve

_Q: float = math.log(10.0) / 400.0
_RD_START: float = 350.0
_RD_FLOOR: float = 50.0


# ==== Glicko-1 ====

def _glicko_g(rd: float) -> float:
    """Weight of a result against an opponent whose rating is this uncertain."""
    return 1.0 / math.sqrt(1.0 + 3.0 * (_Q * rd / math.pi) ** 2)


def _glicko_e(r: float, r_j: float, rd_j: float) -> float:
    """Expected score of r against r_j."""
    return 1.0 / (1.0 + 10.0 ** (_glicko_g(rd_j) * (r_j - r) / 400.0))


def _glicko_update(r: float, rd: float, results: list[tuple[float, float, float]]) -> tuple[float, float]:
    """One rating period. results holds (opponent rating, opponent RD, score) triples.

    Returns the new (rating, RD). RD never drops below the floor.
    """
    if not results:
        return r, rd
    variance_inv = 0.0
    surprise = 0.0
    for r_j, rd_j, s_j in results:
        g = _glicko_g(rd_j)
        e = _glicko_e(r, r_j, rd_j)
        variance_inv += g * g * e * (1.0 - e)
        surprise += g * (s_j - e)
    variance_inv *= _Q * _Q
    new_rd_sq = 1.0 / (1.0 / (rd * rd) + variance_inv)
    return r + _Q * new_rd_sq * surprise, max(_RD_FLOOR, math.sqrt(new_rd_sq))


# ==== Entries and results ====

@dataclass
class TournamentPlayer:
    """One seat in the field. Ratings and per-game box counts persist across rounds."""
    label: str
    player_factory: Callable[..., Player]   # factory(name=..., rng=...)
    rating: float = 1500.0
    rd: float = _RD_START
    scores: list[int] = field(default_factory=list)

    @property
    def average_boxes(self) -> float:
        return sum(self.scores) / len(self.scores) if self.scores else 0.0


@dataclass
class RoundResult:
    """What happened at one table."""
    table: list[str]                  # labels, most boxes first
    finish_scores: dict[str, int]     # label → boxes
    rating_deltas: dict[str, float]   # label → rating change


def finish_score(player: Player, game: Game) -> int:
    """Boxes the player owns at the end of the game."""
    return game.state.scores[game.player_id(player)]


def make_expert(search_depth: int) -> Callable[..., ExpertBot]:
    """Factory for ExpertBots that search search_depth plies, for depth comparisons."""
    def factory(name: str, rng: random.Random | None = None) -> ExpertBot:
        return ExpertBot(name=name, rng=rng, search_depth=search_depth)
    factory.__name__ = f"ExpertBot(depth={search_depth})"
    return factory


# ==== Playing a table ====

def _write_game_record(records_path: str, game: Game, seats: dict[str, Player],
                       boxes: dict[str, int], events: list) -> None:
    """Append one JSON line for a finished game.

    Per player: boxes, lines drawn by choice, lines the auto-chain drew for
    them (chain_lines), and how often they went again after closing a box.
    """
    per_player = {label: Counter() for label in seats}
    for ev in events:
        if ev.player in per_player:
            per_player[ev.player][ev.type] += 1
    top = game.winners()
    record = {
        "grid": game.state.grid_size,
        "turns": game.turn_number,
        "n_players": len(game.players),
        "draw": len(top) > 1,
        "players": [
            {
                "label": label,
                "bot_type": type(player).__name__,
                "winner": game.player_id(player) in top,
                "boxes": boxes[label],
                "lines": per_player[label]["edge"],
                "chain_lines": per_player[label]["auto_edge"],
                "extra_turns": per_player[label]["extra_turn"],
            }
            for label, player in seats.items()
        ],
    }
    with open(records_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, separators=(",", ":")) + "\n")


def _head_to_head(table: list[TournamentPlayer], boxes: dict[str, int]) -> dict[str, list[tuple[float, float, float]]]:
    """Every pair of seats as a Glicko result, using ratings from before this game."""
    results: dict[str, list[tuple[float, float, float]]] = {tp.label: [] for tp in table}
    for i, a in enumerate(table):
        for b in table[i + 1:]:
            diff = boxes[a.label] - boxes[b.label]
            s_a = 0.5 if diff == 0 else float(diff > 0)
            results[a.label].append((b.rating, b.rd, s_a))
            results[b.label].append((a.rating, a.rd, 1.0 - s_a))
    return results


def _run_table(
    players: list[TournamentPlayer],
    grid_size: int = DEFAULT_TOURNAMENT_GRID,
    rng: random.Random | None = None,
    stats_path: str | None = None,
    records_path: str | None = None,
) -> RoundResult:
    """Play one game at this table, then update every seat's rating, RD and box history."""
    rng = rng if rng is not None else random.Random()
    game = Game(grid_size=grid_size, players=len(players), rng=rng)
    seats: dict[str, Player] = {}
    for i, tp in enumerate(players):
        game.players[i] = seats[tp.label] = tp.player_factory(name=tp.label, rng=rng)
    recorder = RecordingDisplay()
    game.run(display=recorder)
    boxes = {label: finish_score(player, game) for label, player in seats.items()}

    if stats_path is not None:
        summary = "  ".join(f"{label}={n}" for label, n in boxes.items())
        with open(stats_path, "a", encoding="utf-8") as f:
            f.write(f"grid={grid_size}  n={len(players)}  turns={game.turn_number}  {summary}\n")
    if records_path is not None:
        _write_game_record(records_path, game, seats, boxes, recorder.events)

    results = _head_to_head(players, boxes)
    deltas: dict[str, float] = {}
    for tp in players:
        rating, tp.rd = _glicko_update(tp.rating, tp.rd, results[tp.label])
        deltas[tp.label] = rating - tp.rating
        tp.rating = rating
        tp.scores.append(boxes[tp.label])

    order = sorted(players, key=lambda tp: boxes[tp.label], reverse=True)
    return RoundResult(table=[tp.label for tp in order], finish_scores=boxes, rating_deltas=deltas)


# ==== Pairing ====

def _by_rating(players: list[TournamentPlayer]) -> list[TournamentPlayer]:
    return sorted(players, key=lambda tp: tp.rating, reverse=True)


def _seeded_tables(players: list[TournamentPlayer], table_size: int) -> list[list[TournamentPlayer]]:
    """Neighbours in the rating order share a table. The best-rated seat moves last."""
    ranked = _by_rating(players)
    return [ranked[i:i + table_size][::-1] for i in range(0, len(ranked), table_size)]


def _striped_tables(players: list[TournamentPlayer], table_size: int) -> list[list[TournamentPlayer]]:
    """Deal the rating order across tables like cards.

    Twelve players in quads: ranks 1,4,7,10 / 2,5,8,11 / 3,6,9,12. The
    best-rated seat at each table moves last.
    """
    ranked = _by_rating(players)
    n_tables = len(ranked) // table_size
    return [ranked[i::n_tables][:table_size][::-1] for i in range(n_tables)]


def _avoid_pair_repeats(
    tables: list[list[TournamentPlayer]],
    recent: dict[str, set[str]],
) -> list[list[TournamentPlayer]]:
    """Trade seats between neighbouring pair tables when a pair already met today.

    recent maps a label to the labels it played in round 1. Best effort: the
    trade only happens if it creates no new rematch.
    """
    def met(x: TournamentPlayer, y: TournamentPlayer) -> bool:
        return y.label in recent.get(x.label, set())

    for i in range(len(tables) - 1):
        a, b = tables[i]
        c, d = tables[i + 1]
        if met(a, b) and not met(a, c) and not met(b, d):
            tables[i], tables[i + 1] = [a, c], [b, d]
    return tables


# ==== Reporting ====

def print_standings(players: list[TournamentPlayer], after_round: int) -> None:
    """Standings table, best rating first."""
    print(f"\n  After round {after_round}:")
    print(f"  {'#':>3}  {'Bot':<10} {'Tier':<10} {'Rating':>7} {'RD':>5} {'Boxes/game':>11}")
    for rank, tp in enumerate(_by_rating(players), 1):
        tier = getattr(tp.player_factory, "__name__", "?")
        print(f"  {rank:>3}  {tp.label:<10} {tier:<10} {tp.rating:>7.0f} {tp.rd:>5.0f} {tp.average_boxes:>11.1f}")
    print()


def _print_round(number: int, title: str, results: list[RoundResult]) -> None:
    print(f"\n== Round {number}: {title} " + "=" * 30)
    for r in results:
        print("  " + "  ".join(
            f"{label} {r.finish_scores[label]} ({r.rating_deltas[label]:+.1f})" for label in r.table
        ))


# ==== The tournament ====

def _pad_field(entries: list[TournamentPlayer]) -> None:
    """Top the field up with random-move bots until every table format divides it."""
    filler = 0
    while len(entries) % FIELD_MULTIPLE:
        filler += 1
        entries.append(TournamentPlayer(label=f"Random{filler}", player_factory=Bot))


def _opening_pairs(entries: list[TournamentPlayer], day: int, rng: random.Random) -> list[list[TournamentPlayer]]:
    """Day one pairs at random; later days open with seeded pairs."""
    if day > 1:
        return _seeded_tables(entries, 2)
    shuffled = list(entries)
    rng.shuffle(shuffled)
    return [shuffled[i:i + 2] for i in range(0, len(shuffled), 2)]


def run_swiss_tournament(
    entries: list[TournamentPlayer],
    n_days: int = 1,
    grid_size: int = DEFAULT_TOURNAMENT_GRID,
    rng: random.Random | None = None,
    verbose: bool = True,
    stats_path: str | None = None,
    records_path: str | None = None,
) -> list[TournamentPlayer]:
    """Play n_days of four rounds and return the field, best rating first.

    entries is padded in place to a multiple of twelve, and each entry's
    rating, RD and box history are updated as the games finish.
    """
    rng = rng if rng is not None else random.Random()
    _pad_field(entries)
    round_number = 0
    for day in range(1, n_days + 1):
        if verbose and n_days > 1:
            print(f"\n######## Day {day} of {n_days} ########")
        opening = _opening_pairs(entries, day, rng)
        recent = {tp.label: {o.label for o in table if o is not tp} for table in opening for tp in table}
        # Later rounds are built lazily so they seed from the ratings the earlier rounds produced
        rounds: list[tuple[str, Callable[[], list[list[TournamentPlayer]]]]] = [
            ("Random pairs" if day == 1 else "Seeded pairs", lambda: opening),
            ("Seeded pairs", lambda: _avoid_pair_repeats(_seeded_tables(entries, 2), recent)),
            ("Seeded triples", lambda: _seeded_tables(entries, 3)),
            ("Striped quads", lambda: _striped_tables(entries, 4)),
        ]
        for title, build in rounds:
            results = [_run_table(t, grid_size, rng, stats_path, records_path) for t in build()]
            round_number += 1
            if verbose:
                _print_round(round_number, title, results)
                print_standings(entries, round_number)
    return _by_rating(entries)


def _default_swiss_field() -> list[TournamentPlayer]:
    """Three bots per tier: Edna/Eddie/Elsie (easy), Milo/Mabel/Moss (medium),
    Hank/Hazel/Hugo (hard), Xavi/Xena/Xander (expert)."""
    tiers = [
        (EasyBot, ("Edna", "Eddie", "Elsie")),
        (MediumBot, ("Milo", "Mabel", "Moss")),
        (HardBot, ("Hank", "Hazel", "Hugo")),
        (ExpertBot, ("Xavi", "Xena", "Xander")),
    ]
    return [TournamentPlayer(label=name, player_factory=cls) for cls, names in tiers for name in names]


def main() -> None:
    parser = argparse.ArgumentParser(description="Swiss tournament between Pins bot tiers")
    parser.add_argument("--days", type=int, default=1, metavar="N",
                        help="four-round days to play (default: 1)")
    parser.add_argument("--grid", type=int, default=DEFAULT_TOURNAMENT_GRID, metavar="N",
                        help="dots per side in every game (default: 5)")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed pairings and bot randomness")
    parser.add_argument("--stats", metavar="FILE", default=None,
                        help="append a one-line summary of each game to FILE")
    parser.add_argument("--records", metavar="FILE", default=None,
                        help="append one JSON record per game to FILE")
    args = parser.parse_args()

    run_swiss_tournament(_default_swiss_field(), n_days=args.days, grid_size=args.grid,
                         rng=random.Random(args.seed), stats_path=args.stats, records_path=args.records)


if __name__ == "__main__":
    main()
