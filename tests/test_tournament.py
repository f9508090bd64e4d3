#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# tests/test_tournament.py — Tests for the Swiss tournament harness

import json
import os
import random
import tempfile
import unittest
from unittest.mock import patch

from pins import Bot
from bots import EasyBot, ExpertBot, MediumBot
from tournament import (
    _avoid_pair_repeats,
    _default_swiss_field,
    _glicko_update,
    _run_table,
    _seeded_tables,
    _striped_tables,
    TournamentPlayer,
    main,
    make_expert,
    run_swiss_tournament,
)


def _tp(label: str, rating: float = 1500.0, factory=Bot) -> TournamentPlayer:
    """Helper: create a TournamentPlayer with given label and rating."""
    return TournamentPlayer(label=label, player_factory=factory, rating=rating)


class TestMakeExpert(unittest.TestCase):
    """make_expert factory helper."""

    def test_produces_expert_with_correct_depth(self):
        """make_expert(N) returns a factory whose instances search N plies."""
        factory = make_expert(2)
        bot = factory(name="Deep", rng=random.Random(0))
        self.assertIsInstance(bot, ExpertBot)
        self.assertEqual(bot.search_depth, 2)
        self.assertEqual(bot.name, "Deep")
        self.assertEqual(factory.__name__, "ExpertBot(depth=2)")


class TestGlicko(unittest.TestCase):
    """One Glicko-1 rating period."""

    def test_no_games_changes_nothing(self):
        self.assertEqual(_glicko_update(1500.0, 200.0, []), (1500.0, 200.0))

    def test_win_raises_rating_and_shrinks_rd(self):
        r, rd = _glicko_update(1500.0, 350.0, [(1500.0, 350.0, 1.0)])
        self.assertGreater(r, 1500.0)
        self.assertLess(rd, 350.0)

    def test_win_and_loss_are_mirror_images(self):
        win, _ = _glicko_update(1500.0, 350.0, [(1500.0, 350.0, 1.0)])
        loss, _ = _glicko_update(1500.0, 350.0, [(1500.0, 350.0, 0.0)])
        self.assertAlmostEqual(win - 1500.0, 1500.0 - loss)

    def test_rd_has_a_floor(self):
        _, rd = _glicko_update(1500.0, 50.0, [(1500.0, 50.0, 0.5)] * 50)
        self.assertGreaterEqual(rd, 50.0)


class TestSeededTables(unittest.TestCase):
    """_seeded_tables: sorts by rating descending, groups, highest rated sits last."""

    def test_two_players_higher_rated_sits_last(self):
        """In a pair table, the higher-rated player is at index 1 (last turn)."""
        strong = _tp("Strong", rating=1700.0)
        weak = _tp("Weak", rating=1300.0)
        tables = _seeded_tables([weak, strong], table_size=2)
        self.assertEqual([[tp.label for tp in t] for t in tables], [["Weak", "Strong"]])

    def test_six_players_form_three_pair_tables(self):
        players = [_tp(f"P{i}", rating=1500.0 + i * 10) for i in range(6)]
        tables = _seeded_tables(players, table_size=2)
        self.assertEqual([[tp.label for tp in t] for t in tables],
                         [["P4", "P5"], ["P2", "P3"], ["P0", "P1"]])

    def test_triple_tables_contain_three_players(self):
        players = [_tp(f"P{i}", rating=1500.0 + i) for i in range(12)]
        tables = _seeded_tables(players, table_size=3)
        self.assertEqual(len(tables), 4)
        self.assertTrue(all(len(t) == 3 for t in tables))


class TestStripedTables(unittest.TestCase):
    """_striped_tables: ranks dealt round-robin across tables."""

    def setUp(self):
        self.players = [_tp(f"P{i}", rating=1500.0 + i * 10) for i in range(12)]

    def test_twelve_players_form_three_quad_tables(self):
        tables = _striped_tables(self.players, table_size=4)
        self.assertEqual(len(tables), 3)
        labels = [tp.label for t in tables for tp in t]
        self.assertEqual(sorted(labels), sorted(tp.label for tp in self.players))

    def test_first_table_contains_rank_1_4_7_10(self):
        """Ranks 1, 4, 7, 10 are P11, P8, P5, P2; the strongest sits last."""
        tables = _striped_tables(self.players, table_size=4)
        self.assertEqual([tp.label for tp in tables[0]], ["P2", "P5", "P8", "P11"])


class TestAvoidPairRepeats(unittest.TestCase):
    """_avoid_pair_repeats: best-effort same-day rematch dodging."""

    def test_no_swap_when_no_conflict(self):
        a, b, c, d = (_tp(x) for x in "ABCD")
        tables = _avoid_pair_repeats([[a, b], [c, d]], {"A": {"C"}, "C": {"A"}})
        self.assertEqual([[tp.label for tp in t] for t in tables], [["A", "B"], ["C", "D"]])

    def test_swap_happens_when_conflict_exists(self):
        a, b, c, d = (_tp(x) for x in "ABCD")
        recent = {"A": {"B"}, "B": {"A"}, "C": {"D"}, "D": {"C"}}
        tables = _avoid_pair_repeats([[a, b], [c, d]], recent)
        self.assertEqual([[tp.label for tp in t] for t in tables], [["A", "C"], ["B", "D"]])

    def test_no_swap_when_alternative_also_conflicts(self):
        a, b, c, d = (_tp(x) for x in "ABCD")
        recent = {"A": {"B", "C"}, "B": {"A"}}
        tables = _avoid_pair_repeats([[a, b], [c, d]], recent)
        self.assertEqual([[tp.label for tp in t] for t in tables], [["A", "B"], ["C", "D"]])


class TestRunTable(unittest.TestCase):
    """_run_table plays one game and updates ratings in place."""

    def test_small_game_updates_players(self):
        medium = _tp("Milo", factory=MediumBot)
        easy = _tp("Edna", factory=EasyBot)
        result = _run_table([medium, easy], grid_size=3, rng=random.Random(0))
        self.assertEqual(sum(result.finish_scores.values()), 4)
        self.assertEqual(sorted(result.table), ["Edna", "Milo"])
        self.assertGreaterEqual(result.finish_scores[result.table[0]], result.finish_scores[result.table[1]])
        self.assertAlmostEqual(result.rating_deltas["Milo"], -result.rating_deltas["Edna"])
        self.assertEqual(len(medium.scores), 1)
        self.assertLess(medium.rd, 350.0)

    def test_records_and_stats_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            records = os.path.join(tmp, "games.jsonl")
            stats = os.path.join(tmp, "stats.txt")
            players = [_tp("Ann"), _tp("Bea"), _tp("Cal")]
            for _ in range(2):
                _run_table(players, grid_size=3, rng=random.Random(5),
                           stats_path=stats, records_path=records)
            with open(records, encoding="utf-8") as f:
                lines = [json.loads(line) for line in f]
            with open(stats, encoding="utf-8") as f:
                stat_lines = f.read().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(len(stat_lines), 2)
        record = lines[0]
        self.assertEqual(record["grid"], 3)
        self.assertEqual(record["n_players"], 3)
        self.assertEqual([p["label"] for p in record["players"]], ["Ann", "Bea", "Cal"])
        self.assertEqual(sum(p["boxes"] for p in record["players"]), 4)
        self.assertEqual(sum(p["lines"] for p in record["players"]), record["turns"])
        self.assertTrue(any(p["winner"] for p in record["players"]))
        self.assertIn("grid=3", stat_lines[0])


class TestSwiss(unittest.TestCase):
    """run_swiss_tournament end to end on a tiny grid."""

    def test_one_day_pads_the_field(self):
        entries = [_tp("Edna", factory=EasyBot), _tp("Eddie", factory=EasyBot),
                   _tp("Milo", factory=MediumBot), _tp("Mabel", factory=MediumBot)]
        standings = run_swiss_tournament(entries, n_days=1, grid_size=3,
                                         rng=random.Random(1), verbose=False)
        self.assertEqual(len(standings), 12)
        self.assertEqual(sum(1 for tp in standings if tp.label.startswith("Random")), 8)
        self.assertTrue(all(len(tp.scores) == 4 for tp in standings))
        ratings = [tp.rating for tp in standings]
        self.assertEqual(ratings, sorted(ratings, reverse=True))

    def test_default_field(self):
        field = _default_swiss_field()
        self.assertEqual(len(field), 12)
        self.assertEqual(len({tp.label for tp in field}), 12)
        self.assertEqual(sum(1 for tp in field if tp.player_factory is ExpertBot), 3)

    @patch('tournament.run_swiss_tournament')
    def test_main_passes_arguments(self, mock_run):
        with patch('sys.argv', ['tournament.py', '--days', '2', '--grid', '4', '--seed', '5']):
            main()
        args, kwargs = mock_run.call_args
        self.assertEqual(len(args[0]), 12)
        self.assertEqual(kwargs["n_days"], 2)
        self.assertEqual(kwargs["grid_size"], 4)
        self.assertIsNone(kwargs["records_path"])


if __name__ == "__main__":
    unittest.main(buffer=True)
