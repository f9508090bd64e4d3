#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# tests/test_color_tui.py — Tests for the Textual front-end

import random
import unittest

from board import HORIZONTAL, VERTICAL, Cell, Edge
from pins import Display, Event, Game, new_state


class TestColorTUIDisplaySkeleton(unittest.TestCase):
    """ColorTUIDisplay implements Display and refuses to work without an app."""

    def test_is_a_display(self):
        from color_tui import ColorTUIDisplay  # noqa: PLC0415
        self.assertTrue(issubclass(ColorTUIDisplay, Display))

    def test_methods_require_an_app(self):
        """Every Display method raises RuntimeError when no app is attached."""
        from color_tui import ColorTUIDisplay  # noqa: PLC0415
        display = ColorTUIDisplay()
        calls = [
            lambda: display.show_events([]),
            lambda: display.show_state(Game(grid_size=3)),
            lambda: display.pick_one([1, 2]),
            lambda: display.confirm("Sure?"),
            lambda: display.show_info("hello"),
        ]
        for call in calls:
            with self.assertRaises(RuntimeError):
                call()

    def test_app_links_its_display(self):
        from color_tui import ColorTUIDisplay, PinsApp  # noqa: PLC0415
        display = ColorTUIDisplay()
        app = PinsApp(game=Game(grid_size=3), display=display)
        self.assertIs(display.app, app)


class TestMarkupHelpers(unittest.TestCase):
    """Rich markup for players, lines, and the board."""

    def test_player_markup_marks_the_active_player(self):
        from color_tui import _player_markup  # noqa: PLC0415
        active = _player_markup("Ada", 3, "blue", active=True)
        idle = _player_markup("Ada", 3, "blue", active=False)
        self.assertIn("▶", active)
        self.assertNotIn("▶", idle)
        self.assertIn("[blue]Ada[/blue]", idle)
        self.assertIn("3 boxes", idle)

    def test_colors_cycle(self):
        from color_tui import PLAYER_COLORS, _color_for  # noqa: PLC0415
        self.assertEqual(_color_for(1), PLAYER_COLORS[0])
        self.assertEqual(_color_for(len(PLAYER_COLORS) + 1), PLAYER_COLORS[0])

    def test_line_markup(self):
        from color_tui import _line_markup  # noqa: PLC0415
        state = new_state(3)
        old, new = Edge(HORIZONTAL, 0, 0), Edge(VERTICAL, 0, 0)
        state.drawn[old] = 1
        state.drawn[new] = 2
        state.last_edge = new
        self.assertEqual(_line_markup(state, old, "━", " "), "[blue]━[/blue]")
        self.assertEqual(_line_markup(state, new, "┃", " "), "[bold red]┃[/bold red]")
        self.assertEqual(_line_markup(state, Edge(VERTICAL, 1, 1), "┃", " "), " ")

    def test_board_markup_shape(self):
        from color_tui import _board_markup  # noqa: PLC0415
        markup = _board_markup(new_state(4))
        self.assertEqual(markup.count("●"), 16)
        self.assertEqual(len(markup.split("\n")), 7)

    def test_board_markup_shows_owners(self):
        from color_tui import _board_markup  # noqa: PLC0415
        state = new_state(3)
        state.owners[Cell(1, 1)] = 2
        self.assertIn("[red]▓2▓[/red]", _board_markup(state))


class TestEventToStr(unittest.TestCase):
    """_event_to_str: which events reach the log and how they look."""

    def test_turn_start_is_silent(self):
        from color_tui import _event_to_str  # noqa: PLC0415
        self.assertIsNone(_event_to_str(Event(type="turn_start", player="Ada")))

    def test_outcomes_are_bold(self):
        from color_tui import _event_to_str  # noqa: PLC0415
        text = _event_to_str(Event(type="win", player="Ada", value=5))
        self.assertTrue(text.startswith("[bold]"))
        self.assertIn("Ada wins", text)

    def test_edge_event(self):
        from color_tui import _event_to_str  # noqa: PLC0415
        text = _event_to_str(Event(type="edge", player="Ada", edge="horizontal-2-1"))
        self.assertIn("horizontal line at row 2, col 1", text)


class TestPinsAppLayout(unittest.IsolatedAsyncioTestCase):
    """Widgets are composed and wired to the game."""

    async def test_app_composes_without_error(self):
        from color_tui import PinsApp  # noqa: PLC0415
        async with PinsApp().run_test(size=(120, 40)):
            pass

    async def test_panels_present(self):
        from color_tui import BoardPanel, EventLog, IOPanel, PinsApp  # noqa: PLC0415
        app = PinsApp()
        async with app.run_test(size=(120, 40)):
            self.assertIsNotNone(app.query_one("#board", BoardPanel))
            self.assertIsNotNone(app.query_one("#event-log", EventLog))
            self.assertIsNotNone(app.query_one("#io-panel", IOPanel))

    async def test_panel_count_matches_player_count(self):
        from color_tui import PinsApp, PlayerPanel  # noqa: PLC0415
        for n in (2, 3, 5):
            with self.subTest(players=n):
                app = PinsApp(game=Game(grid_size=3, players=n))
                async with app.run_test(size=(120, 40)):
                    self.assertEqual(len(app.query(PlayerPanel)), n)

    async def test_exactly_one_active_player_panel(self):
        from color_tui import PinsApp, PlayerPanel  # noqa: PLC0415
        game = Game(grid_size=3, players=3, rng=random.Random(0))
        game.apply_edge(Edge(HORIZONTAL, 0, 0))
        app = PinsApp(game=game)
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            panels = list(app.query(PlayerPanel))
            self.assertEqual([p.has_class("active") for p in panels], [False, True, False])

    async def test_events_reach_the_log(self):
        from color_tui import EventLog, PinsApp  # noqa: PLC0415
        app = PinsApp()
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            before = len(app.query_one(EventLog).lines)
            app.add_events([
                Event(type="turn_start", player="Ada"),                   # silent
                Event(type="edge", player="Ada", edge="vertical-0-0"),    # renderable
            ])
            await pilot.pause()
            self.assertEqual(len(app.query_one(EventLog).lines), before + 1)


class TestConfirmPrompt(unittest.IsolatedAsyncioTestCase):
    """y and n answer a confirm prompt; other keys wait."""

    async def test_y_answers_yes(self):
        from color_tui import PinsApp  # noqa: PLC0415
        app = PinsApp()
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            app.show_confirm_prompt("Play again?")
            await pilot.press("y")
            await pilot.pause()
        self.assertIs(app.bridge.answer, True)
        self.assertIsNone(app.bridge.mode)

    async def test_n_answers_no(self):
        from color_tui import PinsApp  # noqa: PLC0415
        app = PinsApp()
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            app.show_confirm_prompt("Play again?")
            await pilot.press("n")
            await pilot.pause()
        self.assertIs(app.bridge.answer, False)

    async def test_other_keys_are_ignored(self):
        from color_tui import PinsApp  # noqa: PLC0415
        app = PinsApp()
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            app.show_confirm_prompt("Play again?")
            await pilot.press("x", "5")
            await pilot.pause()
            self.assertEqual(app.bridge.mode, "confirm")
            self.assertFalse(app.bridge.ready.is_set())
            app.resolve_bridge(False)


class TestPlayAgain(unittest.IsolatedAsyncioTestCase):
    """The worker asks to play again once the game ends."""

    async def wait_for_confirm(self, app, pilot):
        for _ in range(200):
            if app.bridge.mode == "confirm":
                return
            await pilot.pause(0.05)
        self.fail("no Play again? prompt")

    async def test_yes_starts_a_fresh_game(self):
        from color_tui import ColorTUIDisplay, EventLog, PinsApp  # noqa: PLC0415
        game = Game(grid_size=2, rng=random.Random(0))
        app = PinsApp(game=game, display=ColorTUIDisplay())
        async with app.run_test(size=(120, 40)) as pilot:
            await self.wait_for_confirm(app, pilot)
            self.assertTrue(game.is_game_over())
            await pilot.press("y")
            await self.wait_for_confirm(app, pilot)
            self.assertTrue(game.is_game_over())
            log = "\n".join(str(line.text) for line in app.query_one(EventLog).lines)
            self.assertEqual(log.count("2 dots a side"), 2)
            await pilot.press("n")
            await pilot.pause()
        self.assertIs(app.bridge.answer, False)


if __name__ == "__main__":
    unittest.main(buffer=True)
