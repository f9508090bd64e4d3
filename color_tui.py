#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# color_tui.py — ColorTUIDisplay: a full-screen Textual board for Pins.
#
# Requires: pip install textual
# Launch with `python pins.py --tui` or `python color_tui.py`.

from __future__ import annotations

import asyncio
import threading

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import RichLog, Static

from board import HORIZONTAL, VERTICAL, Cell, Edge
from pins import Display, Event, Game, GameState, format_event, new_state, play_session

PLAYER_COLORS = ["blue", "red", "green", "yellow", "magenta"]


# ── Widgets ───────────────────────────────────────────────────────────────────

class BoardPanel(Static):
    """Dots, lines in the color of whoever drew them, and claimed boxes."""

    DEFAULT_CSS = """
    BoardPanel {
        width: auto;
        height: auto;
        border: solid $success-darken-1;
        padding: 1 3;
    }
    """


class PlayerPanel(Static):
    """Name and box count for one player; outlined while it is their move."""

    DEFAULT_CSS = """
    PlayerPanel {
        width: 1fr;
        height: 4;
        border: round grey;
        padding: 0 1;
    }
    PlayerPanel.active {
        border: round white;
    }
    """


class EventLog(RichLog):
    """What has happened so far, newest at the bottom."""

    DEFAULT_CSS = """
    EventLog {
        height: 10;
        border: solid $primary-darken-1;
        padding: 0 1;
    }
    """


class IOPanel(Static):
    """Line menu or yes/no question for the human to move."""

    DEFAULT_CSS = """
    IOPanel {
        height: auto;
        max-height: 14;
        border: solid $warning-darken-1;
        padding: 0 1;
    }
    """


# ── Markup ────────────────────────────────────────────────────────────────────

def _color_for(player_id: int) -> str:
    return PLAYER_COLORS[(player_id - 1) % len(PLAYER_COLORS)]


def _player_markup(name: str, score: int, color: str, active: bool) -> str:
    pointer = "▶" if active else " "
    return f"{pointer} [{color}]{name}[/{color}]\n  {score} boxes"


def _line_markup(state: GameState, edge: Edge, drawn: str, blank: str) -> str:
    """Colored segment for a drawn edge; the most recent line is bold."""
    owner = state.drawn.get(edge)
    if owner is None:
        return blank
    style = _color_for(owner)
    if edge == state.last_edge:
        style = f"bold {style}"
    return f"[{style}]{drawn}[/{style}]"


def _box_markup(state: GameState, cell: Cell) -> str:
    owner = state.owners.get(cell)
    if owner is None:
        return "   "
    color = _color_for(owner)
    return f"[{color}]▓{owner}▓[/{color}]"


def _board_markup(state: GameState) -> str:
    """Rich-markup picture of the grid: a text row per dot row and one per box row."""
    n = state.grid_size
    rows: list[str] = []
    for row in range(n):
        segments = [_line_markup(state, Edge(HORIZONTAL, row, col), "━━━", "   ") for col in range(n - 1)]
        rows.append("●" + "●".join(segments) + "●")
        if row < n - 1:
            walls = [_line_markup(state, Edge(VERTICAL, row, col), "┃", " ") for col in range(n)]
            boxes = [_box_markup(state, Cell(row, col)) for col in range(n - 1)]
            rows.append("".join(wall + box for wall, box in zip(walls, boxes)) + walls[-1])
    return "\n".join(rows)


def _event_to_str(event: Event) -> str | None:
    """Log line for an event, or None if the TUI leaves it out."""
    if event.type == "turn_start":
        return None  # the active PlayerPanel already shows it
    text = format_event(event)
    if text is not None and event.type in ("win", "draw"):
        return f"[bold]{text}[/bold]"
    return text


# ── Input bridge ──────────────────────────────────────────────────────────────

class _Bridge(object):
    """Hand-off between the game thread, which blocks, and the UI thread, which answers."""

    def __init__(self):
        self.ready = threading.Event()
        self.answer: object = None
        self.mode: str | None = None     # "menu", "confirm" or None
        self.options: list = []
        self.typed = ""
        self.menu_text = ""

    def open(self, mode: str, options: list | None = None, menu_text: str = "") -> None:
        self.mode = mode
        self.options = list(options or [])
        self.typed = ""
        self.menu_text = menu_text

    def close(self, answer: object) -> None:
        self.mode = None
        self.options = []
        self.typed = ""
        self.answer = answer
        self.ready.set()

    def choice(self) -> object | None:
        """The option the typed number points at, if any."""
        if not self.typed.isdigit():
            return None
        index = int(self.typed) - 1
        return self.options[index] if 0 <= index < len(self.options) else None


# ── App ───────────────────────────────────────────────────────────────────────

class PinsApp(App):
    """Full-screen Pins."""

    TITLE = "Pins"
    BINDINGS = [("q", "quit", "Quit")]
    CSS = """
    #player-area { height: auto; }
    """

    def __init__(self, game: Game | None = None, display: ColorTUIDisplay | None = None) -> None:
        super().__init__()
        self.game = game
        self.bridge = _Bridge()
        self._game_display = display
        if display is not None:
            display.app = self

    def compose(self) -> ComposeResult:
        state = self.game.state if self.game is not None else new_state(4)
        yield BoardPanel(_board_markup(state), id="board")
        with Horizontal(id="player-area"):
            for _ in (self.game.players if self.game is not None else []):
                yield PlayerPanel("")
        yield EventLog(id="event-log", markup=True)
        yield IOPanel("", id="io-panel")

    def on_mount(self) -> None:
        if self.game is None:
            return
        self.update_state(self.game)
        if self._game_display is not None:
            threading.Thread(target=self._game_worker, daemon=True).start()

    def _game_worker(self) -> None:
        """Play games off the event loop until the player declines another, then exit.

        If the app closes mid-game (q, or a test tearing down) the widgets
        are gone and the pending UI call fails; that ends the worker quietly.
        """
        try:
            play_session(self.game, self._game_display)  # type: ignore[arg-type]
        except NoMatches:
            return
        except RuntimeError:
            if self.is_running:
                raise
            return
        if self.is_running:
            self.call_from_thread(self.exit)

    # -- Called on the UI thread by ColorTUIDisplay --

    def add_events(self, events: list[Event]) -> None:
        log = self.query_one(EventLog)
        for text in filter(None, map(_event_to_str, events)):
            log.write(text)

    def update_state(self, game: Game) -> None:
        """Redraw the board and every player panel."""
        self.query_one(BoardPanel).update(_board_markup(game.state))
        for panel, player in zip(self.query(PlayerPanel), game.players):
            info = game.get_player_state(player)
            panel.update(_player_markup(info["name"], info["score"], _color_for(info["id"]), info["is_current"]))
            panel.set_class(info["is_current"], "active")

    def show_prompt(self, options: list, formatter: callable) -> None:
        menu = "\n".join(f"[{i}] {formatter(option)}" for i, option in enumerate(options, 1))
        self.bridge.open("menu", options, menu)
        self._show_menu()

    def show_confirm_prompt(self, prompt: str) -> None:
        self.bridge.open("confirm")
        self.query_one(IOPanel).update(f"{prompt} [y/n]")

    def show_info_text(self, content: str) -> None:
        self.query_one(EventLog).write(content)

    def _show_menu(self) -> None:
        self.query_one(IOPanel).update(f"{self.bridge.menu_text}\n> {self.bridge.typed}_")

    def resolve_bridge(self, value: object) -> None:
        """Answer the waiting game thread and clear the IOPanel."""
        self.query_one(IOPanel).update("")
        self.bridge.close(value)

    # -- Keys --

    def on_key(self, event: Key) -> None:
        if self.bridge.mode == "confirm":
            self._confirm_key(event)
        elif self.bridge.mode == "menu":
            self._menu_key(event)

    def _confirm_key(self, event: Key) -> None:
        answer = {"y": True, "n": False}.get((event.character or "").lower())
        if answer is not None:
            event.stop()
            self.resolve_bridge(answer)

    def _menu_key(self, event: Key) -> None:
        bridge = self.bridge
        if event.key == "enter":
            picked = bridge.choice()
            if picked is not None:
                event.stop()
                self.resolve_bridge(picked)
            return
        if event.key == "backspace":
            bridge.typed = bridge.typed[:-1]
        elif event.character is not None and event.character.isdigit():
            # Room for as many digits as the biggest option number has
            if len(bridge.typed) < len(str(len(bridge.options))):
                bridge.typed += event.character
        else:
            return
        event.stop()
        self._show_menu()


# ── ColorTUIDisplay ───────────────────────────────────────────────────────────

class ColorTUIDisplay(Display):
    """Display that draws into a PinsApp.

    Build it with PinsApp(game=..., display=...) so the app runs the game on a
    worker thread. pick_one() and confirm() block that thread until a key
    answers them; calling them on the Textual event loop would deadlock.
    """

    def __init__(self, app: PinsApp | None = None) -> None:
        self.app = app

    def _require_app(self, method: str) -> PinsApp:
        if self.app is None:
            raise RuntimeError(f"ColorTUIDisplay.{method}() needs an app; pass app=PinsApp() or attach one")
        return self.app

    def _on_ui(self, fn: callable, /, *args: object) -> None:
        """Run fn now if we are on the event loop, otherwise hand it over with call_from_thread()."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.app.call_from_thread(fn, *args)  # type: ignore[union-attr]
        else:
            fn(*args)

    def _ask(self, method: str, opener: callable, *args: object) -> object:
        app = self._require_app(method)
        app.bridge.ready.clear()
        self._on_ui(opener, *args)
        app.bridge.ready.wait()
        return app.bridge.answer

    def show_events(self, events: list[Event]) -> None:
        self._on_ui(self._require_app("show_events").add_events, events)

    def show_state(self, game: Game) -> None:
        self._on_ui(self._require_app("show_state").update_state, game)

    def pick_one(self, options: list, prompt: str = "Your selection: ", formatter: callable = str) -> object:
        app = self._require_app("pick_one")
        return self._ask("pick_one", app.show_prompt, options, formatter)

    def confirm(self, prompt: str) -> bool:
        app = self._require_app("confirm")
        return bool(self._ask("confirm", app.show_confirm_prompt, prompt))

    def show_info(self, content: str) -> None:
        self._on_ui(self._require_app("show_info").show_info_text, content)


if __name__ == "__main__":
    PinsApp(game=Game(grid_size=4, humans=1, difficulty="medium"), display=ColorTUIDisplay()).run()
