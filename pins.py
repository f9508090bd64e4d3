#!/usr/bin/python3
# -*- coding: UTF-8 -*-
# pins.py - Main game file: state machine, players, displays, and the Game loop

from __future__ import annotations

import argparse
import json
import random
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field

import utility
from board import Board, Cell, Edge

DEFAULT_GRID_SIZE = 6
MIN_PLAYERS = 2
MAX_PLAYERS = 5
DIFFICULTIES = ("easy", "medium", "hard", "expert")


# ==== Errors ====

class InvalidMove(ValueError):
    """The edge is already drawn, off the board, or the game is over. State is unchanged."""


class InvariantViolation(RuntimeError):
    """The state machine or one of its callers broke a rule that should never break."""


class SnapshotError(ValueError):
    """A serialized snapshot could not be turned back into a GameState."""


# ==== Game state ====

@dataclass
class GameState:
    """Everything needed to continue a game. Mutated only by apply_edge() and friends."""
    grid_size: int
    player_count: int
    current_player: int = 1
    drawn: dict[Edge, int] = field(default_factory=dict)    # edge → player who drew it, in draw order
    owners: dict[Cell, int] = field(default_factory=dict)   # cell → player who closed it
    scores: dict[int, int] = field(default_factory=dict)
    game_over: bool = False
    last_edge: Edge | None = None

    @property
    def board(self) -> Board:
        return Board(self.grid_size)

    @property
    def drawn_edges(self) -> set[Edge]:
        return set(self.drawn)


@dataclass
class AppliedMoveResult:
    """Outcome of one logical move: the chosen edge plus any auto-drawn chain edges."""
    edge: Edge
    player: int
    completed_cells: list[Cell] = field(default_factory=list)
    auto_edges: list[Edge] = field(default_factory=list)
    turn_advanced: bool = True
    game_over: bool = False

    @property
    def completed_any(self) -> bool:
        return bool(self.completed_cells)


def new_state(grid_size: int = DEFAULT_GRID_SIZE, player_count: int = 2) -> GameState:
    if grid_size < 2:
        raise ValueError(f"Grid size must be at least 2, got {grid_size}")
    if not MIN_PLAYERS <= player_count <= MAX_PLAYERS:
        raise ValueError(f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {player_count}")
    return GameState(
        grid_size=grid_size,
        player_count=player_count,
        scores={pid: 0 for pid in range(1, player_count + 1)},
    )


def clone_state(state: GameState) -> GameState:
    """Structural copy. Edges and cells are frozen, so copying the containers is enough."""
    return GameState(
        grid_size=state.grid_size,
        player_count=state.player_count,
        current_player=state.current_player,
        drawn=dict(state.drawn),
        owners=dict(state.owners),
        scores=dict(state.scores),
        game_over=state.game_over,
        last_edge=state.last_edge,
    )


# ==== Queries ====

def total_cells(state: GameState) -> int:
    return (state.grid_size - 1) ** 2


def remaining_cells(state: GameState) -> int:
    return total_cells(state) - len(state.owners)


def drawn_count(state: GameState, cell: Cell, board: Board | None = None) -> int:
    board = board or state.board
    return sum(1 for e in board.edges_of_cell(cell) if e in state.drawn)


def list_undrawn_edges(state: GameState) -> list[Edge]:
    return [e for e in state.board.edges() if e not in state.drawn]


def is_game_over(state: GameState) -> bool:
    return sum(state.scores.values()) == total_cells(state)


def winners(state: GameState) -> set[int]:
    """Ids holding the top score. More than one id means a draw."""
    best = max(state.scores.values())
    return {pid for pid, score in state.scores.items() if score == best}


# ==== Commands ====

def _claim_completed(state: GameState, board: Board, edge: Edge, player: int) -> list[Cell]:
    """Give every unowned cell next to edge that now has four sides to player."""
    claimed = []
    for cell in board.cells_adjacent_to_edge(edge):
        count = drawn_count(state, cell, board)
        if count > 4:
            raise InvariantViolation(f"Cell {cell} has {count} drawn edges")
        if count == 4 and cell not in state.owners:
            state.owners[cell] = player
            state.scores[player] += 1
            claimed.append(cell)
    return claimed


def apply_edge(state: GameState, edge: Edge) -> list[Cell]:
    """Draw edge for the current player and return the cells it closed (0, 1 or 2).

    Raises InvalidMove without touching state if the game is over, the edge is
    already drawn, or the edge isn't on this board.
    """
    board = state.board
    if state.game_over:
        raise InvalidMove("The game is over")
    if not board.contains_edge(edge):
        raise InvalidMove(f"{edge} is not on a {state.grid_size}x{state.grid_size} grid")
    if edge in state.drawn:
        raise InvalidMove(f"{edge} is already drawn")
    player = state.current_player
    state.drawn[edge] = player
    state.last_edge = edge
    return _claim_completed(state, board, edge, player)


def advance_turn(state: GameState, completed_any: bool) -> bool:
    """Pass the move on unless the last edge closed a box. Returns True if the turn advanced."""
    if completed_any:
        return False
    state.current_player = (state.current_player % state.player_count) + 1
    return True


def complete_chain(state: GameState, edge: Edge, completed: list[Cell]) -> tuple[list[Edge], list[Cell]]:
    """Auto-close three-sided cells reachable from the cells edge just completed.

    Propagation only crosses edges drawn during this move (edge itself or an
    auto-drawn one). A line from an earlier move stops the chain.
    Returns (auto_edges, cells claimed by them).
    """
    board = state.board
    player = state.current_player
    this_move = {edge}
    auto_edges: list[Edge] = []
    claimed: list[Cell] = []
    queue = deque(completed)
    while queue:
        cell = queue.popleft()
        for side in board.edges_of_cell(cell):
            if side not in this_move:
                continue
            neighbor = board.other_cell(cell, side)
            if neighbor is None or neighbor in state.owners:
                continue
            if drawn_count(state, neighbor, board) != 3:
                continue
            missing = next(e for e in board.edges_of_cell(neighbor) if e not in state.drawn)
            state.drawn[missing] = player
            state.last_edge = missing
            this_move.add(missing)
            auto_edges.append(missing)
            newly = _claim_completed(state, board, missing, player)
            claimed.extend(newly)
            queue.extend(newly)
    return auto_edges, claimed


def play_edge(state: GameState, edge: Edge) -> AppliedMoveResult:
    """One full move: draw, claim, auto-complete the chain, hand over the turn."""
    player = state.current_player
    completed = apply_edge(state, edge)
    auto_edges: list[Edge] = []
    if completed:
        auto_edges, chained = complete_chain(state, edge, completed)
        completed = completed + chained
    advanced = advance_turn(state, bool(completed))
    state.game_over = is_game_over(state)
    return AppliedMoveResult(
        edge=edge,
        player=player,
        completed_cells=completed,
        auto_edges=auto_edges,
        turn_advanced=advanced,
        game_over=state.game_over,
    )


# ==== Snapshots ====

def snapshot(state: GameState) -> dict:
    """Plain-dict snapshot suitable for JSON and for handing to a sync layer."""
    return {
        "gridSize": state.grid_size,
        "playerCount": state.player_count,
        "currentPlayer": state.current_player,
        "scores": {str(pid): score for pid, score in state.scores.items()},
        "lines": [e.id for e in state.drawn],
        "drawnLines": {e.id: pid for e, pid in state.drawn.items()},
        "boxes": {c.id: pid for c, pid in state.owners.items()},
        "gameOver": state.game_over,
        "lastLine": state.last_edge.id if state.last_edge else None,
    }


def restore(data: dict) -> GameState:
    """Rebuild a GameState from snapshot(). Raises SnapshotError on anything inconsistent."""
    try:
        state = new_state(int(data["gridSize"]), int(data["playerCount"]))
        board = state.board
        players = set(state.scores)
        for line_id in data["lines"]:
            edge = Edge.from_id(line_id)
            pid = int(data["drawnLines"][line_id])
            if not board.contains_edge(edge) or edge in state.drawn or pid not in players:
                raise SnapshotError(f"Bad line entry {line_id!r}")
            state.drawn[edge] = pid
        if len(data["drawnLines"]) != len(state.drawn):
            raise SnapshotError("drawnLines and lines disagree")
        for cell_id, pid in data["boxes"].items():
            cell = Cell.from_id(cell_id)
            if not board.contains_cell(cell) or int(pid) not in players:
                raise SnapshotError(f"Bad box entry {cell_id!r}")
            if drawn_count(state, cell, board) != 4:
                raise SnapshotError(f"Box {cell_id} is owned but not closed")
            state.owners[cell] = int(pid)
        unclaimed = [c for c in board.cells() if c not in state.owners and drawn_count(state, c, board) == 4]
        if unclaimed:
            raise SnapshotError(f"Box {unclaimed[0]} is closed but has no owner")
        state.scores = {int(pid): int(score) for pid, score in data["scores"].items()}
        if set(state.scores) != players or sum(state.scores.values()) != len(state.owners):
            raise SnapshotError("Scores don't match the owned boxes")
        state.current_player = int(data["currentPlayer"])
        if state.current_player not in players:
            raise SnapshotError(f"Current player {state.current_player} is out of range")
        state.game_over = bool(data["gameOver"])
        if state.game_over != is_game_over(state):
            raise SnapshotError(f"gameOver is {state.game_over} but {remaining_cells(state)} boxes are left")
        last = data.get("lastLine")
        state.last_edge = Edge.from_id(last) if last else None
        if state.last_edge is not None and state.last_edge not in state.drawn:
            raise SnapshotError(f"Last line {last!r} was never drawn")
    except SnapshotError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SnapshotError(f"Malformed snapshot: {exc}") from exc
    return state


def serialize_state(state: GameState) -> str:
    return json.dumps(snapshot(state), separators=(",", ":"))


def deserialize_state(text: str) -> GameState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    return restore(data)


# ==== Events and displays ====

@dataclass
class Event:
    """One thing that happened during a turn. Displays decide how (or whether) to show it."""
    type: str
    player: str | None = None
    edge: str | None = None
    cell: str | None = None
    value: int | None = None
    message: str | None = None


def format_event(event: Event) -> str | None:
    """Plain-text rendering of an event, or None if the event is silent."""
    t = event.type
    if t == "turn_start":
        return f"-=-=-= It's {event.player}'s turn =-=-=-"
    if t == "edge":
        return f"{event.player} draws {utility.describe_edge(Edge.from_id(event.edge))}."
    if t == "auto_edge":
        return f"The chain runs on: {utility.describe_edge(Edge.from_id(event.edge))}."
    if t == "box":
        return f"{event.player} closes box {event.cell} and now has {event.value}."
    if t == "extra_turn":
        return f"{event.player} closed a box and goes again!"
    if t == "invalid_move":
        return f"Sorry: {event.message}."
    if t == "win":
        return f"{event.player} wins with {event.value} boxes!"
    if t == "draw":
        return f"It's a draw between {event.message}."
    if t == "reset":
        return f"New game on a {event.value}x{event.value} grid."
    return None


class Display(ABC):
    """Where a Game sends its events and asks its humans for input."""

    @abstractmethod
    def show_events(self, events: list[Event]) -> None: ...

    @abstractmethod
    def show_state(self, game: Game) -> None: ...

    @abstractmethod
    def pick_one(self, options: list, prompt: str = "Your selection: ", formatter=str) -> object: ...

    @abstractmethod
    def confirm(self, prompt: str) -> bool: ...

    @abstractmethod
    def show_info(self, content: str) -> None: ...


class NullDisplay(Display):
    """Swallows output. Picks the first option and says yes to everything."""

    def show_events(self, events: list[Event]) -> None:
        pass

    def show_state(self, game: Game) -> None:
        pass

    def pick_one(self, options: list, prompt: str = "Your selection: ", formatter=str) -> object:
        return options[0] if options else None

    def confirm(self, prompt: str) -> bool:
        return True

    def show_info(self, content: str) -> None:
        pass


class RecordingDisplay(NullDisplay):
    """Keeps every event it is shown, for tests and tournament records."""

    def __init__(self):
        self.events: list[Event] = []

    def show_events(self, events: list[Event]) -> None:
        self.events.extend(events)


class TerminalDisplay(Display):
    """print() and input() front-end."""

    def show_events(self, events: list[Event]) -> None:
        for event in events:
            text = format_event(event)
            if text is not None:
                print(text)

    def show_state(self, game: Game) -> None:
        initials = {i + 1: p.name[0] for i, p in enumerate(game.players)}
        print(utility.board_text(game.state, marks=initials))
        print("  ".join("{}: {}".format(p.name, game.state.scores[i + 1]) for i, p in enumerate(game.players)))

    def pick_one(self, options: list, prompt: str = "Your selection: ", formatter=str) -> object:
        print(" -=-= Choose One =-=- ")
        for i, option in enumerate(options):
            print("[{}] : {}".format(i + 1, formatter(option)))
        while True:
            answer = input(prompt)
            try:
                j = int(answer)
            except ValueError:
                print("Sorry: '{}' isn't a number.".format(answer))
                continue
            if 1 <= j <= len(options):
                # Options are numbered 1-N on screen but zero-indexed here
                return options[j - 1]
            print("Sorry: pick a number from 1 to {}.".format(len(options)))

    def confirm(self, prompt: str) -> bool:
        while True:
            answer = input("{} ([Y]es / [N]o) ".format(prompt)).strip().lower()
            if answer.startswith("y"):
                return True
            if answer.startswith("n"):
                return False
            print("Sorry, I couldn't find a Y or N in your answer. ")

    def show_info(self, content: str) -> None:
        print(content)


# ==== Players ====

class Player(object):
    def __init__(self, name: str = "Player"):
        self.name = name
        self.display: Display | None = None

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        raise NotImplementedError


class Human(Player):
    def __init__(self, name: str = "Human", display: Display | None = None):
        super().__init__(name=name)
        self.display = display if display is not None else TerminalDisplay()

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        return self.display.pick_one(edges, prompt="Draw which line? ", formatter=utility.describe_edge)


class Bot(Player):
    """Draws a uniformly random undrawn edge. Difficulty tiers in bots.py subclass this."""

    def __init__(self, name: str = "Bot", rng: random.Random | None = None):
        super().__init__(name=name)
        self.rng = rng if rng is not None else random.Random()

    def chooseEdge(self, state: GameState, edges: list[Edge]) -> Edge:
        return self.rng.choice(edges)


# ==== The game ====

class Game(object):
    """One game of Pins: a GameState, its players, and the turn loop around them."""

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE, players: int = 2, humans: int = 0,
                 difficulty: str | None = None, rng: random.Random | None = None):
        if humans > players:
            raise ValueError(f"Can't seat {humans} humans at a {players}-player game")
        self.rng = rng if rng is not None else random.Random()
        self.state = new_state(grid_size, players)
        self.difficulty = difficulty
        self.players: list[Player] = [Human(name=f"Player {i + 1}") for i in range(humans)]
        for i in range(humans, players):
            self.players.append(self._make_bot(f"Robo{i + 1}", difficulty))
        self.turn_number = 0
        self.winner: Player | None = None
        self.history: list[AppliedMoveResult] = []
        self._busy = False

    def _make_bot(self, name: str, difficulty: str | None) -> Bot:
        if difficulty is None:
            return Bot(name=name, rng=self.rng)
        from bots import bot_for  # noqa: PLC0415 (bots imports this module)
        return bot_for(difficulty, name=name, rng=self.rng)

    # -- Query surface --

    def get_state(self) -> GameState:
        return clone_state(self.state)

    def list_undrawn_edges(self) -> list[Edge]:
        return list_undrawn_edges(self.state)

    def is_game_over(self) -> bool:
        return self.state.game_over

    def winners(self) -> set[int]:
        return winners(self.state)

    def get_current_player(self) -> Player:
        return self.players[self.state.current_player - 1]

    def player_id(self, player: Player) -> int:
        return self.players.index(player) + 1

    def get_player_state(self, player: Player) -> dict:
        pid = self.player_id(player)
        return {
            "name": player.name,
            "id": pid,
            "score": self.state.scores[pid],
            "is_current": pid == self.state.current_player,
        }

    # -- Command surface --

    def apply_edge(self, edge: Edge) -> AppliedMoveResult:
        if self._busy:
            raise InvariantViolation("A move is already being applied to this game")
        self._busy = True
        try:
            result = play_edge(self.state, edge)
        finally:
            self._busy = False
        self.history.append(result)
        return result

    def reset_game(self, grid_size: int | None = None, player_count: int | None = None) -> list[Event]:
        """Start over, optionally on a new grid size or with a different number of players."""
        grid_size = grid_size or self.state.grid_size
        player_count = player_count or self.state.player_count
        self.state = new_state(grid_size, player_count)
        while len(self.players) < player_count:
            self.players.append(self._make_bot(f"Robo{len(self.players) + 1}", self.difficulty))
        del self.players[player_count:]
        self.turn_number = 0
        self.winner = None
        self.history = []
        return [Event(type="reset", value=grid_size)]

    # -- Turn loop --

    def next_turn(self, display: Display | None = None) -> list[Event]:
        """Ask the current player for an edge and play it. Returns the events produced."""
        player = self.get_current_player()
        events = [Event(type="turn_start", player=player.name, value=self.state.current_player)]
        edges = self.list_undrawn_edges()
        if not edges:
            raise InvariantViolation("No undrawn edges left but the game isn't over")
        edge = player.chooseEdge(self.get_state(), edges)
        try:
            result = self.apply_edge(edge)
        except InvalidMove as exc:
            events.append(Event(type="invalid_move", player=player.name, edge=str(edge), message=str(exc)))
            return events
        self.turn_number += 1
        events.append(Event(type="edge", player=player.name, edge=result.edge.id))
        for auto in result.auto_edges:
            events.append(Event(type="auto_edge", player=player.name, edge=auto.id))
        for cell in result.completed_cells:
            events.append(Event(type="box", player=player.name, cell=cell.id,
                                value=self.state.scores[result.player]))
        if result.completed_any and not result.game_over:
            events.append(Event(type="extra_turn", player=player.name))
        return events

    def final_events(self) -> list[Event]:
        top = sorted(self.winners())
        if len(top) == 1:
            self.winner = self.players[top[0] - 1]
            return [Event(type="win", player=self.winner.name, value=self.state.scores[top[0]])]
        self.winner = None
        names = " and ".join(self.players[pid - 1].name for pid in top)
        return [Event(type="draw", message=names, value=self.state.scores[top[0]])]

    def run(self, display: Display | None = None) -> set[int]:
        """Play to the end. Returns the winning player ids."""
        display = display if display is not None else NullDisplay()
        for player in self.players:
            if isinstance(player, Human):
                player.display = display
        display.show_info("{} dots a side. Playing: {}".format(
            self.state.grid_size, ", ".join(p.name for p in self.players)))
        display.show_state(self)
        while not self.is_game_over():
            events = self.next_turn(display)
            display.show_events(events)
            display.show_state(self)
        display.show_events(self.final_events())
        return self.winners()


def play_session(game: Game, display: Display) -> None:
    """Play games on the same seats until the display turns down another."""
    game.run(display=display)
    while display.confirm("Play again?"):
        display.show_events(game.reset_game())
        game.run(display=display)


def main():
    parser = argparse.ArgumentParser(description='Pins: the dots and boxes game')
    parser.add_argument('-g', '--grid', type=int, default=DEFAULT_GRID_SIZE, help='dots per side (default: 6)')
    parser.add_argument('-p', '--players', type=int, default=2, help='number of players, 2-5 (default: 2)')
    parser.add_argument('--humans', type=int, default=1, help='how many of the players are human (default: 1)')
    parser.add_argument('-d', '--difficulty', choices=DIFFICULTIES, default='medium', help='bot difficulty (default: medium)')
    parser.add_argument('--seed', type=int, default=None, help='seed the bots for a reproducible game')
    parser.add_argument('--snapshot', metavar='FILE', default=None, help='write the final game state to FILE as JSON')
    parser.add_argument('--tui', action='store_true', help='play in the full-screen Textual interface')
    args = parser.parse_args()

    try:
        game = Game(grid_size=args.grid, players=args.players, humans=args.humans,
                    difficulty=args.difficulty, rng=random.Random(args.seed))
    except ValueError as exc:
        parser.error(str(exc))
    if args.tui:
        from color_tui import ColorTUIDisplay, PinsApp  # noqa: PLC0415 (textual is only needed here)
        PinsApp(game=game, display=ColorTUIDisplay()).run()
    else:
        play_session(game, TerminalDisplay())
    if args.snapshot:
        with open(args.snapshot, "w", encoding="utf-8") as f:
            f.write(serialize_state(game.state) + "\n")


if __name__ == "__main__":
    main()
