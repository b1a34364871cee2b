"""Game session state machine.

A session moves ``Initial -> InProgress -> GameOver`` and back to
``InProgress`` on ``start_game``. Every public method runs under one lock
and returns a typed outcome; recoverable failures are reported through the
outcome's ``error`` instead of being raised.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .bag import BagConfig, PieceBag
from .board import Board, LinePreview
from .errors import CorruptedSnapshot, GameError, InvalidPlacement, PowerUpUnavailable
from .events import (
    EVENT_COMBO,
    EVENT_GAME_OVER,
    EVENT_HAND_REFILLED,
    EVENT_INVALID_MOVE,
    EVENT_LINES_CLEARED,
    EVENT_PIECE_PLACED,
    EVENT_POWER_UP_USED,
    EVENT_TIMER_TICK,
    EventBus,
    LineClearEvent,
)
from .inventory import InMemoryInventory, Inventory
from .modes import GameMode, ModeConfig, StoryLevel, mode_config
from .pieces import Piece
from .powerups import PowerUpEngine, PowerUpType
from .rules import ScoringRules
from .snapshot import SessionSnapshot, snapshot_key
from .state import GameOver, InProgress, Initial, SessionState, StoryResult
from .store import MemoryStore, SnapshotStore
from .timer import StoryTimer, time_remaining

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementOutcome:
    success: bool
    state: SessionState
    points: int = 0
    lines_cleared: int = 0
    event: Optional[LineClearEvent] = None
    error: Optional[GameError] = None


@dataclass(frozen=True)
class PowerUpOutcome:
    success: bool
    state: SessionState
    score_gained: int = 0
    event: Optional[LineClearEvent] = None
    error: Optional[GameError] = None


class GameSession:
    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        inventory: Optional[Inventory] = None,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        rules: Optional[ScoringRules] = None,
        bag_config: Optional[BagConfig] = None,
        tick_interval: Optional[float] = None,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.inventory = inventory if inventory is not None else InMemoryInventory()
        self.bus = bus or EventBus()
        self.rng = rng or random.SystemRandom()
        self.clock = clock
        self.rules = rules or ScoringRules()
        self.bag = PieceBag(bag_config, self.rng)
        self.power_ups = PowerUpEngine(self.bag, self.rng)
        # When set, a background StoryTimer drives tick(); otherwise ticks are external.
        self.tick_interval = tick_interval

        self._state: SessionState = Initial()
        self._timer: Optional[StoryTimer] = None
        self._lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and self._timer.running

    # ---------- Lifecycle ----------
    def start_game(self, mode: GameMode, story_level: Optional[StoryLevel] = None) -> SessionState:
        with self._lock:
            mode = GameMode.STORY if story_level is not None else GameMode(mode)
            current = self._state
            if mode is GameMode.STORY and story_level is None:
                logger.warning("Story mode requested without a level; keeping current state")
                return current
            self._cancel_timer()

            if isinstance(current, InProgress) and not current.is_story:
                if current.mode == mode:
                    return current
                self._persist(current)
            if isinstance(current, GameOver) and current.mode == mode:
                self._discard_snapshot(mode)

            if mode is GameMode.STORY:
                return self._start_story(story_level)

            config = mode_config(mode)
            restored = self._restore(mode, config)
            if restored is not None:
                self._state = restored
                logger.info("Resumed %s game at score %d", mode.value, restored.score)
                return restored

            self.bag.reset()
            board = Board(config.board_size)
            self._state = InProgress(
                board=board,
                hand=self._draw_hand(config, board),
                score=0,
                combo=0,
                moves_since_last_clear=0,
                mode=mode,
            )
            logger.info("Started new %s game (%dx%d)", mode.value, config.board_size, config.board_size)
            return self._state

    def reset_game(self) -> SessionState:
        """Abandon the current game and start the same mode (or level) from scratch."""
        with self._lock:
            current = self._state
            if isinstance(current, Initial):
                return current
            self._cancel_timer()
            if current.story_level is None:
                self._discard_snapshot(current.mode)
            self._state = Initial()
            return self.start_game(current.mode, current.story_level)

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()

    def _start_story(self, level: StoryLevel) -> InProgress:
        config = level.config
        self.bag.reset()
        board = Board(config.board_size)
        deadline = None
        remaining = None
        if level.time_limit:
            deadline = self.clock() + level.time_limit
            remaining = float(level.time_limit)
        self._state = InProgress(
            board=board,
            hand=self._draw_hand(config, board),
            score=0,
            combo=0,
            moves_since_last_clear=0,
            mode=GameMode.STORY,
            story_level=level,
            deadline=deadline,
            time_remaining=remaining,
            power_ups_disabled=level.power_ups_disabled,
        )
        if deadline is not None and self.tick_interval:
            self._start_timer()
        logger.info("Started story level %d (%s)", level.level_number, level.title)
        return self._state

    # ---------- Placement ----------
    def place_piece(self, piece: Piece, x: int, y: int) -> PlacementOutcome:
        with self._lock:
            current = self._state
            if not isinstance(current, InProgress):
                return PlacementOutcome(False, current, error=InvalidPlacement("no game in progress"))
            if current.deadline is not None:
                ticked = self._tick(current, self.clock())
                if isinstance(ticked, GameOver):
                    return PlacementOutcome(False, ticked, error=InvalidPlacement("time is up"))
                current = ticked

            held = next((p for p in current.hand if p.id == piece.id), None)
            if held is None or not current.board.can_place(held, x, y):
                reason = "piece is not in hand" if held is None else f"cannot place at ({x}, {y})"
                self._state = current.evolve(preview=None)
                self.bus.emit(EVENT_INVALID_MOVE, piece=piece, x=x, y=y)
                logger.debug("Rejected placement: %s", reason)
                return PlacementOutcome(False, self._state, error=InvalidPlacement(reason))

            board = current.board.clone()
            cells = board.place(held, x, y)
            cleared = board.break_lines()
            update = self.rules.apply(cells, cleared.line_count, current.combo, current.moves_since_last_clear)
            score = current.score + update.points
            lines_cleared = current.lines_cleared + cleared.line_count

            # Listeners run after the new state is committed.
            notifications = [(EVENT_PIECE_PLACED, dict(piece=held, x=x, y=y, points=update.points))]
            event = None
            if cleared.cleared_cells:
                event = LineClearEvent(cleared.cleared_cells, cleared.line_count)
                notifications.append((EVENT_LINES_CLEARED, dict(event=event)))
                if update.combo > 1:
                    notifications.append((EVENT_COMBO, dict(combo=update.combo, multiplier=update.multiplier)))

            hand = tuple(p for p in current.hand if p.id != held.id)
            if not hand:
                hand = self._draw_hand(self._config_for(current), board)
                notifications.append((EVENT_HAND_REFILLED, dict(hand=hand)))

            next_state = current.evolve(
                board=board,
                hand=hand,
                score=score,
                combo=update.combo,
                moves_since_last_clear=update.moves_since_last_clear,
                lines_cleared=lines_cleared,
                preview=None,
            )

            level = current.story_level
            over: Optional[GameOver] = None
            if level is not None and level.objectives_met(score, lines_cleared):
                over = self._finish(next_state, objectives_met=True, notify=False)
            elif not board.has_any_valid_move(hand):
                met = level is not None and score >= level.target_score
                over = self._finish(next_state, objectives_met=met, notify=False)
            else:
                self._state = next_state
                if level is None:
                    self._persist(next_state)

            for name, payload in notifications:
                self.bus.emit(name, **payload)
            if over is not None:
                self.bus.emit(EVENT_GAME_OVER, state=over)

            final = over if over is not None else next_state
            return PlacementOutcome(True, final, points=update.points, lines_cleared=cleared.line_count, event=event)

    def show_preview(self, piece: Piece, x: int, y: int) -> LinePreview:
        """Remember which lines placing ``piece`` at (x, y) would clear."""
        with self._lock:
            current = self._state
            if not isinstance(current, InProgress):
                return LinePreview()
            preview = current.board.preview_breaks(piece, x, y)
            self._state = current.evolve(preview=preview)
            return preview

    def clear_preview(self) -> None:
        with self._lock:
            current = self._state
            if isinstance(current, InProgress) and current.preview is not None:
                self._state = current.evolve(preview=None)

    # ---------- Story timer ----------
    def tick(self, now: Optional[float] = None) -> SessionState:
        with self._lock:
            current = self._state
            if not isinstance(current, InProgress) or current.deadline is None:
                return current
            return self._tick(current, self.clock() if now is None else now)

    def _tick(self, current: InProgress, now: float) -> SessionState:
        remaining = time_remaining(current.deadline, now)
        if remaining <= 0:
            level = current.story_level
            met = level is not None and current.score >= level.target_score
            logger.info("Story timer expired at score %d", current.score)
            return self._finish(current.evolve(time_remaining=0.0), objectives_met=met)
        self._state = current.evolve(time_remaining=remaining)
        self.bus.emit(EVENT_TIMER_TICK, time_remaining=remaining)
        return self._state

    def _start_timer(self) -> None:
        timer = StoryTimer(self.tick_interval, lambda: self._timer_fired(timer))
        self._timer = timer
        timer.start()

    def _timer_fired(self, timer: StoryTimer) -> None:
        with self._lock:
            # A timer from an earlier game must not touch the current one.
            if timer is not self._timer:
                timer.cancel()
                return
            self.tick()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ---------- Power-ups ----------
    def trigger_power_up(self, power_up: PowerUpType) -> PowerUpOutcome:
        with self._lock:
            current = self._state
            power_up = PowerUpType(power_up)
            if not isinstance(current, InProgress):
                return PowerUpOutcome(False, current, error=PowerUpUnavailable("no game in progress"))
            if current.power_ups_disabled:
                return PowerUpOutcome(False, current, error=PowerUpUnavailable("power-ups are disabled"))
            if self.inventory.get_power_up_count(power_up) <= 0:
                return PowerUpOutcome(False, current, error=PowerUpUnavailable(f"no {power_up.value} left"))

            config = self._config_for(current)
            result = self.power_ups.activate(
                power_up, current.board, current.hand, config.hand_size, self._density(config, current.board)
            )
            if not result.success:
                logger.debug("Power-up %s failed: %s", power_up.value, result.error)
                return PowerUpOutcome(False, current, error=result.error)
            if not self.inventory.decrement_power_up(power_up):
                return PowerUpOutcome(False, current, error=PowerUpUnavailable(f"no {power_up.value} left"))

            self._state = current.evolve(
                board=result.board if result.board is not None else current.board,
                hand=result.hand if result.hand is not None else current.hand,
                score=current.score + result.score_gained,
                preview=None,
            )
            event = None
            if result.cleared_cells:
                event = LineClearEvent(result.cleared_cells, result.line_count)
                self.bus.emit(EVENT_LINES_CLEARED, event=event)
            self.bus.emit(EVENT_POWER_UP_USED, power_up=power_up, score_gained=result.score_gained)
            if not current.is_story:
                self._persist(self._state)
            return PowerUpOutcome(True, self._state, score_gained=result.score_gained, event=event)

    # ---------- Persistence ----------
    def save_game(self) -> bool:
        with self._lock:
            current = self._state
            if not isinstance(current, InProgress) or current.is_story:
                return False
            return self._persist(current)

    def has_saved_game(self, mode: GameMode) -> bool:
        return self._load(GameMode(mode)) is not None

    def snapshot(self) -> Optional[SessionSnapshot]:
        current = self._state
        if not isinstance(current, InProgress):
            return None
        return SessionSnapshot(
            board=current.board.clone(),
            hand=current.hand,
            score=current.score,
            combo=current.combo,
            moves_since_last_clear=current.moves_since_last_clear,
            bag_state=self.bag.state(),
        )

    def _persist(self, state: InProgress) -> bool:
        snapshot = SessionSnapshot(
            board=state.board,
            hand=state.hand,
            score=state.score,
            combo=state.combo,
            moves_since_last_clear=state.moves_since_last_clear,
            bag_state=self.bag.state(),
        )
        try:
            self.store.set(snapshot_key(state.mode), snapshot.encode())
        except Exception:
            # A failed save must not undo the in-memory move that triggered it.
            logger.warning("Failed to save %s game", state.mode.value, exc_info=True)
            return False
        return True

    def _load(self, mode: GameMode) -> Optional[bytes]:
        try:
            return self.store.get(snapshot_key(mode))
        except Exception:
            logger.warning("Failed to read saved %s game", mode.value, exc_info=True)
            return None

    def _discard_snapshot(self, mode: GameMode) -> None:
        try:
            self.store.delete(snapshot_key(mode))
        except Exception:
            logger.warning("Failed to delete saved %s game", mode.value, exc_info=True)

    def _restore(self, mode: GameMode, config: ModeConfig) -> Optional[InProgress]:
        raw = self._load(mode)
        if raw is None:
            return None
        try:
            snapshot = SessionSnapshot.decode(raw, expected_size=config.board_size)
            self.bag.restore(snapshot.bag_state)
        except CorruptedSnapshot as exc:
            logger.warning("Discarding saved %s game: %s", mode.value, exc)
            self._discard_snapshot(mode)
            return None

        hand = snapshot.hand or self._draw_hand(config, snapshot.board)
        return InProgress(
            board=snapshot.board,
            hand=hand,
            score=snapshot.score,
            combo=snapshot.combo,
            moves_since_last_clear=snapshot.moves_since_last_clear,
            mode=mode,
        )

    # ---------- Helpers ----------
    def _config_for(self, state: InProgress) -> ModeConfig:
        if state.story_level is not None:
            return state.story_level.config
        return mode_config(state.mode)

    def _density(self, config: ModeConfig, board: Board) -> Optional[float]:
        return board.density() if config.adaptive_pieces else None

    def _draw_hand(self, config: ModeConfig, board: Board) -> Tuple[Piece, ...]:
        return tuple(self.bag.draw_hand(config.hand_size, self._density(config, board)))

    def _finish(self, state: InProgress, objectives_met: bool, notify: bool = True) -> GameOver:
        self._cancel_timer()
        level = state.story_level
        result = None
        if level is None:
            self.inventory.record_high_score(state.mode, state.score)
            self._discard_snapshot(state.mode)
        else:
            stars = level.stars_for(state.score) if objectives_met else 0
            if objectives_met and stars > 0:
                self.inventory.add_coins(level.coin_reward)
            result = StoryResult(stars_earned=stars, objectives_met=objectives_met)

        over = GameOver(
            board=state.board,
            final_score=state.score,
            mode=state.mode,
            story_level=level,
            story_result=result,
        )
        self._state = over
        logger.info("Game over (%s): final score %d", state.mode.value, state.score)
        if notify:
            self.bus.emit(EVENT_GAME_OVER, state=over)
        return over
