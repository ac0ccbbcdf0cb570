"""
board_service.py — Owns the farm board, its growth timers and its persistence.

One BoardTimerService exists per process. Every handler (an API call or a
fired growth timer) runs under the same lock from first read to the end of
its save, so handlers never interleave and a successful call is already on
disk when it returns.

Timer handles live only in memory. The stored watering timestamp is enough
to rebuild them: on start, each watered plot is either completed at once
(growth finished while the process was down) or re-armed for whatever
growth time is left.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import plot_state_machine
from constants import ROWS, COLS, GROWTH_TIME_MS, STORAGE_KEY
from models import Board, Plot, PlotState
from plot_state_machine import Action, TimerEffect
from storage import JsonStorage

logger = logging.getLogger(__name__)

INVALID_COORDINATES = "Invalid plot coordinates."
SAVE_FAILED = "Could not save game state."


class FarmError(Exception):
    """Base class for errors reported back to API callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FarmError):
    """Missing, malformed or out-of-range plot coordinates."""


class InvalidTransition(FarmError):
    """The action is not legal for the plot's current state."""


class PersistenceError(FarmError):
    """The board could not be read from or written to storage."""


def current_time_ms() -> int:
    return int(time.time() * 1000)


def start_timer(delay_seconds: float, callback: Callable[[], None]):
    """Start a daemon threading.Timer; the returned handle has .cancel()."""
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class BoardTimerService:
    """Grid of plots plus the timers that move watered plants to ready."""

    def __init__(
        self,
        storage: JsonStorage,
        growth_time_ms: int = GROWTH_TIME_MS,
        clock: Callable[[], int] = current_time_ms,
        timer_factory: Callable[[float, Callable[[], None]], Any] = start_timer,
        rows: int = ROWS,
        cols: int = COLS,
    ):
        self.storage = storage
        self.growth_time_ms = growth_time_ms
        self.rows = rows
        self.cols = cols
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self.board: Optional[Board] = None

    # ========================================
    # Startup / shutdown
    # ========================================

    def initialize(self) -> None:
        """
        Load the stored board (or create one) and rebuild growth timers.

        Raises:
            PersistenceError: storage could not be opened, read or written.
                The caller must not serve requests in that case.
        """
        with self._lock:
            try:
                self.storage.init()
                document = self.storage.get_item(STORAGE_KEY)
            except OSError as e:
                raise PersistenceError(f"Could not load game state: {e}") from e

            board = None
            if document is not None:
                try:
                    board = Board.from_document(document, self.rows, self.cols)
                except ValueError as e:
                    logger.warning("Stored game board is invalid (%s); starting fresh.", e)

            if board is None:
                self.board = Board.fresh(self.rows, self.cols)
                self._save()
                logger.info("New game board initialized.")
                return

            self.board = board
            logger.info("Game board loaded from storage.")

            now = self._clock()
            completed = 0
            for r, c, plot in self.board.cells():
                if plot.state != PlotState.WATERED:
                    continue
                if self._schedule_growth(r, c, plot, now):
                    logger.info("Plant at (%d, %d) was already ready on load.", r, c)
                    completed += 1
            if completed:
                self._save()

    def shutdown(self) -> None:
        """Cancel every pending growth timer. Stored timestamps are untouched."""
        with self._lock:
            if self.board is None:
                return
            for _, _, plot in self.board.cells():
                self._cancel_timer(plot)

    # ========================================
    # Public operations
    # ========================================

    def get_board(self) -> List[List[Dict[str, Any]]]:
        """Copy of every plot's state and watering time (no timer handles)."""
        with self._lock:
            return self.board.to_document()

    def plant(self, row: Any, col: Any) -> str:
        self._perform(row, col, Action.PLANT)
        return f"Seed planted at ({row}, {col})."

    def water(self, row: Any, col: Any) -> str:
        self._perform(row, col, Action.WATER)
        return (f"Plant at ({row}, {col}) watered. "
                f"It will be ready in {_format_seconds(self.growth_time_ms)} seconds.")

    def harvest(self, row: Any, col: Any) -> str:
        self._perform(row, col, Action.HARVEST)
        return f"Plant at ({row}, {col}) harvested."

    # ========================================
    # Internals
    # ========================================

    def _validate(self, row: Any, col: Any) -> None:
        for value in (row, col):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(INVALID_COORDINATES)
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise ValidationError(INVALID_COORDINATES)

    def _perform(self, row: int, col: int, action: Action) -> None:
        """
        Run one player action to completion, including the save.

        A rejected action changes nothing. If the save fails, the plot and its
        timer are put back as they were so memory never runs ahead of disk.
        """
        self._validate(row, col)
        with self._lock:
            plot = self.board.get(row, col)
            previous = (plot.state, plot.last_watered_time)
            now = self._clock()

            effect, reason = plot_state_machine.apply(plot, action, now)
            if reason:
                raise InvalidTransition(reason)
            self._apply_effect(row, col, plot, effect, now)

            try:
                self._save()
            except PersistenceError:
                logger.exception("Save failed after %s at (%d, %d); rolling back.",
                                 action.value, row, col)
                # No accepted action starts from watered, so there is no timer to restore
                plot.state, plot.last_watered_time = previous
                self._cancel_timer(plot)
                raise

    def _apply_effect(self, row: int, col: int, plot: Plot,
                      effect: Optional[TimerEffect], now: int) -> None:
        if effect == TimerEffect.ARM:
            self._schedule_growth(row, col, plot, now)
        elif effect == TimerEffect.CANCEL:
            self._cancel_timer(plot)

    def _schedule_growth(self, row: int, col: int, plot: Plot, now: int) -> bool:
        """
        Arm the growth timer for a watered plot from its watering timestamp.

        Returns True if growth had already finished, in which case the plot is
        completed immediately and no timer is armed. The caller saves.
        """
        remaining = 0
        if plot.last_watered_time is not None:
            elapsed = now - plot.last_watered_time
            # A clock that went backwards never extends growth past one full period
            remaining = min(self.growth_time_ms - elapsed, self.growth_time_ms)

        if remaining <= 0:
            effect, _ = plot_state_machine.complete_growth(plot)
            self._apply_effect(row, col, plot, effect, now)
            return True

        self._cancel_timer(plot)
        handle = None

        def fire():
            self._on_growth_timer(row, col, handle)

        handle = self._timer_factory(remaining / 1000.0, fire)
        plot.timer = handle
        return False

    def _on_growth_timer(self, row: int, col: int, handle: Any) -> None:
        with self._lock:
            plot = self.board.get(row, col)
            if plot.timer is not handle:
                # Cancelled after it had already started firing
                return
            effect, _ = plot_state_machine.apply(plot, Action.GROWTH_COMPLETE, self._clock())
            if effect is None:
                plot.timer = None
                return
            self._apply_effect(row, col, plot, effect, self._clock())
            try:
                self._save()
            except PersistenceError:
                # Readiness is re-derived from the stored timestamp on next start
                logger.exception("Could not save board after plant at (%d, %d) grew.", row, col)
                return
            logger.info("Plant at (%d, %d) is now ready.", row, col)

    def _cancel_timer(self, plot: Plot) -> None:
        if plot.timer is not None:
            plot.timer.cancel()
            plot.timer = None

    def _save(self) -> None:
        try:
            self.storage.set_item(STORAGE_KEY, self.board.to_document())
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(SAVE_FAILED) from e
        logger.debug("Game board saved to storage.")


def _format_seconds(milliseconds: int) -> str:
    seconds = milliseconds / 1000
    return str(int(seconds)) if seconds == int(seconds) else str(seconds)
