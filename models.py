"""
models.py — Python dataclasses for the farm board.

A Board is a fixed ROWS x COLS row-major grid of Plots. Only `state` and
`last_watered_time` reach the persisted document; the growth timer handle
is process-local.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from constants import ROWS, COLS


class PlotState(str, Enum):
    """Lifecycle stage of a single plot."""
    EMPTY = 'empty'
    PLANTED = 'planted'
    WATERED = 'watered'
    READY = 'ready'


@dataclass
class Plot:
    """One grid cell."""
    state: PlotState = PlotState.EMPTY
    last_watered_time: Optional[int] = None  # epoch milliseconds
    timer: Optional[Any] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable projection (no timer handle)."""
        return {
            'state': self.state.value,
            'lastWateredTime': self.last_watered_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Plot':
        """Build a plot from its persisted form. Raises ValueError on bad data."""
        if not isinstance(data, dict):
            raise ValueError(f"Plot entry must be an object, got {type(data).__name__}")
        state = PlotState(data.get('state'))
        watered = data.get('lastWateredTime')
        if state != PlotState.WATERED:
            # Only a growing plant keeps its watering time
            watered = None
        if watered is not None:
            if isinstance(watered, bool) or not isinstance(watered, (int, float)):
                raise ValueError(f"Invalid lastWateredTime: {watered!r}")
            if not math.isfinite(watered):
                raise ValueError(f"Invalid lastWateredTime: {watered!r}")
            watered = int(watered)
        return cls(state=state, last_watered_time=watered)


@dataclass
class Board:
    """Fixed-size grid of plots, addressed by (row, col)."""
    plots: List[List[Plot]] = field(default_factory=list)

    @classmethod
    def fresh(cls, rows: int = ROWS, cols: int = COLS) -> 'Board':
        """All-empty board."""
        return cls(plots=[[Plot() for _ in range(cols)] for _ in range(rows)])

    @classmethod
    def from_document(cls, document: Any, rows: int = ROWS, cols: int = COLS) -> 'Board':
        """
        Rebuild a board from the persisted document.

        Raises:
            ValueError: if the document is not a rows x cols grid of valid plots.
        """
        if not isinstance(document, list) or len(document) != rows:
            raise ValueError(f"Expected {rows} rows in stored board")
        plots = []
        for r, row in enumerate(document):
            if not isinstance(row, list) or len(row) != cols:
                raise ValueError(f"Row {r}: expected {cols} plots")
            plots.append([Plot.from_dict(entry) for entry in row])
        return cls(plots=plots)

    def to_document(self) -> List[List[Dict[str, Any]]]:
        """Persisted / wire form of the board, timer handles stripped."""
        return [[plot.to_dict() for plot in row] for row in self.plots]

    def get(self, row: int, col: int) -> Plot:
        return self.plots[row][col]

    def cells(self):
        """Yield (row, col, plot) in row-major order."""
        for r, row in enumerate(self.plots):
            for c, plot in enumerate(row):
                yield r, c, plot

    @property
    def rows(self) -> int:
        return len(self.plots)

    @property
    def cols(self) -> int:
        return len(self.plots[0]) if self.plots else 0
