"""
plot_state_machine.py — Lifecycle rules for a single plot.

    empty → planted → watered → ready → empty

Every transition is total: it either mutates the plot and returns the timer
effect the caller must apply, or leaves the plot untouched and returns the
rejection reason. Nothing here touches timers, clocks or storage.
"""

from enum import Enum
from typing import Optional, Tuple

from models import Plot, PlotState


class Action(str, Enum):
    PLANT = 'plant'
    WATER = 'water'
    HARVEST = 'harvest'
    GROWTH_COMPLETE = 'growth_complete'  # internal, delivered by a fired timer


class TimerEffect(Enum):
    """What the owner of the plot's timer must do after an accepted transition."""
    ARM = 'arm'
    CANCEL = 'cancel'


# Rejection reasons, shown verbatim to players
NOT_EMPTY = "Plot is not empty."
ALREADY_WATERED = "Plant is already watered or ready."
NOTHING_TO_WATER = "Nothing to water here. Plant a seed first!"
NOTHING_TO_HARVEST = "Nothing to harvest here. Plot is empty!"
NOT_READY = "Plant is not ready to harvest yet."

Result = Tuple[Optional[TimerEffect], Optional[str]]


def plant(plot: Plot) -> Result:
    if plot.state != PlotState.EMPTY:
        return None, NOT_EMPTY
    plot.state = PlotState.PLANTED
    plot.last_watered_time = None
    return TimerEffect.CANCEL, None


def water(plot: Plot, now: int) -> Result:
    if plot.state == PlotState.EMPTY:
        return None, NOTHING_TO_WATER
    if plot.state != PlotState.PLANTED:
        return None, ALREADY_WATERED
    plot.state = PlotState.WATERED
    plot.last_watered_time = now
    return TimerEffect.ARM, None


def harvest(plot: Plot) -> Result:
    if plot.state == PlotState.EMPTY:
        return None, NOTHING_TO_HARVEST
    if plot.state != PlotState.READY:
        return None, NOT_READY
    plot.state = PlotState.EMPTY
    plot.last_watered_time = None
    return TimerEffect.CANCEL, None


def complete_growth(plot: Plot) -> Result:
    """
    Apply a growth-complete event.

    The timer that delivers this event may have been armed for a plot that has
    since been harvested and replanted, so the current state is re-checked.
    Any state other than watered makes this a silent no-op: (None, None).
    """
    if plot.state != PlotState.WATERED:
        return None, None
    plot.state = PlotState.READY
    plot.last_watered_time = None
    return TimerEffect.CANCEL, None


def apply(plot: Plot, action: Action, now: int) -> Result:
    """Dispatch `action` against `plot`. Returns (effect, rejection_reason)."""
    if action == Action.PLANT:
        return plant(plot)
    if action == Action.WATER:
        return water(plot, now)
    if action == Action.HARVEST:
        return harvest(plot)
    if action == Action.GROWTH_COMPLETE:
        return complete_growth(plot)
    raise ValueError(f"Unknown plot action: {action!r}")
