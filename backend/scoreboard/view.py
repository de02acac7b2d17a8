"""View selection and auto-rotation."""

from __future__ import annotations

import logging
from typing import Iterable

from scoreboard.exceptions import ConfigError
from scoreboard.models import DatasetId, Mode, ViewState

logger = logging.getLogger(__name__)

DEFAULT_ROTATION: tuple[tuple[Mode, DatasetId], ...] = (
    (Mode.TODAY, DatasetId.ADVISOR),
    (Mode.TODAY, DatasetId.TECHNICIAN),
    (Mode.TOTAL, DatasetId.ADVISOR),
    (Mode.TOTAL, DatasetId.TECHNICIAN),
)


def parse_mode(value: Mode | str) -> Mode:
    try:
        return Mode(value)
    except ValueError:
        raise ConfigError(f"Unknown mode: {value!r}") from None


def parse_dataset(value: DatasetId | str) -> DatasetId:
    try:
        return DatasetId(value)
    except ValueError:
        raise ConfigError(f"Unknown dataset: {value!r}") from None


def select_mode(state: ViewState, mode: Mode | str) -> ViewState:
    """Set the mode in place. Invalid values leave the state untouched."""
    state.mode = parse_mode(mode)
    return state


def select_dataset(state: ViewState, dataset: DatasetId | str) -> ViewState:
    """Set the dataset in place. Invalid values leave the state untouched."""
    state.dataset = parse_dataset(dataset)
    return state


class Rotation:
    """Fixed cyclic sequence of (mode, dataset) pairs."""

    def __init__(
        self,
        sequence: Iterable[tuple[Mode | str, DatasetId | str]] = DEFAULT_ROTATION,
    ):
        self.sequence = [
            (parse_mode(mode), parse_dataset(dataset)) for mode, dataset in sequence
        ]
        if not self.sequence:
            raise ConfigError("Rotation sequence must not be empty")
        self._position = -1

    def advance(self, state: ViewState) -> ViewState:
        """Move to the next pair after the current one.

        If the state was changed by hand to a pair in the sequence, rotation
        continues from there.
        """
        current = (state.mode, state.dataset)
        if current in self.sequence and self.sequence[self._position % len(self.sequence)] != current:
            self._position = self.sequence.index(current)

        self._position = (self._position + 1) % len(self.sequence)
        state.mode, state.dataset = self.sequence[self._position]
        logger.debug(f"Rotated view to {state.dataset.value}/{state.mode.value}")
        return state
