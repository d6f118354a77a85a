"""
Progress reporting for model runs.

A run passes through the phases NOT_STARTED -> CONSTRUCTING_MODEL ->
BURN_IN -> SIMULATING -> READY. Each phase start, periodic progress and
phase finish is delivered synchronously to a ``callback(event)`` on the
calling thread.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import sys


class ModelPhase(Enum):
    """Lifecycle phase of a model run."""
    NOT_STARTED = "not_started"
    CONSTRUCTING_MODEL = "constructing_model"
    BURN_IN = "burn_in"
    SIMULATING = "simulating"
    READY = "ready"


class EventType(Enum):
    STARTED = "started"
    PROGRESS = "progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class ProgressEvent:
    """
    Notification emitted during ``MTCModel.run``.

    Attributes:
        phase: Phase the event belongs to
        event_type: Start, progress or finish
        iteration: Sweeps completed in the phase (0 outside sampling phases)
        total: Sweeps planned for the phase (0 outside sampling phases)
    """
    phase: ModelPhase
    event_type: EventType
    iteration: int = 0
    total: int = 0

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0 if self.event_type is EventType.FINISHED else 0.0
        return self.iteration / self.total


ProgressCallback = Callable[[ProgressEvent], None]


class PrintReporter:
    """Console progress reporter, e.g. ``\\rBurn-in: 45.0% (9000/20000)``."""

    LABELS = {
        ModelPhase.CONSTRUCTING_MODEL: "Constructing model",
        ModelPhase.BURN_IN: "Burn-in",
        ModelPhase.SIMULATING: "Simulation",
    }

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stderr

    def __call__(self, event: ProgressEvent):
        label = self.LABELS.get(event.phase, event.phase.value)
        if event.total <= 0:
            if event.event_type is EventType.FINISHED:
                self.stream.write(f"{label}: done\n")
            self.stream.flush()
            return

        iteration = event.total if event.event_type is EventType.FINISHED else event.iteration
        pct = 100.0 * iteration / event.total
        self.stream.write(f"\r{label}: {pct:5.1f}% ({iteration}/{event.total})")
        if event.event_type is EventType.FINISHED:
            self.stream.write("\n")
        self.stream.flush()


def notify(callback: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if callback is not None:
        callback(event)
