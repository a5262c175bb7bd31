"""
Metrics Module for the dough simulation.
Keeps bounded per-tick histories of energy, speed and population for plotting or inspection.
"""

from __future__ import annotations
from typing import Dict, Optional, Any
import logging
from collections import deque

from .constants import DEFAULT_METRICS_HISTORY
from .molecules import MoleculeKind

logger = logging.getLogger(__name__)


class DoughMetrics:
    """
    Tracks how a SimulationState evolves over time.

    Read-only with respect to the simulation: `update` only inspects the state.
    """

    def __init__(self, max_history: int = DEFAULT_METRICS_HISTORY):
        """
        Args:
            max_history: Maximum number of samples kept per series
        """
        if max_history <= 0:
            raise ValueError("max_history must be > 0")
        self.max_history = max_history

        self.times: deque[float] = deque(maxlen=max_history)
        self.kinetic: deque[float] = deque(maxlen=max_history)
        self.max_speed: deque[float] = deque(maxlen=max_history)
        self.bond_counts: deque[int] = deque(maxlen=max_history)
        self.populations: Dict[MoleculeKind, deque] = {
            kind: deque(maxlen=max_history) for kind in MoleculeKind
        }

    def update(self, state) -> None:
        """
        Record one sample from `state`.

        Args:
            state: SimulationState instance
        """
        self.times.append(float(state.time_elapsed))
        self.kinetic.append(state.physics.kinetic_energy())
        self.max_speed.append(state.physics.max_speed())
        self.bond_counts.append(len(state.bonds))
        for kind, count in state.population().items():
            self.populations[kind].append(count)

    def latest(self) -> Optional[Dict[str, Any]]:
        """Most recent sample as a dict, or None before the first update."""
        if not self.times:
            return None
        return {
            "time": self.times[-1],
            "kinetic": self.kinetic[-1],
            "max_speed": self.max_speed[-1],
            "bonds": self.bond_counts[-1],
            "population": {kind.value: series[-1] for kind, series in self.populations.items()},
        }

    def reset(self) -> None:
        self.times.clear()
        self.kinetic.clear()
        self.max_speed.clear()
        self.bond_counts.clear()
        for series in self.populations.values():
            series.clear()
        logger.debug("DoughMetrics reset")

    def __len__(self) -> int:
        return len(self.times)
