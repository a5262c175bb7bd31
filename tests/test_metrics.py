import pytest

from dough.metrics import DoughMetrics
from dough.molecules import MoleculeKind
from dough.simulation import SimulationState


def test_metrics_track_state():
    sim = SimulationState.with_classic_recipe(200.0, 200.0, 200.0, seed=42)
    metrics = DoughMetrics(max_history=5)
    assert metrics.latest() is None
    for _ in range(8):
        sim.tick(0.016)
        metrics.update(sim)
    assert len(metrics) == 5
    latest = metrics.latest()
    assert latest["time"] == pytest.approx(sim.time_elapsed)
    assert latest["population"]["water"] == 200
    assert latest["bonds"] == len(sim.bonds)
    assert latest["kinetic"] == pytest.approx(sim.physics.kinetic_energy())
    assert latest["max_speed"] <= 5.0
    assert list(metrics.populations[MoleculeKind.YEAST]) == [0] * 5


def test_metrics_reset():
    sim = SimulationState.with_classic_recipe(200.0, 200.0, 200.0, seed=1)
    metrics = DoughMetrics()
    metrics.update(sim)
    metrics.reset()
    assert len(metrics) == 0
    assert metrics.latest() is None


def test_metrics_history_must_be_positive():
    with pytest.raises(ValueError):
        DoughMetrics(max_history=0)
