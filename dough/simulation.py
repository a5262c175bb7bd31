from __future__ import annotations
from typing import Dict, List, Optional, Tuple, Any
import logging

import numpy as np

from .bonds import BondSet
from .chemistry import ReactionEngine
from .constants import (
    DEFAULT_CELL_SIZE,
    DEFAULT_WIDTH,
    DEFAULT_HEIGHT,
    DEFAULT_DEPTH,
    DEFAULT_TEMPERATURE,
    DEFAULT_HYDRATION,
    DEFAULT_SALT,
    DEFAULT_YEAST,
    DEFAULT_AUTOLYSE_TIME,
    FLOUR_PROTEINS,
    GLIADIN_FRACTION,
    WATER_MOLECULES,
    PROTEIN_SPEED,
    WATER_SPEED,
    SALT_SPEED,
    YEAST_SPEED,
    SUGAR_SPEED,
    SALT_DENSITY,
    YEAST_DENSITY,
    SUGAR_SPAWN_BOX,
    MAX_DT,
    FOLD_RADIUS,
    FOLD_FORCE,
)
from .molecules import Molecule, MoleculeKind, as_vec3
from .physics import PhysicsEngine
from .spatial_grid import SpatialGrid3D

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def clamp_dt(dt: float, max_dt: float = MAX_DT) -> float:
    """Cap a frame delta so a long stall does not destabilize the integrator."""
    return min(max(float(dt), 0.0), float(max_dt))


# -----------------------
# Simulation
# -----------------------
class SimulationState:
    """
    Core dough simulation: owns the molecules (through the grid), the bonds,
    the recipe and the clock.

    A tick runs, in order: integration and wall bounces, grid re-bucketing,
    disulfide bridging, yeast metabolism (once yeast is in), bond constraints.
    Nothing else mutates the state; front ends read `snapshot()` or the
    query helpers between ticks.
    """

    def __init__(self,
                 width: float,
                 height: float,
                 depth: float,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        width, height, depth: extent of the box [0, width] x [0, height] x [0, depth].
        rng: generator used for every random draw; built from `seed` when omitted.
        """
        self.width = float(width)
        self.height = float(height)
        self.depth = float(depth)
        self.rng = rng if rng is not None else np.random.default_rng(seed=seed)

        self.temperature = DEFAULT_TEMPERATURE
        self.time_elapsed = 0.0
        self.recipe_hydration = DEFAULT_HYDRATION
        self.recipe_salt = DEFAULT_SALT
        self.recipe_yeast = DEFAULT_YEAST
        self.autolyse_time = DEFAULT_AUTOLYSE_TIME
        # a bare state counts as salted; initialize_classic_recipe clears it
        self.salt_added = True
        self.yeast_added = False

        self.grid = SpatialGrid3D(DEFAULT_CELL_SIZE)
        self.bonds = BondSet()
        self._build_engines()

        logger.info(f"SimulationState created: domain={self.width}x{self.height}x{self.depth}")

    @classmethod
    def with_classic_recipe(cls,
                            width: float = DEFAULT_WIDTH,
                            height: float = DEFAULT_HEIGHT,
                            depth: float = DEFAULT_DEPTH,
                            seed: Optional[int] = None,
                            rng: Optional[np.random.Generator] = None) -> "SimulationState":
        """Fresh state populated with the classic recipe (the "reset" command)."""
        state = cls(width, height, depth, seed=seed, rng=rng)
        state.initialize_classic_recipe()
        return state

    # -----------------------
    # Construction helpers
    # -----------------------
    @property
    def bounds(self) -> np.ndarray:
        return np.array([self.width, self.height, self.depth], dtype=float)

    def _build_engines(self) -> None:
        self.physics = PhysicsEngine(self.grid, self.bonds, self.bounds)
        self.reaction_engine = ReactionEngine(self.grid, self.bonds, bounds=self.bounds, rng=self.rng)

    def _random_position(self) -> np.ndarray:
        return self.rng.uniform(0.0, 1.0, size=3) * self.bounds

    def _random_velocity(self, speed: float) -> np.ndarray:
        return self.rng.uniform(-speed, speed, size=3)

    def _spawn(self, kind: MoleculeKind, pos, speed: float) -> int:
        return self.grid.insert(Molecule(kind, pos, self._random_velocity(speed)))

    def initialize_classic_recipe(self) -> None:
        """
        Reset recipe, grid, bonds, clock and ingredient flags, then scatter the
        flour proteins (40% gliadin, 60% glutenin) and the water.
        """
        self.recipe_hydration = DEFAULT_HYDRATION
        self.recipe_salt = DEFAULT_SALT
        self.recipe_yeast = DEFAULT_YEAST
        self.autolyse_time = DEFAULT_AUTOLYSE_TIME
        self.temperature = DEFAULT_TEMPERATURE

        self.grid = SpatialGrid3D(DEFAULT_CELL_SIZE)
        self.bonds = BondSet()
        self._build_engines()
        self.time_elapsed = 0.0
        self.salt_added = False
        self.yeast_added = False

        for _ in range(FLOUR_PROTEINS):
            pos = self._random_position()
            if self.rng.random() < GLIADIN_FRACTION:
                self._spawn(MoleculeKind.GLIADIN, pos, PROTEIN_SPEED)
            else:
                self._spawn(MoleculeKind.GLUTENIN, pos, PROTEIN_SPEED)

        for _ in range(WATER_MOLECULES):
            self._spawn(MoleculeKind.WATER, self._random_position(), WATER_SPEED)

        logger.info(f"Classic recipe initialized: molecules={len(self.grid)}")

    # -----------------------
    # Commands
    # -----------------------
    def _volume(self) -> float:
        return self.width * self.height * self.depth

    def add_salt(self) -> int:
        """Scatter salt through the dough once. Returns the number of salt molecules added."""
        if self.salt_added:
            return 0
        amount = int(self._volume() * SALT_DENSITY * self.recipe_salt)
        for _ in range(amount):
            self._spawn(MoleculeKind.SALT, self._random_position(), SALT_SPEED)
        self.salt_added = True
        logger.info(f"Salt added: {amount} molecules")
        return amount

    def add_yeast(self) -> int:
        """
        Scatter yeast once, each cell paired with one sugar placed in a box of
        +/- SUGAR_SPAWN_BOX around it (clipped to the domain). Returns the
        number of yeast molecules added.
        """
        if self.yeast_added:
            return 0
        amount = int(self._volume() * YEAST_DENSITY * self.recipe_yeast)
        bounds = self.bounds
        for _ in range(amount):
            pos = self._random_position()
            self._spawn(MoleculeKind.YEAST, pos, YEAST_SPEED)
            low = np.maximum(pos - SUGAR_SPAWN_BOX, 0.0)
            high = np.minimum(pos + SUGAR_SPAWN_BOX, bounds)
            self._spawn(MoleculeKind.SUGAR, self.rng.uniform(low, high), SUGAR_SPEED)
        self.yeast_added = True
        logger.info(f"Yeast added: {amount} yeast cells with sugar")
        return amount

    def apply_force_to_region(self, center, radius: float, force) -> int:
        """
        Kick every molecule found in the neighborhood of `center` and closer
        than `radius`. Returns the number of molecules affected.
        """
        hit = self.physics.apply_force(as_vec3(center, "center"), radius, force)
        return len(hit)

    def apply_fold(self) -> int:
        """Coil fold: a downward pull around the center of the domain."""
        affected = self.apply_force_to_region(self.bounds / 2.0, FOLD_RADIUS, FOLD_FORCE)
        logger.info(f"Fold applied to {affected} molecules")
        return affected

    def set_temperature(self, temperature: float) -> None:
        """Set dough temperature (Celsius); scales every reaction rate."""
        self.temperature = float(temperature)
        logger.info(f"Temperature set to {self.temperature}")

    # -----------------------
    # Core stepping
    # -----------------------
    def tick(self, dt: float) -> None:
        """
        Advance the simulation by `dt`:
         - integrate motion, bounce off walls, damp, re-bucket
         - form disulfide bridges
         - run yeast metabolism if yeast has been added
         - relax bonds toward their rest distance
        """
        dt = float(dt)
        self.time_elapsed += dt
        self.physics.integrate(dt)
        self.reaction_engine.step(dt, self.temperature, self.yeast_added)
        self.physics.apply_bond_constraints()

    def run(self, n_steps: int, dt: float) -> None:
        """Run n_steps synchronously with a fixed dt."""
        for _ in range(n_steps):
            self.tick(dt)

    # -----------------------
    # Read surface
    # -----------------------
    def molecules(self) -> List[Molecule]:
        return self.grid.all()

    def molecules_by_kind(self, kind: MoleculeKind) -> List[Molecule]:
        kind = MoleculeKind(kind)
        return [m for m in self.grid.all() if m.kind is kind]

    def population(self) -> Dict[MoleculeKind, int]:
        """Molecule count per kind, zero counts included."""
        counts = {kind: 0 for kind in MoleculeKind}
        for m in self.grid.all():
            counts[m.kind] += 1
        return counts

    def bond_segments(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Endpoint positions of every bond whose two molecules still exist."""
        segments = []
        for bond in self.bonds:
            a = self.grid.get(bond.a_id)
            b = self.grid.get(bond.b_id)
            if a is not None and b is not None:
                segments.append((a.pos.copy(), b.pos.copy()))
        return segments

    def phase(self) -> str:
        """Stage of the bake, derived from the ingredient flags."""
        if not self.salt_added and not self.yeast_added:
            return "autolyse"
        if self.salt_added and not self.yeast_added:
            return "salted"
        if self.salt_added and self.yeast_added:
            return "fermentation"
        return "preparation"

    def snapshot(self) -> Dict[str, Any]:
        """
        JSON-serializable copy of everything a front end draws. Bonds carry
        their resolved endpoint positions, or None for a missing endpoint.
        """
        bonds = []
        for bond in self.bonds:
            a = self.grid.get(bond.a_id)
            b = self.grid.get(bond.b_id)
            bonds.append({
                "a_id": bond.a_id,
                "b_id": bond.b_id,
                "rest_distance": bond.rest_distance,
                "a_pos": None if a is None else [float(x) for x in a.pos],
                "b_pos": None if b is None else [float(x) for x in b.pos],
            })
        return {
            "time_elapsed": float(self.time_elapsed),
            "temperature": float(self.temperature),
            "phase": self.phase(),
            "salt_added": bool(self.salt_added),
            "yeast_added": bool(self.yeast_added),
            "recipe": {
                "hydration": self.recipe_hydration,
                "salt": self.recipe_salt,
                "yeast": self.recipe_yeast,
                "autolyse_time": self.autolyse_time,
            },
            "molecules": [m.to_dict() for m in self.grid.all()],
            "bonds": bonds,
        }

    def summary(self) -> str:
        """Return a short textual summary of the state."""
        return (f"SimulationState t={self.time_elapsed:.3f} molecules={len(self.grid)} "
                f"bonds={len(self.bonds)} T={self.temperature} phase={self.phase()}")
