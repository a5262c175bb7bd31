from __future__ import annotations
from typing import Dict, List, Tuple
import numpy as np
import logging

from .bonds import BondSet
from .constants import (
    RESTITUTION,
    DAMPING,
    MAX_FORCE_SPEED,
    MAX_BOND_SPEED,
    BOND_RELAXATION,
    EPSILON,
)
from .molecules import Molecule, as_vec3
from .spatial_grid import SpatialGrid3D

logger = logging.getLogger(__name__)


def clamp_speed(vel: np.ndarray, max_speed: float) -> np.ndarray:
    """Return `vel` rescaled so its magnitude does not exceed `max_speed`."""
    speed = float(np.linalg.norm(vel))
    if speed > max_speed:
        return vel * (max_speed / speed)
    return vel


def resolve_boundaries(pos: np.ndarray, vel: np.ndarray, radius: float,
                       bounds: np.ndarray, restitution: float = RESTITUTION) -> None:
    """
    Bounce a particle off the walls of the box [0, bounds], in place.

    Per axis, a particle closer to a wall than its radius is put back at
    `radius` (or `bound - radius`) and that velocity component is inverted
    and scaled by `restitution`.
    """
    for axis in range(3):
        if pos[axis] < radius:
            pos[axis] = radius
            vel[axis] = -vel[axis] * restitution
        if pos[axis] > bounds[axis] - radius:
            pos[axis] = bounds[axis] - radius
            vel[axis] = -vel[axis] * restitution


# -----------------------
# PhysicsEngine
# -----------------------

class PhysicsEngine:
    """
    Motion side of a tick: integration, wall bounces, drag and bond springs.

    Typical usage:
        engine = PhysicsEngine(grid, bonds, (1000.0, 720.0, 1000.0))
        engine.integrate(dt)
        engine.apply_bond_constraints()
    """

    def __init__(self,
                 grid: SpatialGrid3D,
                 bonds: BondSet,
                 bounds,
                 restitution: float = RESTITUTION,
                 damping: float = DAMPING):
        self.grid = grid
        self.bonds = bonds
        self.bounds: np.ndarray = as_vec3(bounds, "bounds")
        if np.any(self.bounds <= 0):
            raise ValueError(f"domain dimensions must be > 0, got {self.bounds.tolist()}")
        self.restitution = float(restitution)
        self.damping = float(damping)

    # -----------------------
    # Integration step
    # -----------------------
    def integrate(self, dt: float) -> None:
        """
        Advance every molecule by `dt`.

        Algorithm:
          - explicit Euler position update from the current velocity
          - per-axis wall bounce with restitution
          - uniform velocity damping
          - re-bucket every molecule in the grid, moved across a cell or not
        """
        moved: List[Tuple[int, np.ndarray]] = []
        for mol in self.grid.all():
            new_pos = mol.pos + mol.vel * dt
            resolve_boundaries(new_pos, mol.vel, mol.radius, self.bounds, self.restitution)
            mol.vel *= self.damping
            moved.append((mol.id, new_pos))

        for mol_id, pos in moved:
            self.grid.update_position(mol_id, pos)

    # -----------------------
    # Bond constraints
    # -----------------------
    def apply_bond_constraints(self) -> int:
        """
        Nudge bonded pairs toward their rest distance through velocity impulses.

        Corrections from all bonds are summed per molecule before any velocity
        changes, so the result does not depend on bond order. Bonds with a
        missing endpoint are skipped. Returns the number of molecules touched.
        """
        impulses: Dict[int, np.ndarray] = {}
        for bond in self.bonds:
            a = self.grid.get(bond.a_id)
            b = self.grid.get(bond.b_id)
            if a is None or b is None:
                continue
            diff = b.pos - a.pos
            dist = float(np.linalg.norm(diff))
            if dist <= EPSILON:
                continue
            correction = diff * ((bond.rest_distance - dist) / dist * BOND_RELAXATION)
            # stretched: correction points from b to a, pulling the pair together
            impulses[a.id] = impulses.get(a.id, 0.0) - correction
            impulses[b.id] = impulses.get(b.id, 0.0) + correction

        for mol_id, impulse in impulses.items():
            mol = self.grid.get(mol_id)
            mol.vel = clamp_speed(mol.vel + impulse / mol.mass, MAX_BOND_SPEED)
        return len(impulses)

    # -----------------------
    # External forces
    # -----------------------
    def apply_force(self, center, radius: float, force) -> List[Molecule]:
        """
        Push every molecule of the neighborhood of `center` that lies within
        `radius`: velocity += force / mass, then cap the speed.
        """
        force = as_vec3(force, "force")
        hit = self.grid.query_radius(center, radius)
        for mol in hit:
            mol.vel = clamp_speed(mol.vel + force / mol.mass, MAX_FORCE_SPEED)
        return hit

    # -----------------------
    # Diagnostics
    # -----------------------
    def kinetic_energy(self) -> float:
        """Total kinetic energy of all molecules."""
        return float(sum(m.kinetic_energy() for m in self.grid.all()))

    def max_speed(self) -> float:
        return max((m.speed() for m in self.grid.all()), default=0.0)

    def summary(self) -> str:
        """Return a short textual summary of engine state."""
        return (f"PhysicsEngine molecules={len(self.grid)} bonds={len(self.bonds)} "
                f"bounds={self.bounds.tolist()} restitution={self.restitution} damping={self.damping}")
