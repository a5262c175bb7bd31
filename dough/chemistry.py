from __future__ import annotations
from typing import List, Optional, Set
import numpy as np
import logging

from .bonds import Bond, BondSet
from .constants import (
    DISULFIDE_DISTANCE,
    DISULFIDE_BASE_PROB,
    DISULFIDE_REFERENCE_TEMP,
    DISULFIDE_SALT_FACTOR,
    DISULFIDE_THROTTLE,
    MIN_RATE_FACTOR,
    METABOLISM_DISTANCE,
    METABOLISM_BASE_RATE,
    METABOLISM_REFERENCE_TEMP,
    ETHANOL_CHANCE,
    CO2_JITTER,
    CO2_SPEED,
    ETHANOL_JITTER,
    ETHANOL_SPEED,
    CO2_BUOYANCY,
    CO2_WOBBLE,
)
from .molecules import Molecule, MoleculeKind
from .spatial_grid import SpatialGrid3D

logger = logging.getLogger(__name__)


def disulfide_probability(temperature: float, salt_nearby: bool) -> float:
    """Per-pair bridging probability before the per-tick throttle."""
    prob = DISULFIDE_BASE_PROB * max(temperature / DISULFIDE_REFERENCE_TEMP, MIN_RATE_FACTOR)
    if salt_nearby:
        prob *= DISULFIDE_SALT_FACTOR
    return prob


def metabolism_probability(temperature: float, dt: float) -> float:
    """Chance that one yeast/sugar encounter releases CO2 during `dt`."""
    return METABOLISM_BASE_RATE * max(temperature / METABOLISM_REFERENCE_TEMP, MIN_RATE_FACTOR) * dt


def _is_reactive_glutenin(mol: Molecule) -> bool:
    return mol.kind is MoleculeKind.GLUTENIN and mol.reactive


# -----------------------
# Reaction Engine
# -----------------------
class ReactionEngine:
    """
    Responsible for:
      - disulfide bridging between reactive glutenins (new bonds)
      - yeast metabolism: sugar consumption, CO2 and ethanol release
      - CO2 buoyancy

    Every reaction runs as plan then commit: the grid is only read while
    candidates are collected, and all flag flips, insertions and removals are
    applied once scanning is over.
    """
    def __init__(self,
                 grid: SpatialGrid3D,
                 bonds: BondSet,
                 bounds: Optional[np.ndarray] = None,
                 rng: Optional[np.random.Generator] = None):
        self.grid = grid
        self.bonds = bonds
        self.bounds = None if bounds is None else np.asarray(bounds, dtype=float)
        self.rng = rng if rng is not None else np.random.default_rng()

    def step(self, dt: float, temperature: float, yeast_active: bool) -> None:
        self.form_disulfide_bridges(temperature)
        if yeast_active:
            self.metabolize(dt, temperature)

    # -----------------------
    # Gluten network
    # -----------------------
    def form_disulfide_bridges(self, temperature: float) -> List[Bond]:
        """
        Bond close pairs of reactive glutenins and clear their free thiol site.

        Each reactive glutenin scans its neighborhood and draws once per
        reactive partner closer than DISULFIDE_DISTANCE. Flags are only
        flipped after the full scan, so a glutenin picked in one pairing is
        still seen as reactive by the others in the same tick.
        Returns the bonds that were accepted.
        """
        candidates: List[Bond] = []
        for mol in self.grid.all():
            if not _is_reactive_glutenin(mol):
                continue
            neighbors = self.grid.neighbors(mol.pos)
            salt_nearby = any(n.kind is MoleculeKind.SALT for n in neighbors)
            threshold = disulfide_probability(temperature, salt_nearby) * DISULFIDE_THROTTLE
            for other in neighbors:
                if other.id == mol.id or not _is_reactive_glutenin(other):
                    continue
                dist = float(np.linalg.norm(mol.pos - other.pos))
                if dist >= DISULFIDE_DISTANCE:
                    continue
                if self.rng.random() < threshold:
                    candidates.append(Bond(mol.id, other.id, dist))

        accepted: List[Bond] = []
        for bond in candidates:
            if self.bonds.add(bond):
                accepted.append(bond)

        for bond in accepted:
            for mol_id in (bond.a_id, bond.b_id):
                mol = self.grid.get(mol_id)
                if mol is not None:
                    mol.reactive = False

        if accepted:
            logger.debug(f"Formed {len(accepted)} disulfide bridges (total {len(self.bonds)})")
        return accepted

    # -----------------------
    # Fermentation
    # -----------------------
    def metabolize(self, dt: float, temperature: float) -> None:
        """
        Let every yeast eat the sugar within METABOLISM_DISTANCE.

        Each encounter may release one CO2 and, 30% of those times, one
        ethanol next to the yeast. Consumed sugar is removed and products are
        inserted after the scan. Then every CO2 in the dough rises a little.
        """
        consumed: Set[int] = set()
        produced: List[Molecule] = []
        chance = metabolism_probability(temperature, dt)

        for mol in self.grid.all():
            if mol.kind is not MoleculeKind.YEAST:
                continue
            for sugar in self.grid.neighbors(mol.pos):
                if sugar.kind is not MoleculeKind.SUGAR:
                    continue
                if float(np.linalg.norm(mol.pos - sugar.pos)) >= METABOLISM_DISTANCE:
                    continue
                consumed.add(sugar.id)
                if self.rng.random() < chance:
                    produced.append(self._spawn_near(mol, MoleculeKind.CO2, CO2_JITTER, CO2_SPEED))
                    if self.rng.random() < ETHANOL_CHANCE:
                        produced.append(self._spawn_near(mol, MoleculeKind.ETHANOL, ETHANOL_JITTER, ETHANOL_SPEED))

        for product in produced:
            self.grid.insert(product)
        for sugar_id in consumed:
            self.grid.remove(sugar_id)

        if consumed or produced:
            logger.debug(f"Yeast consumed {len(consumed)} sugar, produced {len(produced)} molecules")

        self.apply_buoyancy()

    def apply_buoyancy(self) -> None:
        """Every CO2 bubble drifts up (negative y) with a little sideways wobble."""
        for mol in self.grid.all():
            if mol.kind is MoleculeKind.CO2:
                mol.vel[1] -= CO2_BUOYANCY
                mol.vel[0] += self.rng.uniform(-CO2_WOBBLE, CO2_WOBBLE)

    def _spawn_near(self, source: Molecule, kind: MoleculeKind, jitter: float, speed: float) -> Molecule:
        pos = source.pos + self.rng.uniform(-jitter, jitter, size=3)
        vel = self.rng.uniform(-speed, speed, size=3)
        product = Molecule(kind, pos, vel)
        if self.bounds is not None:
            # keep new particles inside the box they are born in
            r = product.radius
            product.pos = np.clip(product.pos, r, np.maximum(self.bounds - r, r))
        return product
