from __future__ import annotations
from typing import Dict, Optional, Any
from enum import Enum
import numpy as np
import logging

logger = logging.getLogger(__name__)


class MoleculeKind(Enum):
    """Closed set of particle categories found in a dough."""
    GLIADIN = "gliadin"
    GLUTENIN = "glutenin"
    WATER = "water"
    YEAST = "yeast"
    CO2 = "co2"
    ETHANOL = "ethanol"
    SUGAR = "sugar"
    SALT = "salt"
    ASH = "ash"


# visual/physical radius per kind (simulation units)
RADII: Dict[MoleculeKind, float] = {
    MoleculeKind.GLIADIN: 3.0,
    MoleculeKind.GLUTENIN: 4.0,
    MoleculeKind.WATER: 1.5,
    MoleculeKind.YEAST: 5.0,
    MoleculeKind.CO2: 8.0,
    MoleculeKind.ETHANOL: 2.0,
    MoleculeKind.SUGAR: 2.5,
    MoleculeKind.SALT: 1.8,
    MoleculeKind.ASH: 2.0,
}

MASSES: Dict[MoleculeKind, float] = {
    MoleculeKind.GLIADIN: 10.0,
    MoleculeKind.GLUTENIN: 12.0,
    MoleculeKind.WATER: 1.0,
    MoleculeKind.YEAST: 15.0,
    MoleculeKind.CO2: 2.0,
    MoleculeKind.ETHANOL: 3.0,
    MoleculeKind.SUGAR: 4.0,
    MoleculeKind.SALT: 2.0,
    MoleculeKind.ASH: 2.0,
}


def as_vec3(value, name: str = "vector") -> np.ndarray:
    """Convert an array-like into a float array of shape (3,)."""
    arr = np.array(value if value is not None else np.zeros(3), dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have exactly 3 components, got {arr.size}")
    return arr


class Molecule:
    """
    A single point particle of the dough.
    """

    def __init__(
        self,
        kind: MoleculeKind,
        pos: Optional[np.ndarray] = None,
        vel: Optional[np.ndarray] = None,
        reactive: Optional[bool] = None
    ):
        """
        Initialize a Molecule.

        Args:
            kind (MoleculeKind): Category of the particle.
            pos (np.ndarray, optional): 3D position. Defaults to origin.
            vel (np.ndarray, optional): 3D velocity. Defaults to zero.
            reactive (bool, optional): Free thiol site. Only glutenin carries one;
                defaults to True for glutenin and is forced False for other kinds.
        """
        self.kind: MoleculeKind = MoleculeKind(kind)
        # assigned by SpatialGrid3D.insert
        self.id: int = 0
        self.pos: np.ndarray = as_vec3(pos, "pos")
        self.vel: np.ndarray = as_vec3(vel, "vel")
        if self.kind is MoleculeKind.GLUTENIN:
            self.reactive: bool = True if reactive is None else bool(reactive)
        else:
            self.reactive = False

    @property
    def radius(self) -> float:
        return RADII[self.kind]

    @property
    def mass(self) -> float:
        return MASSES[self.kind]

    def speed(self) -> float:
        return float(np.linalg.norm(self.vel))

    def kinetic_energy(self) -> float:
        """
        Returns:
            float: 0.5 * mass * |velocity|^2
        """
        return 0.5 * self.mass * float(np.dot(self.vel, self.vel))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly copy of the molecule, used by snapshots."""
        return {
            "id": int(self.id),
            "kind": self.kind.value,
            "pos": [float(x) for x in self.pos],
            "vel": [float(x) for x in self.vel],
            "radius": self.radius,
            "mass": self.mass,
            "reactive": bool(self.reactive),
        }

    def __repr__(self) -> str:
        return (
            f"<Molecule {self.id} kind={self.kind.value} pos={self.pos} "
            f"vel={self.vel} reactive={self.reactive}>"
        )
