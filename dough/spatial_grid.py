from __future__ import annotations
from typing import Dict, Tuple, List, Optional
from collections import defaultdict
import math
import numpy as np
import logging

from .constants import DEFAULT_CELL_SIZE
from .molecules import Molecule, as_vec3

logger = logging.getLogger(__name__)


Cell = Tuple[int, int, int]

# 3x3x3 block around a cell, center included
_NEIGHBOR_OFFSETS: Tuple[Cell, ...] = tuple(
    (dx, dy, dz)
    for dx in (-1, 0, 1)
    for dy in (-1, 0, 1)
    for dz in (-1, 0, 1)
)


class SpatialGrid3D:
    """
    Uniform 3D grid that owns every live molecule.

    Molecules are stored once, by id; cells only hold ids. Each live molecule is
    registered in exactly one cell, the one containing its current position, so
    every position change must go through `update_position`.

    Parameters
    ----------
    cell_size : float
        Edge length of a cell. Fixed for the life of the grid.
    """

    def __init__(self, cell_size: float = DEFAULT_CELL_SIZE):
        if cell_size <= 0:
            raise ValueError("cell_size must be > 0")
        self.cell_size: float = float(cell_size)
        # (i,j,k) -> list of molecule ids
        self._cells: Dict[Cell, List[int]] = defaultdict(list)
        # id -> molecule (the arena)
        self._molecules: Dict[int, Molecule] = {}
        # id -> cell the molecule is registered under
        self._id_to_cell: Dict[int, Cell] = {}
        self._next_id: int = 1

    # -----------------------
    # Internal helpers
    # -----------------------
    def cell_coords(self, pos) -> Cell:
        """Return integer cell coords for a 3D position."""
        return (
            int(math.floor(float(pos[0]) / self.cell_size)),
            int(math.floor(float(pos[1]) / self.cell_size)),
            int(math.floor(float(pos[2]) / self.cell_size)),
        )

    def _register(self, mol_id: int, cell: Cell) -> None:
        self._cells[cell].append(mol_id)
        self._id_to_cell[mol_id] = cell

    def _unregister(self, mol_id: int) -> None:
        cell = self._id_to_cell.pop(mol_id, None)
        if cell is None:
            return
        ids = self._cells.get(cell)
        if ids is None:
            return
        try:
            ids.remove(mol_id)
        except ValueError:
            logger.warning(f"Molecule {mol_id} missing from its cell {cell}")
        if not ids:
            del self._cells[cell]

    # -----------------------
    # Core operations
    # -----------------------
    def insert(self, molecule: Molecule) -> int:
        """
        Take ownership of `molecule`, assign it the next id and register it.

        Ids start at 1 and are never reused, even after removal.
        """
        mol_id = self._next_id
        self._next_id += 1
        molecule.id = mol_id
        self._molecules[mol_id] = molecule
        self._register(mol_id, self.cell_coords(molecule.pos))
        return mol_id

    def remove(self, mol_id: int) -> None:
        """Remove a molecule (no-op if not present)."""
        if self._molecules.pop(mol_id, None) is None:
            return
        self._unregister(mol_id)

    def update_position(self, mol_id: int, new_pos) -> None:
        """
        Move a molecule and re-bucket it under the cell of `new_pos`.

        The old registration is dropped before the position changes, so the
        molecule is never visible under a stale cell.
        """
        mol = self._molecules.get(mol_id)
        if mol is None:
            return
        self._unregister(mol_id)
        mol.pos = as_vec3(new_pos, "new_pos")
        self._register(mol_id, self.cell_coords(mol.pos))

    # -----------------------
    # Querying
    # -----------------------
    def neighbors(self, pos) -> List[Molecule]:
        """
        Broad phase: every molecule registered in the 27 cells around `pos`.

        This over-approximates any radius up to `cell_size`; callers filter by
        exact distance themselves.
        """
        ci, cj, ck = self.cell_coords(pos)
        out: List[Molecule] = []
        for dx, dy, dz in _NEIGHBOR_OFFSETS:
            ids = self._cells.get((ci + dx, cj + dy, ck + dz))
            if not ids:
                continue
            for mol_id in ids:
                mol = self._molecules.get(mol_id)
                if mol is not None:
                    out.append(mol)
        return out

    def query_radius(self, center, radius: float) -> List[Molecule]:
        """
        Broad phase followed by narrow phase: molecules of the 27-cell block
        strictly closer than `radius` to `center`.
        """
        center = as_vec3(center, "center")
        r = float(radius)
        out = []
        for mol in self.neighbors(center):
            if float(np.linalg.norm(mol.pos - center)) < r:
                out.append(mol)
        return out

    def get(self, mol_id: int) -> Optional[Molecule]:
        return self._molecules.get(mol_id)

    def all(self) -> List[Molecule]:
        """Every live molecule, in no particular order."""
        return list(self._molecules.values())

    def cell_of(self, mol_id: int) -> Optional[Cell]:
        """Cell a molecule is currently registered under, or None."""
        return self._id_to_cell.get(mol_id)

    def cell_members(self, cell: Cell) -> List[int]:
        return list(self._cells.get(cell, ()))

    def is_consistent(self) -> bool:
        """
        True when every live molecule sits in exactly one cell, the one
        computed from its current position, and no cell holds unknown ids.
        """
        seen: Dict[int, int] = {}
        for cell, ids in self._cells.items():
            for mol_id in ids:
                mol = self._molecules.get(mol_id)
                if mol is None or self.cell_coords(mol.pos) != cell:
                    return False
                seen[mol_id] = seen.get(mol_id, 0) + 1
        return len(seen) == len(self._molecules) and all(n == 1 for n in seen.values())

    # -----------------------
    # Debug / representation
    # -----------------------
    def __contains__(self, mol_id: int) -> bool:
        return mol_id in self._molecules

    def __len__(self) -> int:
        """Total number of molecules tracked."""
        return len(self._molecules)

    def cell_count(self) -> int:
        """Number of non-empty cells."""
        return sum(1 for v in self._cells.values() if v)

    def __repr__(self) -> str:
        return f"<SpatialGrid3D cell_size={self.cell_size} molecules={len(self)} cells={self.cell_count()}>"
