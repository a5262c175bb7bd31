from __future__ import annotations
from typing import Iterator, List, Set, Tuple
import logging

logger = logging.getLogger(__name__)

BondKey = Tuple[int, int]


def bond_key(a_id: int, b_id: int) -> BondKey:
    """Unordered pair key: (a, b) and (b, a) map to the same tuple."""
    a_id, b_id = int(a_id), int(b_id)
    return (a_id, b_id) if a_id <= b_id else (b_id, a_id)


# -----------------------
# Bond object
# -----------------------

class Bond:
    """
    Undirected constraint between two molecules, referenced by id.
    """
    def __init__(self, a_id: int, b_id: int, rest_distance: float):
        """
        Args:
            a_id (int): First molecule id.
            b_id (int): Second molecule id.
            rest_distance (float): Separation the constraint solver pulls toward.
        """
        if int(a_id) == int(b_id):
            raise ValueError("Cannot bond a molecule to itself")
        self.a_id: int = int(a_id)
        self.b_id: int = int(b_id)
        self.rest_distance: float = float(rest_distance)

    @property
    def key(self) -> BondKey:
        return bond_key(self.a_id, self.b_id)

    def __repr__(self):
        return f"<Bond {self.a_id}-{self.b_id} rest={self.rest_distance:.3f}>"


class BondSet:
    """
    Unordered collection of bonds that never holds two bonds for the same pair.

    Bonds whose endpoints were removed from the grid are kept; readers skip them.
    """
    def __init__(self):
        self._bonds: List[Bond] = []
        self._keys: Set[BondKey] = set()

    def add(self, bond: Bond) -> bool:
        """Append `bond` unless its pair is already bonded. Returns True if added."""
        key = bond.key
        if key in self._keys:
            return False
        self._keys.add(key)
        self._bonds.append(bond)
        return True

    def contains(self, a_id: int, b_id: int) -> bool:
        return bond_key(a_id, b_id) in self._keys

    def clear(self) -> None:
        self._bonds.clear()
        self._keys.clear()

    def __iter__(self) -> Iterator[Bond]:
        return iter(self._bonds)

    def __len__(self) -> int:
        return len(self._bonds)

    def __repr__(self) -> str:
        return f"<BondSet bonds={len(self)}>"
