import numpy as np
import pytest

from dough.molecules import Molecule, MoleculeKind
from dough.spatial_grid import SpatialGrid3D


def mk(kind=MoleculeKind.WATER, pos=(0.0, 0.0, 0.0), vel=(0.0, 0.0, 0.0)):
    return Molecule(kind, pos=np.array(pos), vel=np.array(vel))


def test_ids_start_at_one_and_are_never_reused():
    grid = SpatialGrid3D(15.0)
    ids = [grid.insert(mk(pos=(i, i, i))) for i in range(5)]
    assert ids == [1, 2, 3, 4, 5]
    grid.remove(5)
    grid.remove(2)
    more = [grid.insert(mk()) for _ in range(3)]
    assert more == [6, 7, 8]
    all_ids = ids + more
    assert all(b > a for a, b in zip(all_ids, all_ids[1:]))
    assert len(grid) == 6


def test_insert_assigns_id_on_the_molecule():
    grid = SpatialGrid3D()
    mol = mk(pos=(20.0, 1.0, 1.0))
    mol_id = grid.insert(mol)
    assert mol.id == mol_id
    assert grid.get(mol_id) is mol
    assert grid.cell_of(mol_id) == (1, 0, 0)


def test_missing_ids_are_not_errors():
    grid = SpatialGrid3D()
    assert grid.get(42) is None
    grid.remove(42)
    grid.update_position(42, (1.0, 2.0, 3.0))
    assert len(grid) == 0
    assert 42 not in grid


def test_update_position_moves_registration():
    grid = SpatialGrid3D(15.0)
    mol_id = grid.insert(mk(pos=(1.0, 1.0, 1.0)))
    assert grid.cell_members((0, 0, 0)) == [mol_id]
    grid.update_position(mol_id, (46.0, 1.0, 1.0))
    assert grid.cell_members((0, 0, 0)) == []
    assert grid.cell_members((3, 0, 0)) == [mol_id]
    assert grid.cell_of(mol_id) == (3, 0, 0)
    np.testing.assert_allclose(grid.get(mol_id).pos, [46.0, 1.0, 1.0])
    assert grid.is_consistent()


def test_update_position_within_same_cell_keeps_single_registration():
    grid = SpatialGrid3D(15.0)
    mol_id = grid.insert(mk(pos=(1.0, 1.0, 1.0)))
    grid.update_position(mol_id, (2.0, 2.0, 2.0))
    assert grid.cell_members((0, 0, 0)) == [mol_id]
    assert grid.is_consistent()


def test_neighbors_cover_the_3x3x3_block():
    grid = SpatialGrid3D(15.0)
    inside = grid.insert(mk(pos=(16.0, 16.0, 16.0)))      # cell (1,1,1)
    corner = grid.insert(mk(pos=(-1.0, -1.0, -1.0)))      # cell (-1,-1,-1)
    outside = grid.insert(mk(pos=(46.0, 16.0, 16.0)))     # cell (3,1,1)
    found = {m.id for m in grid.neighbors((1.0, 1.0, 1.0))}
    assert inside in found
    assert corner in found
    assert outside not in found


def test_neighbors_include_self_after_random_moves():
    rng = np.random.default_rng(3)
    grid = SpatialGrid3D(15.0)
    ids = [grid.insert(mk(pos=rng.uniform(0, 200, size=3))) for _ in range(100)]
    for _ in range(5):
        for mol_id in ids:
            grid.update_position(mol_id, rng.uniform(0, 200, size=3))
    for mol in grid.all():
        assert any(n is mol for n in grid.neighbors(mol.pos))
    assert grid.is_consistent()


def test_query_radius_filters_by_exact_distance():
    grid = SpatialGrid3D(15.0)
    near = grid.insert(mk(pos=(10.0, 10.0, 10.0)))
    far = grid.insert(mk(pos=(20.0, 10.0, 10.0)))
    hits = {m.id for m in grid.query_radius((12.0, 10.0, 10.0), 5.0)}
    assert hits == {near}
    assert far in grid


def test_remove_unregisters_from_cell():
    grid = SpatialGrid3D(15.0)
    a = grid.insert(mk(pos=(1.0, 1.0, 1.0)))
    b = grid.insert(mk(pos=(2.0, 1.0, 1.0)))
    grid.remove(a)
    assert grid.cell_members((0, 0, 0)) == [b]
    assert [m.id for m in grid.all()] == [b]
    assert grid.is_consistent()


def test_invalid_cell_size():
    with pytest.raises(ValueError):
        SpatialGrid3D(0.0)


def test_molecule_requires_three_components():
    with pytest.raises(ValueError):
        Molecule(MoleculeKind.WATER, pos=np.array([1.0, 2.0]))


def test_only_glutenin_carries_reactive_site():
    assert Molecule(MoleculeKind.GLUTENIN).reactive is True
    assert Molecule(MoleculeKind.GLUTENIN, reactive=False).reactive is False
    assert Molecule(MoleculeKind.GLIADIN, reactive=True).reactive is False
    assert Molecule(MoleculeKind.CO2).radius == 8.0
    assert Molecule(MoleculeKind.YEAST).mass == 15.0
