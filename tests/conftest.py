import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Stripes.Auxiliary import grid_mesh, cone_mesh, flat_torus_mesh
from Stripes.Mesh import Triangle_mesh


@pytest.fixture()
def triangle():
    return Triangle_mesh([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.]], [[0, 1, 2]])


@pytest.fixture()
def square():
    '''Unit square split along the diagonal 0-2.'''
    V = [[0., 0., 0.], [1., 0., 0.], [1., 1., 0.], [0., 1., 0.]]
    return Triangle_mesh(V, [[0, 1, 2], [0, 2, 3]])


@pytest.fixture()
def grid():
    V, F = grid_mesh(9, 9)
    return Triangle_mesh(V, F)


@pytest.fixture()
def fine_grid():
    V, F = grid_mesh(21, 21)
    return Triangle_mesh(V, F)


@pytest.fixture()
def cone():
    V, F = cone_mesh(8, 3)
    return Triangle_mesh(V, F)


@pytest.fixture()
def torus():
    '''Intrinsic flat unit torus with its rectangle coordinates.'''
    F, lengths, UV = flat_torus_mesh(12, 12)
    return Triangle_mesh.from_edge_lengths(F, lengths), UV
