import numpy as np
import pytest

from Stripes.DirectionFields import as_vertex_field, compute_face_index, ambient_to_tangent_field
from tests.helpers import away_from_corners, constant_field, vortex_field, torus_constant_field


@pytest.mark.parametrize('angle', [np.pi / 6, np.pi / 4, 2.])
def test_constant_field_has_no_singularity(grid, angle):
    indices = compute_face_index(grid, constant_field(grid, angle), 2)

    assert indices.shape == (grid.num_F, )
    assert np.all(indices[away_from_corners(grid)] == 0)


@pytest.mark.parametrize('sign', [1, -1])
def test_vortex_is_found_in_its_face(grid, sign):
    # Centroid of the face of cell (3, 3) with vertices 30, 31, 40
    face = 27
    center = np.mean(grid.V[grid.F[face]], axis=0)
    assert sorted(grid.F[face]) == [30, 31, 40]

    indices = compute_face_index(grid, vortex_field(grid, center, sign), 2)
    regular = away_from_corners(grid)

    assert indices[face] == sign
    assert np.count_nonzero(indices[regular]) == 1


def test_constant_field_on_the_flat_torus(torus):
    mesh, UV = torus

    for angle in [0., 0.3, np.pi / 2]:
        assert np.all(compute_face_index(mesh, torus_constant_field(mesh, UV, angle), 2) == 0)


def test_real_pairs_are_accepted(grid):
    field = constant_field(grid, np.pi / 6)
    pairs = np.stack([field.real, field.imag], axis=1)

    assert np.all(compute_face_index(grid, pairs, 2) == compute_face_index(grid, field, 2))


def test_ambient_directions_along_the_first_halfedge(grid):
    # Interior vertices have their first halfedge in the z = 0 plane,
    # pointing the field along it gives the real unit
    v = 40
    h = grid.V_halfedge[v]
    d = grid.V[grid.H_tip[h]] - grid.V[v]
    directions = np.tile([1., 0., 0.], (grid.num_V, 1))
    directions[v] = d

    field = ambient_to_tangent_field(grid, directions, n_sym=2)

    assert np.abs(field) == pytest.approx(1.)
    assert field[v] == pytest.approx(1.)


def test_line_field_ignores_the_sign_of_directions(grid):
    directions = np.tile([np.cos(0.4), np.sin(0.4), 0.], (grid.num_V, 1))
    flipped = directions.copy()
    flipped[::2] *= -1

    assert ambient_to_tangent_field(grid, flipped) == pytest.approx(ambient_to_tangent_field(grid, directions))


def test_vanishing_field_is_rejected(grid):
    field = constant_field(grid, 0.4)
    field[3] = 0

    with pytest.raises(ValueError):
        compute_face_index(grid, field, 2)


def test_wrong_shapes_are_rejected(grid):
    with pytest.raises(ValueError):
        as_vertex_field(np.ones(grid.num_V + 1), grid.num_V)
    with pytest.raises(ValueError):
        ambient_to_tangent_field(grid, np.ones((grid.num_V, 2)))
