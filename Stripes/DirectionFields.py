'''
Per-vertex n-direction fields in power representation: validation,
singularity indices and conversion from ambient directions.
'''
import logging
import numpy as np


logger = logging.getLogger(__name__)


def as_vertex_field(field, num_V):
    '''
    Complex (num_V, ) representation of a per-vertex tangent field, given
    either as complex numbers or as a (num_V, 2) real array.
    '''
    field = np.asarray(field)

    if field.ndim == 2 and field.shape[1] == 2 and not np.iscomplexobj(field):
        field = field[:, 0] + 1j * field[:, 1]

    if field.shape != (num_V, ):
        raise ValueError(f'Expected one tangent vector per vertex ({num_V}), got shape {field.shape}.')

    field = field.astype(complex)

    if np.any(np.abs(field) == 0):
        raise ValueError(f'The field vanishes at the vertices {np.where(np.abs(field) == 0)[0]}.')

    return field


def compute_face_index(mesh, field, n_sym):
    '''
    Singularity index of an n-direction field (in power representation) in each face.
        Input:
            mesh: Triangle_mesh
            field: (num_V, ) complex array, the n-th power of the directions
            n_sym: symmetry order, 2 for line fields
        Output:
            indices: (num_F, ) int array, the winding of the power field
                     around each face, corrected by the face holonomy
    '''
    field = as_vertex_field(field, mesh.num_V)

    H = np.arange(mesh.num_H_interior)

    with mesh.requiring('transport_vectors_along_halfedge', 'face_gaussian_curvatures') as (transport, curvatures):
        # Rotation from the transported tail value to the tip value, in (-pi, pi]
        rotations = np.angle(
            field[mesh.H_tip[H]] / (transport[H] ** n_sym * field[mesh.H_tail[H]])
        ).reshape(mesh.num_F, 3)

        total = np.sum(rotations, axis=1) + n_sym * curvatures

    indices = np.rint(total / (2 * np.pi)).astype(int)

    logger.debug('Field of order %d has %d singular faces (total index %d)',
                 n_sym, np.count_nonzero(indices), np.sum(indices))

    return indices


def ambient_to_tangent_field(mesh, vectors, n_sym=2):
    '''
    Express ambient per-vertex directions in the vertex tangent bases and
    raise them to the n-th power.
        Input:
            mesh: embedded Triangle_mesh
            vectors: (num_V, 3) array of ambient directions
            n_sym: symmetry order of the resulting field
        Output:
            field: (num_V, ) complex array of unit values
    '''
    vectors = np.asarray(vectors, dtype=float)
    if vectors.shape != (mesh.num_V, 3):
        raise ValueError(f'Expected ({mesh.num_V}, 3) ambient vectors, got shape {vectors.shape}.')

    with mesh.requiring('vertex_positions', 'vertex_normals', 'vertex_angle_sums') as (V, normals, angle_sums):
        # The first basis vector points along the first halfedge of the fan
        b1 = V[mesh.H_tip[mesh.V_halfedge]] - V
        b1 = b1 - np.sum(b1 * normals, axis=1)[:, None] * normals
        b1 = b1 / np.linalg.norm(b1, axis=1)[:, None]
        b2 = np.cross(normals, b1)

        angles = np.mod(np.arctan2(
            np.sum(vectors * b2, axis=1),
            np.sum(vectors * b1, axis=1)
        ), 2 * np.pi)

        # Tangent angles live in the rescaled cone of each vertex
        target = np.full(mesh.num_V, 2 * np.pi)
        target[mesh.V_boundary] = np.pi
        angles = angles * target / angle_sums

    return np.exp(1j * n_sym * angles)
