'''
Stripe patterns on surfaces [Knoppel et al. 2015].

From a per-vertex frequency and a per-vertex line field (2-RoSy, stored as
the square of the direction), compute a 2pi-periodic function on the mesh
corners whose 0 (mod 2pi) isolines are stripes following the field and
spaced according to the frequencies.
'''
import logging
import numpy as np
from scipy.sparse import coo_matrix, diags, eye
from Stripes.DirectionFields import as_vertex_field, compute_face_index
from Stripes.Solvers import smallest_eigenvector_positive_definite


logger = logging.getLogger(__name__)

REGULARIZATION = 1e-4


def as_vertex_scalars(values, num_V, name='frequencies'):
    values = np.asarray(values, dtype=float)

    if values.shape != (num_V, ):
        raise ValueError(f'Expected one value of {name} per vertex ({num_V}), got shape {values.shape}.')

    return values


def as_face_indices(indices, num_F, name='branch_indices'):
    indices = np.asarray(indices, dtype=int)

    if indices.shape != (num_F, ):
        raise ValueError(f'Expected one value of {name} per face ({num_F}), got shape {indices.shape}.')

    return indices


def compute_omegas(mesh, direction_field, frequencies, edges=None):
    '''
    The 1-form omega_ij (eq. 7 of the paper) on the given edges, oriented
    along their canonical halfedges.
        Input:
            mesh: Triangle_mesh
            direction_field: (num_V, ) complex array, doubled-angle line field
            frequencies: (num_V, ) array
            edges: edge indices, all edges if None
        Output:
            omegas: (len(edges), ) array
            crosses_sheets: (len(edges), ) bool array, True where the two
                            roots of the field are opposite after transport
    '''
    if edges is None:
        edges = np.arange(mesh.num_E)
    edges = np.asarray(edges, dtype=int)

    direction_field = as_vertex_field(direction_field, mesh.num_V)
    frequencies = as_vertex_scalars(frequencies, mesh.num_V)

    with mesh.requiring('edge_lengths',
                        'halfedge_vectors_in_vertex',
                        'transport_vectors_along_halfedge') as (lengths, vectors_in_vertex, transport):
        H = mesh.E_halfedge[edges]
        v_i = mesh.H_tail[H]
        v_j = mesh.H_tip[H]

        # Roots of the power representation
        X_i = np.exp(1j * np.angle(direction_field[v_i]) / 2)
        X_j = np.exp(1j * np.angle(direction_field[v_j]) / 2)

        r_ij = transport[H]

        # Dot product of the transported root at i with the root at j
        s = np.where(np.real(np.conj(r_ij * X_i) * X_j) > 0, 1, -1)
        crosses_sheets = s < 0

        phi_i = np.angle(X_i)
        phi_j = np.angle(s * X_j)

        # Angle of the edge in the bases of its endpoints
        theta_i = np.angle(vectors_in_vertex[H])
        theta_j = theta_i + np.angle(r_ij)

        omegas = (lengths[edges] / 2) * (frequencies[v_i] * np.cos(phi_i - theta_i) +
                                         frequencies[v_j] * np.cos(phi_j - theta_j))

    return omegas, crosses_sheets


def compute_omega(mesh, direction_field, frequencies, e):
    '''
    The 1-form omega_ij on a single edge, see compute_omegas.
    '''
    omegas, crosses_sheets = compute_omegas(mesh, direction_field, frequencies, edges=[e])
    return omegas[0], bool(crosses_sheets[0])


def build_vertex_energy_matrix(mesh, direction_field, branch_indices, frequencies,
                               regularization=REGULARIZATION):
    '''
    Real (2 num_V, 2 num_V) embedding of the complex energy of eq. 8, each
    vertex owning a 2 x 2 block. Faces with non-zero branch index do not
    contribute cotan weights.
    '''
    branch_indices = as_face_indices(branch_indices, mesh.num_F)

    omegas, crosses_sheets = compute_omegas(mesh, direction_field, frequencies)

    with mesh.requiring('halfedge_cotan_weights', 'vertex_indices') as (cotan_weights, vertex_indices):
        H = mesh.E_halfedge
        H_twin = mesh.H_twin[H]

        # The canonical halfedge is always interior, its twin may be exterior
        face = mesh.H_face[H]
        face_twin = mesh.H_face[H_twin]
        regular = branch_indices[face] == 0
        regular_twin = (face_twin >= 0) & (branch_indices[np.maximum(face_twin, 0)] == 0)

        w = np.where(regular, cotan_weights[H], 0.) + np.where(regular_twin, cotan_weights[H_twin], 0.)

        i = 2 * vertex_indices[mesh.H_tail[H]]
        j = 2 * vertex_indices[mesh.H_tip[H]]

    num_isolated = np.count_nonzero(w == 0)
    if num_isolated > 0:
        logger.debug('%d edges have no regular incident face and only couple through the regularization',
                     num_isolated)

    r = w * np.exp(1j * omegas)

    # Across sheets the block represents conjugation as well as multiplication
    r_conj = np.where(crosses_sheets, -r, r)

    rows = np.concatenate([
        i, i + 1, j, j + 1,
        i, i + 1, j, j,
        i, i + 1, j + 1, j + 1
    ])
    cols = np.concatenate([
        i, i + 1, j, j + 1,
        j, j, i, i + 1,
        j + 1, j + 1, i, i + 1
    ])
    data = np.concatenate([
        w, w, w, w,
        -r.real, r.imag, -r.real, r.imag,
        -r_conj.imag, -r_conj.real, -r_conj.imag, -r_conj.real
    ])

    N = 2 * mesh.num_V
    A = coo_matrix((data, (rows, cols)), shape=(N, N)).tocsr()

    # Shift to avoid singularity
    return A + regularization * eye(N, format='csr')


def compute_real_vertex_mass_matrix(mesh):
    '''
    Lumped mass matrix, each dual area repeated on the two real channels.
    '''
    diagonal = np.zeros(2 * mesh.num_V)

    with mesh.requiring('vertex_dual_areas', 'vertex_indices') as (areas, vertex_indices):
        diagonal[2 * vertex_indices] = areas
        diagonal[2 * vertex_indices + 1] = areas

    return diags(diagonal, format='csr')


def compute_parameterization(mesh, direction_field, branch_indices, frequencies, **solver_options):
    '''
    Solve the generalized eigenvalue problem of eq. 9 and keep the phase
    of the solution at each vertex.
        Output:
            psi: (num_V, ) complex array of unit values
    '''
    A = build_vertex_energy_matrix(mesh, direction_field, branch_indices, frequencies)
    B = compute_real_vertex_mass_matrix(mesh)

    solution = smallest_eigenvector_positive_definite(A, B, **solver_options)

    with mesh.requiring('vertex_indices') as (vertex_indices, ):
        psi = solution[2 * vertex_indices] + 1j * solution[2 * vertex_indices + 1]

    if np.any(np.abs(psi) == 0):
        logger.warning('The parameterization vanishes at %d vertices', np.count_nonzero(np.abs(psi) == 0))

    return psi / np.abs(psi)


def compute_texture_coordinates(mesh, direction_field, frequencies, parameterization):
    '''
    Unwrap the parameterization into real corner values, face by face.
        Output:
            coordinates: (num_F, 3) array, coordinates[f, k] at the corner of F[f, k]
            indices: (num_F, ) int array, number of 2pi turns around each face
    '''
    omegas, crosses_sheets = compute_omegas(mesh, direction_field, frequencies)

    h_ij = mesh.F_halfedge
    h_jk = mesh.H_next[h_ij]
    h_ki = mesh.H_next[h_jk]

    psi_i = parameterization[mesh.H_tail[h_ij]]
    psi_j = parameterization[mesh.H_tail[h_jk]]
    psi_k = parameterization[mesh.H_tail[h_ki]]

    # Sign of each halfedge relative to its edge orientation
    def orientation(h):
        return np.where(mesh.E_halfedge[mesh.H_edge[h]] == h, 1., -1.)

    c_ij = orientation(h_ij)
    c_jk = orientation(h_jk)
    c_ki = orientation(h_ki)

    omega_ij = c_ij * omegas[mesh.H_edge[h_ij]]
    omega_jk = c_jk * omegas[mesh.H_edge[h_jk]]
    omega_ki = c_ki * omegas[mesh.H_edge[h_ki]]

    crosses_ij = crosses_sheets[mesh.H_edge[h_ij]]
    crosses_ki = crosses_sheets[mesh.H_edge[h_ki]]

    # Bring J and K onto the sheet of I
    psi_j = np.where(crosses_ij, np.conj(psi_j), psi_j)
    omega_ij = np.where(crosses_ij, omega_ij * c_ij, omega_ij)
    omega_jk = np.where(crosses_ij, -omega_jk * c_jk, omega_jk)

    psi_k = np.where(crosses_ki, np.conj(psi_k), psi_k)
    omega_ki = np.where(crosses_ki, -omega_ki * c_ki, omega_ki)
    omega_jk = np.where(crosses_ki, omega_jk * c_jk, omega_jk)

    r_ij = np.exp(1j * omega_ij)
    r_jk = np.exp(1j * omega_jk)
    r_ki = np.exp(1j * omega_ki)

    # Angles at the corners closest to the target omegas
    alpha_i = np.angle(psi_i)
    alpha_j = alpha_i + omega_ij - np.angle(r_ij * psi_i / psi_j)
    alpha_k = alpha_j + omega_jk - np.angle(r_jk * psi_j / psi_k)
    alpha_l = alpha_k + omega_ki - np.angle(r_ki * psi_k / psi_i)

    coordinates = np.stack([alpha_i, alpha_j, alpha_k], axis=1)
    indices = np.rint((alpha_l - alpha_i) / (2 * np.pi)).astype(int)

    return coordinates, indices


def compute_stripe_pattern(mesh, frequencies, direction_field, **solver_options):
    '''
    Stripe pattern of a line field.
        Input:
            mesh: Triangle_mesh
            frequencies: (num_V, ) array, stripes per unit length
            direction_field: (num_V, ) complex (or (num_V, 2) real) array,
                             line field in doubled-angle representation
        Output:
            stripe_values: (num_F, 3) array of corner values
            stripe_indices: (num_F, ) int array, singularities of the pattern
            branch_indices: (num_F, ) int array, singularities of the field
    '''
    direction_field = as_vertex_field(direction_field, mesh.num_V)
    frequencies = as_vertex_scalars(frequencies, mesh.num_V)

    if np.any(frequencies < 0):
        raise ValueError('Frequencies must be non-negative.')

    # Line fields have two-fold symmetry
    branch_indices = compute_face_index(mesh, direction_field, 2)

    # Frequencies count periods, the 1-form counts radians
    parameterization = compute_parameterization(
        mesh, direction_field, branch_indices, 2 * np.pi * frequencies, **solver_options
    )

    stripe_values, stripe_indices = compute_texture_coordinates(
        mesh, direction_field, 2 * np.pi * frequencies, parameterization
    )

    logger.info('Stripe pattern: %d singular faces in the field, %d in the stripes, %d mismatching',
                np.count_nonzero(branch_indices), np.count_nonzero(stripe_indices),
                np.count_nonzero(branch_indices != stripe_indices))

    return stripe_values, stripe_indices, branch_indices
