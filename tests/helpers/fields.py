import numpy as np

from Stripes.DirectionFields import ambient_to_tangent_field


def constant_field(mesh, angle=0.):
    '''Line field of a constant direction in the z = 0 plane.'''
    directions = np.tile([np.cos(angle), np.sin(angle), 0.], (mesh.num_V, 1))
    return ambient_to_tangent_field(mesh, directions, n_sym=2)


def vortex_field(mesh, center, sign=1):
    '''
    Line field turning by pi around center, a singularity of index sign
    in the doubled-angle representation.
    '''
    offsets = mesh.V - np.asarray(center)
    half_angles = sign * np.arctan2(offsets[:, 1], offsets[:, 0]) / 2
    directions = np.stack([np.cos(half_angles), np.sin(half_angles), np.zeros(mesh.num_V)], axis=1)
    return ambient_to_tangent_field(mesh, directions, n_sym=2)


def torus_displacements(mesh, UV, H, size=1.):
    '''Rectangle coordinates of the halfedges H, wrapped across the gluing.'''
    d = UV[mesh.H_tip[H]] - UV[mesh.H_tail[H]]
    return d - size * np.round(d / size)


def torus_constant_field(mesh, UV, angle=0.):
    '''
    Line field of a constant direction on the flat torus, expressed in the
    bases aligned with the first halfedge of each vertex.
    '''
    d = torus_displacements(mesh, UV, mesh.V_halfedge)
    basis_angles = np.arctan2(d[:, 1], d[:, 0])
    return np.exp(2j * (angle - basis_angles))


def away_from_corners(mesh):
    '''Faces not touching the four corners of a unit grid.'''
    corners = np.where(np.all(np.isin(mesh.V[:, :2], [0., 1.]), axis=1))[0]
    return ~np.any(np.isin(mesh.F, corners), axis=1)


def pinned_quantities(mesh):
    '''Names of the quantities still required on a mesh.'''
    return [name for name, quantity in mesh.quantities.quantities.items() if quantity.require_count > 0]
