'''
Halfedge triangle meshes and their derived geometric quantities.
'''
import logging
from contextlib import contextmanager
import numpy as np
from tqdm import tqdm
from Stripes.Auxiliary import (accumarray, obtain_E, compute_face_areas_from_lengths,
                               compute_corner_angles_from_lengths, compute_cotan_from_lengths)
from Stripes.Quantities import QuantityCache
from Stripes.Errors import MissingEmbeddingError


logger = logging.getLogger(__name__)


class Triangle_mesh():
    '''
    A halfedge triangle mesh together with lazily computed geometric quantities.

    Interior halfedge 3 * f + k runs from F[f, k] to F[f, (k+1)%3] and doubles
    as the corner of face f at F[f, k]. Boundary edges get an exterior twin
    (index >= 3 * len(F)) whose face is -1, the boundary loop.

    The geometry is either embedded (vertex positions V) or intrinsic
    (edge lengths only, see from_edge_lengths).
    '''
    def __init__(self, V, F, edge_lengths=None):
        self.F = np.asarray(F, dtype=int)

        if self.F.ndim != 2 or self.F.shape[1] != 3:
            raise ValueError(f'Faces must be a (M, 3) array, got shape {self.F.shape}.')

        if V is not None:
            self.V = np.asarray(V, dtype=float)
            num_V = self.V.shape[0]
        else:
            self.V = None
            num_V = np.max(self.F) + 1

        self.E = obtain_E(self.F)

        self.num_V = num_V
        self.num_E = len(self.E)
        self.num_F = len(self.F)

        if edge_lengths is not None:
            edge_lengths = np.asarray(edge_lengths, dtype=float)
            if edge_lengths.shape != (self.num_E, ):
                raise ValueError(f'Expected {self.num_E} edge lengths, got shape {edge_lengths.shape}.')
        self.intrinsic_edge_lengths = edge_lengths

        if self.V is None and edge_lengths is None:
            raise ValueError('Either vertex positions or edge lengths must be given.')

        self.construct_halfedges()
        self.construct_vertex_fans()

        self.genus = (2 - (self.num_V - self.num_E + self.num_F) - self.num_boundary_loops) / 2

        logger.debug('Mesh with %d vertices, %d edges, %d faces, genus %s, %d boundary loops',
                     self.num_V, self.num_E, self.num_F, self.genus, self.num_boundary_loops)

        self.quantities = QuantityCache()
        self.register_quantities()

    @classmethod
    def from_edge_lengths(cls, F, edge_lengths):
        '''
        Intrinsic mesh, edge lengths ordered as obtain_E(F).
        '''
        return cls(None, F, edge_lengths=edge_lengths)

    def construct_halfedges(self):
        '''
        Construct the halfedge connectivity (tail, tip, next, twin, face, edge).
        '''
        num_H_interior = 3 * self.num_F

        H_tail = self.F.flatten()
        H_tip = np.roll(self.F, -1, axis=1).flatten()

        H_next = (3 * np.repeat(np.arange(self.num_F), 3) + np.tile([1, 2, 0], self.num_F))
        H_face = np.repeat(np.arange(self.num_F), 3)

        # Mapping from directed edges to interior halfedges
        H_map = {}
        for h, (tail, tip) in enumerate(zip(H_tail, H_tip)):
            if tail == tip:
                raise ValueError(f'The face {self.F[h // 3]} is degenerate.')
            if (tail, tip) in H_map:
                raise ValueError(f'The directed edge {(tail, tip)} appears twice: '
                                 'the mesh is non-manifold or inconsistently oriented.')
            H_map[(tail, tip)] = h

        H_twin = np.full(num_H_interior, -1, dtype=int)
        exterior = []
        for h in range(num_H_interior):
            twin = H_map.get((H_tip[h], H_tail[h]))
            if twin is not None:
                H_twin[h] = twin
            else:
                H_twin[h] = num_H_interior + len(exterior)
                exterior.append(h)

        exterior = np.array(exterior, dtype=int)
        num_H = num_H_interior + len(exterior)

        # Exterior halfedges run opposite to their interior twins
        H_tail = np.concatenate([H_tail, H_tip[exterior]])
        H_tip = np.concatenate([H_tip, self.F.flatten()[exterior]])
        H_twin = np.concatenate([H_twin, exterior])
        H_face = np.concatenate([H_face, np.full(len(exterior), -1, dtype=int)])

        # Next along the boundary loop is the exterior halfedge leaving the tip
        exterior_out = {}
        for h in range(num_H_interior, num_H):
            if H_tail[h] in exterior_out:
                raise ValueError(f'The vertex {H_tail[h]} is non-manifold (several boundary fans).')
            exterior_out[H_tail[h]] = h
        H_next = np.concatenate([
            H_next,
            np.array([exterior_out[H_tip[h]] for h in range(num_H_interior, num_H)], dtype=int)
        ])

        # Edges follow the order of obtain_E, the canonical halfedge is the
        # interior one with the smallest index
        E_map = {(e[0], e[1]): i for i, e in enumerate(self.E)}
        H_edge = np.array([
            E_map[(min(tail, tip), max(tail, tip))] for tail, tip in zip(H_tail, H_tip)
        ], dtype=int)

        E_halfedge = np.full(self.num_E, num_H, dtype=int)
        np.minimum.at(E_halfedge, H_edge[:num_H_interior], np.arange(num_H_interior))

        self.H_tail = H_tail
        self.H_tip = H_tip
        self.H_next = H_next
        self.H_twin = H_twin
        self.H_face = H_face
        self.H_edge = H_edge
        self.E_halfedge = E_halfedge
        self.F_halfedge = 3 * np.arange(self.num_F)

        self.num_H_interior = num_H_interior
        self.num_H = num_H

        self.E_boundary = H_face[H_twin[E_halfedge]] < 0
        self.V_boundary = np.unique(H_tail[num_H_interior:])

        self.num_boundary_loops = self.count_boundary_loops()

    def count_boundary_loops(self):
        visited = np.zeros(self.num_H, dtype=bool)
        num_loops = 0

        for h in range(self.num_H_interior, self.num_H):
            if visited[h]:
                continue
            num_loops += 1
            while not visited[h]:
                visited[h] = True
                h = self.H_next[h]

        return num_loops

    def construct_vertex_fans(self):
        '''
        Sort the outgoing halfedges of each vertex counter-clockwise.
        Boundary vertices start at the interior halfedge whose twin is exterior
        and end at their exterior outgoing halfedge.
        '''
        V_halfedge = np.full(self.num_V, self.num_H, dtype=int)

        # The smallest interior outgoing halfedge for interior vertices
        np.minimum.at(V_halfedge, self.H_tail[:self.num_H_interior], np.arange(self.num_H_interior))

        # The clockwise-most interior halfedge for boundary vertices
        for h in range(self.num_H_interior, self.num_H):
            V_halfedge[self.H_tip[h]] = self.H_twin[h]

        if np.any(V_halfedge == self.num_H):
            raise ValueError(f'The vertices {np.where(V_halfedge == self.num_H)[0]} are not referenced by any face.')

        degrees = accumarray(self.H_tail, np.ones(self.num_H, dtype=int), size=self.num_V)

        V_outgoing = []
        for v in tqdm(range(self.num_V),
                      desc='Sorting vertex fans',
                      total=self.num_V,
                      leave=False):
            start = V_halfedge[v]
            fan = [start]
            h = start
            while self.H_face[h] >= 0:
                h = self.H_twin[self.H_next[self.H_next[h]]]
                if h == start:
                    break
                fan.append(h)

            if len(fan) != degrees[v]:
                raise ValueError(f'The vertex {v} is non-manifold: its fan has {len(fan)} '
                                 f'of {degrees[v]} outgoing halfedges.')

            V_outgoing.append(np.array(fan, dtype=int))

        self.V_halfedge = V_halfedge
        self.V_outgoing = V_outgoing

    # Navigation

    def is_boundary_loop(self, f):
        return f < 0

    def face_halfedges(self, f):
        h = self.F_halfedge[f]
        return [h, self.H_next[h], self.H_next[self.H_next[h]]]

    def corner_values(self, corner_data, h):
        '''
        Value of (M, 3) corner data at the corner of interior halfedge h.
        '''
        return corner_data[h // 3, h % 3]

    # Quantities

    def register_quantities(self):
        for name, compute in [
            ('vertex_indices', lambda: np.arange(self.num_V)),
            ('face_indices', lambda: np.arange(self.num_F)),
            ('vertex_positions', self.compute_vertex_positions),
            ('edge_lengths', self.compute_edge_lengths),
            ('face_areas', self.compute_face_areas),
            ('corner_angles', self.compute_corner_angles),
            ('vertex_angle_sums', self.compute_vertex_angle_sums),
            ('corner_scaled_angles', self.compute_corner_scaled_angles),
            ('face_gaussian_curvatures', self.compute_face_gaussian_curvatures),
            ('halfedge_cotan_weights', self.compute_halfedge_cotan_weights),
            ('vertex_dual_areas', self.compute_vertex_dual_areas),
            ('halfedge_vectors_in_vertex', self.compute_halfedge_vectors_in_vertex),
            ('transport_vectors_along_halfedge', self.compute_transport_vectors_along_halfedge),
            ('face_normals', self.compute_face_normals),
            ('vertex_normals', self.compute_vertex_normals),
        ]:
            self.quantities.register(name, compute)

    def require(self, name):
        return self.quantities.require(name)

    def unrequire(self, name):
        self.quantities.unrequire(name)

    @contextmanager
    def requiring(self, *names):
        '''
        Pin quantities for the duration of a block, they are released even
        if the block raises.
            Output:
                tuple of the quantity values, in the order of names
        '''
        acquired = []
        try:
            for name in names:
                self.require(name)
                acquired.append(name)
            yield tuple(self.quantities[name].value for name in names)
        finally:
            for name in acquired:
                self.unrequire(name)

    def quantity(self, name):
        return self.quantities.ensure_have(name)

    def refresh_quantities(self):
        self.quantities.refresh()

    def purge_quantities(self):
        self.quantities.purge()

    def compute_vertex_positions(self):
        if self.V is None:
            raise MissingEmbeddingError('The mesh has no vertex positions (intrinsic geometry only).')
        return self.V

    def compute_edge_lengths(self):
        if self.intrinsic_edge_lengths is not None:
            return self.intrinsic_edge_lengths

        V = self.quantity('vertex_positions')
        return np.linalg.norm(V[self.E[:, 1]] - V[self.E[:, 0]], axis=1)

    def interior_halfedge_lengths(self):
        '''
        (M, 3) array of the lengths of the interior halfedges.
        '''
        lengths = self.quantity('edge_lengths')
        return lengths[self.H_edge[:self.num_H_interior]].reshape(self.num_F, 3)

    def compute_face_areas(self):
        areas = compute_face_areas_from_lengths(self.interior_halfedge_lengths())

        if np.any(areas <= 0):
            raise ValueError(f'The face(s) {np.where(areas <= 0)[0]} are degenerate.')

        return areas

    def compute_corner_angles(self):
        return compute_corner_angles_from_lengths(self.interior_halfedge_lengths())

    def compute_vertex_angle_sums(self):
        return accumarray(self.F, self.quantity('corner_angles'), size=self.num_V)

    def compute_corner_scaled_angles(self):
        '''
        Corner angles rescaled so that they sum to 2pi around interior
        vertices and to pi around boundary vertices.
        '''
        angle_sums = self.quantity('vertex_angle_sums')

        target = np.full(self.num_V, 2 * np.pi)
        target[self.V_boundary] = np.pi

        return self.quantity('corner_angles') * (target / angle_sums)[self.F]

    def compute_face_gaussian_curvatures(self):
        return np.sum(self.quantity('corner_scaled_angles'), axis=1) - np.pi

    def compute_halfedge_cotan_weights(self):
        cot = compute_cotan_from_lengths(self.interior_halfedge_lengths(), self.quantity('face_areas'))

        weights = np.zeros(self.num_H)
        weights[:self.num_H_interior] = 0.5 * cot.flatten()

        return weights

    def compute_vertex_dual_areas(self):
        areas = self.quantity('face_areas')
        return accumarray(self.F, np.repeat(areas[:, None] / 3, 3, axis=1), size=self.num_V)

    def compute_halfedge_vectors_in_vertex(self):
        '''
        Each outgoing halfedge as a complex number in the tangent basis of its
        tail vertex, the basis being aligned with the first halfedge of the fan.
        '''
        scaled_angles = self.quantity('corner_scaled_angles').flatten()
        lengths = self.quantity('edge_lengths')[self.H_edge]

        vectors = np.zeros(self.num_H, dtype=complex)

        for v, fan in enumerate(self.V_outgoing):
            # The corner of an outgoing interior halfedge spans the wedge to the next one
            angles = np.concatenate([[0.], np.cumsum(scaled_angles[fan[:-1]])])
            vectors[fan] = lengths[fan] * np.exp(1j * angles)

        return vectors

    def compute_transport_vectors_along_halfedge(self):
        '''
        Rotation taking tangent vectors at the tail to tangent vectors at the tip.
        '''
        vectors = self.quantity('halfedge_vectors_in_vertex')

        transport = vectors[self.H_twin] / -vectors

        return transport / np.abs(transport)

    def compute_face_normals(self):
        V = self.quantity('vertex_positions')
        normals = np.cross(V[self.F[:, 1]] - V[self.F[:, 0]], V[self.F[:, 2]] - V[self.F[:, 0]])
        return normals / np.linalg.norm(normals, axis=1)[:, None]

    def compute_vertex_normals(self):
        '''
        Area-weighted average of the face normals.
        '''
        normals = self.quantity('face_normals') * self.quantity('face_areas')[:, None]

        vertex_normals = np.stack([
            accumarray(self.F, np.repeat(normals[:, i][:, None], 3, axis=1), size=self.num_V)
            for i in range(3)
        ], axis=1)

        return vertex_normals / np.linalg.norm(vertex_normals, axis=1)[:, None]
