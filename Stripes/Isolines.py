'''
Zero (mod 2pi) isolines of stripe patterns, traced face to face across
the mesh and embedded as polylines.
'''
import logging
import numpy as np
from tqdm import tqdm
from Stripes.Errors import IsolineBranchingError


logger = logging.getLogger(__name__)


class Isoline():
    '''
    A connected zero (mod 2pi) curve of a stripe pattern.

    barycenters holds (halfedge, bary) pairs, the point lying at
    bary * tail + (1 - bary) * tip of the halfedge. An isoline is open
    when it ends at the boundary or at singular faces, closed when it
    loops back on itself.
    '''
    def __init__(self, barycenters=None, open=True):
        self.barycenters = [] if barycenters is None else list(barycenters)
        self.open = open

    def __len__(self):
        return len(self.barycenters)

    def __eq__(self, other):
        if not isinstance(other, Isoline):
            return NotImplemented
        return self.open == other.open and self.barycenters == other.barycenters

    def __repr__(self):
        return f'Isoline({len(self.barycenters)} points, {"open" if self.open else "closed"})'


def crosses_modulo_2pi(val1, val2):
    '''
    Check whether some 2 k pi lies between val1 and val2.
        Output:
            crosses: bool
            bary: weight of val1 in the linear interpolation hitting 2 k pi,
                  None if there is no crossing
    '''
    if val1 == val2:
        return False, None

    if val1 < val2:
        isoval = 2 * np.pi * np.ceil(val1 / (2 * np.pi))
        if val2 > isoval:
            return True, (isoval - val2) / (val1 - val2)
    else:
        isoval = 2 * np.pi * np.ceil(val2 / (2 * np.pi))
        if val1 > isoval:
            return True, (isoval - val2) / (val1 - val2)

    return False, None


def trace_isoline(mesh, stripe_values, singular, visited, seed, h, bary):
    '''
    Follow an isoline from the crossing (h, bary) of the seed face into the
    face across h, one crossing per face.
        Output:
            points: list of (halfedge, bary) starting with (h, bary)
            closed: True if the walk came back to the seed face
    '''
    points = [(int(h), float(bary))]
    closed = False

    prev_face = seed
    cur_face = mesh.H_face[mesh.H_twin[h]]
    done = False

    while not mesh.is_boundary_loop(cur_face) and not done and not singular[cur_face]:
        visited[cur_face] = True
        done = True

        for he in mesh.face_halfedges(cur_face):
            opp_face = mesh.H_face[mesh.H_twin[he]]

            # The shared edge was already examined
            if opp_face == prev_face:
                continue

            crosses, bary = crosses_modulo_2pi(
                mesh.corner_values(stripe_values, he),
                mesh.corner_values(stripe_values, mesh.H_next[he])
            )
            if not crosses:
                continue

            if not mesh.is_boundary_loop(opp_face) and visited[opp_face]:
                done = True
                if opp_face == seed:
                    closed = True
            else:
                done = mesh.is_boundary_loop(opp_face) or singular[opp_face]

                points.append((int(he), float(bary)))
                prev_face = cur_face
                cur_face = opp_face
            break

    return points, closed


def validate_stripe_pattern(mesh, stripe_values, stripe_indices, field_indices):
    stripe_values = np.asarray(stripe_values, dtype=float)
    stripe_indices = np.asarray(stripe_indices, dtype=int)
    field_indices = np.asarray(field_indices, dtype=int)

    if stripe_values.shape != (mesh.num_F, 3):
        raise ValueError(f'Expected ({mesh.num_F}, 3) corner values, got shape {stripe_values.shape}.')
    if stripe_indices.shape != (mesh.num_F, ) or field_indices.shape != (mesh.num_F, ):
        raise ValueError(f'Expected {mesh.num_F} face indices, got shapes '
                         f'{stripe_indices.shape} and {field_indices.shape}.')

    return stripe_values, stripe_indices, field_indices


def extract_isolines_from_stripe_pattern(mesh, stripe_values, stripe_indices, field_indices):
    '''
    Trace the zero (mod 2pi) isolines of a stripe pattern.
        Input:
            mesh: Triangle_mesh
            stripe_values: (num_F, 3) corner values
            stripe_indices: (num_F, ) singularities of the pattern
            field_indices: (num_F, ) singularities of the direction field
        Output:
            isolines: list of Isoline, in the order of their seed faces
    '''
    stripe_values, stripe_indices, field_indices = validate_stripe_pattern(
        mesh, stripe_values, stripe_indices, field_indices
    )

    singular = (stripe_indices != 0) | (field_indices != 0)
    visited = np.zeros(mesh.num_F, dtype=bool)
    isolines = []

    with mesh.requiring('face_indices') as (face_indices, ):
        for f in tqdm(face_indices,
                      desc='Tracing isolines',
                      total=mesh.num_F,
                      leave=False):
            if visited[f] or singular[f]:
                continue
            visited[f] = True

            isoline = Isoline()
            num_pieces = 0

            for h in mesh.face_halfedges(f):
                crosses, bary = crosses_modulo_2pi(
                    mesh.corner_values(stripe_values, h),
                    mesh.corner_values(stripe_values, mesh.H_next[h])
                )
                if not crosses:
                    continue

                num_pieces += 1
                points, closed = trace_isoline(mesh, stripe_values, singular, visited, f, h, bary)

                if closed:
                    isoline.open = False

                # The first piece is reversed so that the second one continues it
                if len(isoline.barycenters) == 0:
                    isoline.barycenters = points[::-1]
                else:
                    isoline.barycenters.extend(points)

            if num_pieces > 0:
                isolines.append(isoline)

            # Isolines stop at singularities, so they should never branch out
            if num_pieces > 2:
                raise IsolineBranchingError(int(f), num_pieces)

    logger.info('Extracted %d isolines (%d closed)',
                len(isolines), sum(not isoline.open for isoline in isolines))

    return isolines


def isolines_to_polylines(mesh, isolines):
    '''
    Embed isolines as a point soup with edges between consecutive points.
        Output:
            points: (N, 3) array
            edges: (M, 2) int array
    '''
    points = []
    edges = []

    with mesh.requiring('vertex_positions') as (V, ):
        for isoline in isolines:
            start = len(points)

            for h, bary in isoline.barycenters:
                points.append(bary * V[mesh.H_tail[h]] + (1 - bary) * V[mesh.H_tip[h]])

            end = len(points)
            edges += [[i, i + 1] for i in range(start, end - 1)]

            # Close the loop
            if not isoline.open:
                edges.append([end - 1, start])

    return np.array(points, dtype=float).reshape(-1, 3), np.array(edges, dtype=int).reshape(-1, 2)


def extract_polylines_from_stripe_pattern(mesh, stripe_values, stripe_indices, field_indices):
    '''
    Isolines of a stripe pattern as an embedded polyline soup,
    the mesh must have vertex positions.
    '''
    # Fail before tracing if there is no embedding
    with mesh.requiring('vertex_positions'):
        isolines = extract_isolines_from_stripe_pattern(mesh, stripe_values, stripe_indices, field_indices)
        return isolines_to_polylines(mesh, isolines)
