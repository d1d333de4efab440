import numpy as np


def accumarray(indices, values, size=None):
    '''
    Accumulate values into an array using the indices.
    '''
    indFlat = np.asarray(indices).flatten()
    valFlat = np.asarray(values).flatten()

    if size is None:
        size = np.max(indFlat) + 1

    output = np.zeros(size, dtype=valFlat.dtype)
    np.add.at(output, indFlat, valFlat)

    return output


def obtain_E(F, unique=True):
    '''
    Obtain the edge list from the face list.
    '''
    E = np.concatenate([
        F[:, [0, 1]], F[:, [1, 2]], F[:, [2, 0]]
    ])

    if unique:
        E = np.unique(np.sort(E, axis=1), axis=0)

    return E


def compute_face_areas_from_lengths(L):
    '''
    Heron's formula for the areas of the faces.
        Input:
            L: (M, 3) array of the lengths of the face edges
        Output:
            areas: (M, ) array of face areas
    '''
    a, b, c = L[:, 0], L[:, 1], L[:, 2]
    s = (a + b + c) / 2

    # Clamp to avoid negative values from round-off on degenerate faces
    areas = np.sqrt(np.clip(s * (s - a) * (s - b) * (s - c), 0, None))

    return areas


def compute_corner_angles_from_lengths(L):
    '''
    Interior angles of the faces from their edge lengths (law of cosines).
        Input:
            L: (M, 3) array, L[:, k] is the length of the halfedge
               leaving corner k, i.e. F[:, k] -> F[:, (k+1)%3]
        Output:
            angles: (M, 3) array, angles[:, k] is the angle at corner k
    '''
    # At corner k the two adjacent edges are k and k-1, the opposite one is k+1
    l_out = L
    l_in = np.roll(L, 1, axis=1)
    l_opp = np.roll(L, -1, axis=1)

    cos_angles = (l_out ** 2 + l_in ** 2 - l_opp ** 2) / (2 * l_out * l_in)

    return np.arccos(np.clip(cos_angles, -1.0, 1.0))


def compute_cotan_from_lengths(L, areas):
    '''
    Cotangents of the angles opposite to each halfedge of the faces.
        Input:
            L: (M, 3) array of halfedge lengths as in compute_corner_angles_from_lengths
            areas: (M, ) array of face areas
        Output:
            cot: (M, 3) array, cot[:, k] is the cotangent of the angle
                 opposite to the halfedge F[:, k] -> F[:, (k+1)%3]
    '''
    l_opp = L
    l_a = np.roll(L, 1, axis=1)
    l_b = np.roll(L, -1, axis=1)

    return (l_a ** 2 + l_b ** 2 - l_opp ** 2) / (4 * areas[:, None])


def grid_mesh(num_x, num_y, width=1., height=1.):
    '''
    A flat, consistently oriented triangulated rectangle in the z = 0 plane.
        Input:
            num_x, num_y: number of vertices along x and y
            width, height: size of the rectangle
        Output:
            V: (num_x * num_y, 3) array of vertices
            F: (2 * (num_x - 1) * (num_y - 1), 3) array of faces
    '''
    if num_x < 2 or num_y < 2:
        raise ValueError(f'A grid needs at least 2 x 2 vertices, got {num_x} x {num_y}.')

    xs, ys = np.meshgrid(
        np.linspace(0, width, num_x),
        np.linspace(0, height, num_y)
    )
    V = np.stack([xs.flatten(), ys.flatten(), np.zeros(num_x * num_y)], axis=1)

    i, j = np.meshgrid(np.arange(num_x - 1), np.arange(num_y - 1))
    i = i.flatten(); j = j.flatten()

    v00 = j * num_x + i
    v10 = v00 + 1
    v01 = v00 + num_x
    v11 = v01 + 1

    F = np.concatenate([
        np.stack([v00, v10, v11], axis=1),
        np.stack([v00, v11, v01], axis=1)
    ])

    return V, F


def cone_mesh(num_sides, num_rings, radius=1., height=1.):
    '''
    A triangulated cone (open at its base) with the apex as vertex 0.
    Rings are ordered from the apex outwards.
    '''
    if num_sides < 3 or num_rings < 1:
        raise ValueError(f'A cone needs at least 3 sides and 1 ring, got {num_sides} and {num_rings}.')

    thetas = 2 * np.pi * np.arange(num_sides) / num_sides
    V = [np.array([0., 0., height])]

    for r in range(1, num_rings + 1):
        t = r / num_rings
        ring = np.stack([
            t * radius * np.cos(thetas),
            t * radius * np.sin(thetas),
            np.full(num_sides, height * (1 - t))
        ], axis=1)
        V.append(ring)

    V = np.concatenate([V[0][None, :]] + V[1:])

    F = []
    ring_start = lambda r: 1 + (r - 1) * num_sides

    # Fan around the apex
    for k in range(num_sides):
        F.append([0, ring_start(1) + k, ring_start(1) + (k + 1) % num_sides])

    # Strips between consecutive rings
    for r in range(1, num_rings):
        inner = ring_start(r); outer = ring_start(r + 1)
        for k in range(num_sides):
            k1 = (k + 1) % num_sides
            F.append([inner + k, outer + k, outer + k1])
            F.append([inner + k, outer + k1, inner + k1])

    return V, np.array(F, dtype=int)


def flat_torus_mesh(num_x, num_y, width=1., height=1.):
    '''
    A periodic grid, the intrinsically flat torus obtained by gluing the
    opposite sides of a width x height rectangle.
        Output:
            F: (2 * num_x * num_y, 3) array of faces
            edge_lengths: (num_E, ) array in the order of obtain_E(F)
            UV: (num_x * num_y, 2) coordinates of the vertices in the rectangle
    '''
    if num_x < 3 or num_y < 3:
        raise ValueError(f'A torus grid needs at least 3 x 3 vertices, got {num_x} x {num_y}.')

    dx = width / num_x
    dy = height / num_y

    i, j = np.meshgrid(np.arange(num_x), np.arange(num_y))
    i = i.flatten(); j = j.flatten()

    v00 = j * num_x + i
    v10 = j * num_x + (i + 1) % num_x
    v01 = ((j + 1) % num_y) * num_x + i
    v11 = ((j + 1) % num_y) * num_x + (i + 1) % num_x

    F = np.concatenate([
        np.stack([v00, v10, v11], axis=1),
        np.stack([v00, v11, v01], axis=1)
    ])

    UV = np.stack([i * dx, j * dy], axis=1)

    E = obtain_E(F)
    di = np.mod(E[:, 1] % num_x - E[:, 0] % num_x + 1, num_x) - 1
    dj = np.mod(E[:, 1] // num_x - E[:, 0] // num_x + 1, num_y) - 1

    edge_lengths = np.hypot(di * dx, dj * dy)

    return F, edge_lengths, UV
