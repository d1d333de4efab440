import argparse
import logging
import numpy as np
from Stripes.Auxiliary import grid_mesh
from Stripes.Mesh import Triangle_mesh
from Stripes.DirectionFields import ambient_to_tangent_field
from Stripes.StripePatterns import compute_stripe_pattern
from Stripes.Isolines import extract_polylines_from_stripe_pattern


logger = logging.getLogger('stripes_demo')


def parse_args():
    parser = argparse.ArgumentParser(description='Stripe pattern of a constant line field on a flat grid.')
    parser.add_argument('--num-x', type=int, default=30, help='number of grid vertices along x')
    parser.add_argument('--num-y', type=int, default=30, help='number of grid vertices along y')
    parser.add_argument('--frequency', type=float, default=5., help='stripes per unit length')
    parser.add_argument('--angle', type=float, default=30., help='angle of the line field in degrees')
    parser.add_argument('--output', type=str, default=None, help='save the polylines to this .npz file')
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args()


def main():
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    V, F = grid_mesh(args.num_x, args.num_y)
    mesh = Triangle_mesh(V, F)

    theta = np.deg2rad(args.angle)
    directions = np.tile([np.cos(theta), np.sin(theta), 0.], (mesh.num_V, 1))

    field = ambient_to_tangent_field(mesh, directions, n_sym=2)
    frequencies = np.full(mesh.num_V, args.frequency)

    stripe_values, stripe_indices, branch_indices = compute_stripe_pattern(mesh, frequencies, field)

    points, edges = extract_polylines_from_stripe_pattern(mesh, stripe_values, stripe_indices, branch_indices)

    logger.info('%d polyline points, %d polyline edges', len(points), len(edges))

    if args.output is not None:
        np.savez(args.output, points=points, edges=edges)
        logger.info('Polylines saved to %s', args.output)


if __name__ == '__main__':
    main()
