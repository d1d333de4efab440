'''
Sparse generalized eigensolvers.
'''
import logging
import numpy as np
from tqdm import tqdm
from scipy.sparse import csc_matrix
from scipy.sparse.linalg import splu
from Stripes.Errors import EigensolverError


logger = logging.getLogger(__name__)

EIGEN_ITERATIONS = 50
EIGEN_SEED = 0


def smallest_eigenvector_positive_definite(A, B, n_iterations=EIGEN_ITERATIONS, seed=EIGEN_SEED):
    '''
    Eigenvector of the smallest eigenvalue of A x = lambda B x by inverse
    power iteration, A and B symmetric positive definite.
        Input:
            A: (N, N) sparse energy matrix
            B: (N, N) sparse mass matrix
            n_iterations: number of inverse iterations
            seed: seed of the random initial vector
        Output:
            x: (N, ) array normalised so that x^T B x = 1
    '''
    if A.shape[0] != A.shape[1] or A.shape != B.shape:
        raise ValueError(f'Expected two square matrices of the same size, got {A.shape} and {B.shape}.')

    try:
        lu = splu(csc_matrix(A))
    except RuntimeError as error:
        raise EigensolverError(f'Factorisation of the energy matrix failed: {error}') from error

    rng = np.random.default_rng(seed)
    u = rng.uniform(-1, 1, A.shape[0])
    x = u

    for _ in tqdm(range(n_iterations),
                  desc='Inverse power iteration',
                  total=n_iterations,
                  leave=False):
        x = lu.solve(B @ u)

        scale = np.sqrt(np.abs(x @ (B @ x)))
        if not np.isfinite(scale) or scale == 0:
            raise EigensolverError(f'Inverse power iteration produced a degenerate iterate (scale {scale}).')

        x = x / scale
        u = x

    logger.debug('Smallest eigenvalue estimate: %s', x @ (A @ x))

    return x
