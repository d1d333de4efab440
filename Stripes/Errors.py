class StripePatternError(Exception):
    '''
    Base class of the errors raised while computing or tracing stripe patterns.
    '''


class EigensolverError(StripePatternError, RuntimeError):
    '''
    The generalized eigenproblem could not be solved
    (singular energy matrix, non-finite iterates).
    '''


class IsolineBranchingError(StripePatternError, RuntimeError):
    '''
    More than two isoline pieces leave a single non-singular face.
    Isolines may only branch at singular faces, so this points to
    singularity indices that are inconsistent with the stripe values.
    '''
    def __init__(self, face, num_pieces):
        self.face = face
        self.num_pieces = num_pieces
        super().__init__(
            f'Isolines should only branch out on singularities, '
            f'but face {face} has {num_pieces} crossings.'
        )


class MissingEmbeddingError(StripePatternError, ValueError):
    '''
    A quantity needing vertex positions was requested on an intrinsic mesh.
    '''
