"""Exceptions.

The statistical and geometric errors are fatal to the analysis step in which they occur: they
point to a data or configuration problem and are never retried.
"""


class InsufficientDataError(ValueError):
    """Not enough trajectory frames remain once the equilibration frames are discarded."""


class SingularMatrixError(ValueError):
    """The reference cell matrix cannot be inverted."""


class EmptyDistributionError(ValueError):
    """The distribution has no positive probability anywhere."""


class UndefinedBinError(Exception):
    """The energy of a single bin cannot be estimated.

    This is not a failure: the bin is marked as undefined and is later resolved by gap filling.
    """
