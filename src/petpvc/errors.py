"""Exceptions raised by the partial-volume correction core."""

import numpy as np


class PVCError(Exception):
    """Base class for every failure that aborts a correction run."""


class InvalidParameter(PVCError, ValueError):
    """A scalar parameter or input grid is outside its valid range."""


class DimensionMismatch(PVCError, ValueError):
    """The region mask stack does not have the expected layout."""


class SingularMatrix(PVCError, np.linalg.LinAlgError):
    """The geometric transfer matrix cannot be inverted reliably."""


class NumericDegenerate(PVCError, ArithmeticError):
    """A region has zero total membership, so its mean is undefined."""


class InputFileError(PVCError, OSError):
    """An input volume exists but cannot be read as a NIfTI image."""
