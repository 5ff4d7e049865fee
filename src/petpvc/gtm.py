"""
Geometric transfer matrix (GTM) construction and inversion.

GTM[i, j] is the fraction of region j's signal observed, on average, inside
region i once the PSF has been applied:

    GTM[i, j] = sum(mask_i * blur(mask_j)) / sum(mask_i)

Observed region means t relate to the true means m through ``t = GTM @ m``.
"""

import logging
from dataclasses import dataclass

import numpy as np

from petpvc.errors import DimensionMismatch, SingularMatrix
from petpvc.regions import check_mask_stack, iter_regions, region_sums

LOGGER = logging.getLogger(__name__)

DEFAULT_CONDITION_LIMIT = 1e10


@dataclass
class GTMResult:
    """GTM and the per-region mass used as the statistics denominator."""

    matrix: np.ndarray
    region_mass: np.ndarray

    def condition_number(self) -> float:
        return float(np.linalg.cond(self.matrix))


def compute_gtm(masks, blur) -> GTMResult:
    """
    Build the N x N GTM for a mask stack.

    Each mask is blurred exactly once; the blurred copies are reused for every
    row.

    Parameters
    ----------
    masks : array_like
        Region stack (x, y, z, N)
    blur : callable
        Maps a 3-D array to its PSF-blurred copy (e.g. GaussianBlurringOperator)
    """
    arr = check_mask_stack(masks)
    mass = region_sums(arr)
    n = arr.shape[3]

    blurred = np.empty_like(arr)
    for j, mask in iter_regions(arr):
        blurred[..., j] = blur(mask)

    matrix = np.empty((n, n), dtype=np.float64)
    for i, mask in iter_regions(arr):
        # sum over the spatial axes of mask_i * blurred_j for all j at once
        matrix[i, :] = np.tensordot(mask, blurred, axes=([0, 1, 2], [0, 1, 2])) / mass[i]

    LOGGER.debug("GTM (%d regions):\n%s", n, matrix)
    return GTMResult(matrix=matrix, region_mass=mass)


def solve_gtm(matrix, means, condition_limit: float = DEFAULT_CONDITION_LIMIT) -> np.ndarray:
    """
    Recover spill-over corrected region means, solving ``matrix @ x = means``.

    Raises
    ------
    SingularMatrix
        If the matrix has non-finite entries, its condition number exceeds
        ``condition_limit`` or numpy finds it singular.
    DimensionMismatch
        If the matrix is not square or does not match ``means``.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    means = np.asarray(means, dtype=np.float64).reshape(-1)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise DimensionMismatch(f"GTM must be square, got shape {matrix.shape}.")
    if matrix.shape[0] != means.size:
        raise DimensionMismatch(
            f"GTM has {matrix.shape[0]} regions but {means.size} means were given."
        )
    if not np.all(np.isfinite(matrix)):
        raise SingularMatrix("GTM contains non-finite entries.")

    cond = np.linalg.cond(matrix)
    if not np.isfinite(cond) or cond > condition_limit:
        raise SingularMatrix(
            f"GTM is singular or ill-conditioned (condition number {cond:.3e}, "
            f"limit {condition_limit:.3e})."
        )
    try:
        corrected = np.linalg.solve(matrix, means)
    except np.linalg.LinAlgError as e:
        raise SingularMatrix(f"GTM could not be inverted: {e}") from e

    LOGGER.debug("GTM condition number %.4g", cond)
    return corrected
