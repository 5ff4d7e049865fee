"""Region mask stacks: layout checks, extraction, statistics and fuzzy correction."""

import logging

import numpy as np

from petpvc.errors import DimensionMismatch, InvalidParameter, NumericDegenerate
from petpvc.utils import get_array

LOGGER = logging.getLogger(__name__)

# Membership sums within this tolerance of 1 count as a partition.
PARTITION_TOLERANCE = 1e-6


def check_mask_stack(masks) -> np.ndarray:
    """Return the stack as a float64 array of shape (x, y, z, N) with N >= 1."""
    arr = np.asarray(get_array(masks), dtype=np.float64)
    if arr.ndim != 4:
        raise DimensionMismatch(
            f"Region mask stack must be 4-D (x, y, z, region), got shape {arr.shape}."
        )
    if arr.shape[3] == 0:
        raise DimensionMismatch("Region mask stack contains no regions.")
    return arr


def check_same_grid(image, masks) -> None:
    """Raise InvalidParameter unless the image and mask stack share a spatial grid."""
    image_shape = np.shape(get_array(image))
    mask_shape = np.shape(get_array(masks))[:3]
    if tuple(image_shape) != tuple(mask_shape):
        raise InvalidParameter(
            f"Image shape {tuple(image_shape)} does not match mask grid {tuple(mask_shape)}."
        )


def num_regions(masks) -> int:
    return int(check_mask_stack(masks).shape[3])


def extract_region(masks, index: int) -> np.ndarray:
    """Return region ``index`` (0-based) as an independent 3-D array."""
    arr = check_mask_stack(masks)
    n = arr.shape[3]
    if not -n <= index < n:
        raise IndexError(f"Region index {index} out of range for {n} regions.")
    return np.array(arr[..., index], copy=True)


def iter_regions(masks):
    """Yield ``(index, mask)`` for every region in the stack."""
    arr = check_mask_stack(masks)
    for index in range(arr.shape[3]):
        yield index, np.array(arr[..., index], copy=True)


def region_sums(masks) -> np.ndarray:
    """
    Total membership (mass) of every region.

    Raises NumericDegenerate if any region is empty, since its mean would be
    undefined.
    """
    arr = check_mask_stack(masks)
    mass = arr.sum(axis=(0, 1, 2))
    empty = np.flatnonzero(~(mass > 0.0))
    if empty.size:
        raise NumericDegenerate(
            f"Region(s) {empty.tolist()} have zero total membership."
        )
    return mass


def region_means(image, masks, mass=None) -> np.ndarray:
    """Membership-weighted mean of ``image`` within every region."""
    arr = check_mask_stack(masks)
    check_same_grid(image, arr)
    if mass is None:
        mass = region_sums(arr)
    img = np.asarray(get_array(image), dtype=np.float64)
    means = np.empty(arr.shape[3], dtype=np.float64)
    for index, mask in iter_regions(arr):
        means[index] = np.sum(img * mask) / mass[index]
    return means


def fuzzy_correct(masks, partition: bool = True) -> np.ndarray:
    """
    Sanitise fractional region memberships.

    NaN and negative memberships become 0 and memberships above 1 are
    clipped to 1. With ``partition`` set, voxels whose memberships sum to more
    than 1 are rescaled to sum to 1; voxels that already sum to at most 1 are
    left alone. Applying the correction twice gives the same result as once.

    Parameters
    ----------
    masks : array_like
        Stack of shape (x, y, z, N)
    partition : bool
        Whether the stack is meant to partition each voxel

    Returns
    -------
    np.ndarray
        Corrected stack, same shape as the input
    """
    arr = check_mask_stack(masks)
    corrected = np.nan_to_num(arr, nan=0.0, posinf=1.0, neginf=0.0)
    np.clip(corrected, 0.0, 1.0, out=corrected)

    if partition:
        total = corrected.sum(axis=3)
        over = total > 1.0 + PARTITION_TOLERANCE
        if np.any(over):
            LOGGER.debug("Fuzzy correction: renormalising %d voxels", int(over.sum()))
            corrected[over] /= total[over][:, None]
    return corrected
