"""Synthetic (piecewise region-mean) images and voxel-wise correction factors."""

import numpy as np

from petpvc.errors import DimensionMismatch
from petpvc.regions import check_mask_stack, iter_regions


def synthetic_image(masks, means) -> np.ndarray:
    """Paint ``sum_i masks[..., i] * means[i]`` region by region."""
    arr = check_mask_stack(masks)
    means = np.asarray(means, dtype=np.float64).reshape(-1)
    if means.size != arr.shape[3]:
        raise DimensionMismatch(
            f"Got {means.size} region means for {arr.shape[3]} regions."
        )
    result = np.zeros(arr.shape[:3], dtype=np.float64)
    for index, mask in iter_regions(arr):
        result += mask * means[index]
    return result


def correction_factors(synthetic, blur) -> np.ndarray:
    """
    Ratio of a synthetic image to its blurred copy.

    Voxels where the blurred synthetic image is exactly zero carry no signal
    and get a factor of 0.
    """
    synthetic = np.asarray(synthetic, dtype=np.float64)
    blurred = blur(synthetic)
    factors = np.zeros_like(synthetic)
    np.divide(synthetic, blurred, out=factors, where=blurred != 0.0)
    return factors
