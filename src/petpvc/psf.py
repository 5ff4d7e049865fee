"""Gaussian point-spread function parameterisation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from petpvc.errors import InvalidParameter

# FWHM = 2 * sqrt(2 ln 2) * sigma
FWHM_TO_SIGMA = 1.0 / (2.0 * np.sqrt(2.0 * np.log(2.0)))


def _as_triple(values: Sequence[float], name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size == 1:
        arr = np.repeat(arr, 3)
    if arr.size != 3:
        raise InvalidParameter(f"Expected three values for {name}, got {arr.size}.")
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0.0):
        raise InvalidParameter(f"All {name} values must be finite and > 0, got {tuple(arr)}.")
    return arr


def fwhm_to_sigma(fwhm: Sequence[float]) -> Tuple[float, float, float]:
    sigma = _as_triple(fwhm, "FWHM") * FWHM_TO_SIGMA
    return tuple(float(s) for s in sigma)


def fwhm_to_variance(
    fwhm: Sequence[float],
    voxel_size: Optional[Sequence[float]] = None,
) -> Tuple[float, float, float]:
    """
    Convert a FWHM triple (mm) into per-axis Gaussian variances.

    When ``voxel_size`` is given the standard deviation is divided by the
    spacing on each axis before squaring, giving variances in voxel units.
    """
    sigma = np.asarray(fwhm_to_sigma(fwhm))
    if voxel_size is not None:
        sigma = sigma / _as_triple(voxel_size, "voxel size")
    return tuple(float(v) for v in sigma**2)


@dataclass(frozen=True)
class PointSpreadFunction:
    """Per-axis Gaussian variance, in voxel units unless stated otherwise."""

    variance: Tuple[float, float, float]

    def __post_init__(self):
        arr = np.asarray(self.variance, dtype=np.float64)
        if arr.shape != (3,) or not np.all(np.isfinite(arr)) or np.any(arr < 0.0):
            raise InvalidParameter(
                f"PSF variance must be three non-negative values, got {self.variance}."
            )
        object.__setattr__(self, "variance", tuple(float(v) for v in arr))

    @property
    def sigma(self) -> Tuple[float, float, float]:
        return tuple(float(np.sqrt(v)) for v in self.variance)

    @classmethod
    def from_fwhm(cls, fwhm, voxel_size=None) -> "PointSpreadFunction":
        return cls(fwhm_to_variance(fwhm, voxel_size))
