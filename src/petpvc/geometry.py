"""Spatial metadata carried alongside image arrays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class ImageGeometry:
    """
    Grid of a 3-D volume in NIfTI (x, y, z) axis order.

    Parameters
    ----------
    shape : tuple of int
        Number of voxels along x, y and z.
    voxel_size : tuple of float
        Voxel spacing in mm along x, y and z.
    """

    shape: Tuple[int, int, int]
    voxel_size: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def allocate(self, value: float = 0.0) -> np.ndarray:
        return np.full(self.shape, value, dtype=np.float64)

    @classmethod
    def from_array(cls, array, voxel_size=(1.0, 1.0, 1.0)) -> "ImageGeometry":
        shape = tuple(int(s) for s in np.shape(array)[:3])
        return cls(shape=shape, voxel_size=tuple(float(v) for v in voxel_size))
