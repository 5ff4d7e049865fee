import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from petpvc.operators.blurring import GaussianBlurringOperator  # noqa: E402
from petpvc.psf import PointSpreadFunction  # noqa: E402


def half_volume_masks(shape=(10, 10, 10), axis=0):
    """Two binary masks splitting the volume in half along ``axis``."""
    masks = np.zeros(shape + (2,), dtype=np.float64)
    index = np.arange(shape[axis])
    lower = (index < shape[axis] // 2).reshape([-1 if a == axis else 1 for a in range(3)])
    masks[..., 0] = np.broadcast_to(lower, shape)
    masks[..., 1] = 1.0 - masks[..., 0]
    return masks


@pytest.fixture
def shape():
    return (10, 10, 10)


@pytest.fixture
def psf():
    # FWHM of 2 voxels on every axis
    return PointSpreadFunction.from_fwhm((2.0, 2.0, 2.0), (1.0, 1.0, 1.0))


@pytest.fixture
def blur(psf):
    return GaussianBlurringOperator(psf, backend="scipy")


@pytest.fixture
def two_region_masks(shape):
    return half_volume_masks(shape)


@pytest.fixture
def two_region_truth(two_region_masks):
    return 100.0 * two_region_masks[..., 0] + 50.0 * two_region_masks[..., 1]


@pytest.fixture
def two_region_observed(two_region_truth, blur):
    return blur(two_region_truth)
