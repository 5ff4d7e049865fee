"""
petpvc: partial volume correction for emission tomography.

This package provides region-based partial volume correction of PET images
given a stack of anatomical region masks, including:
- Geometric transfer matrix (GTM) correction of regional means
- Region-based voxel-wise (RBV) correction
- Iterative Yang (IY) correction
"""

__version__ = "0.1.0"

from petpvc.errors import (
    PVCError,
    InvalidParameter,
    DimensionMismatch,
    SingularMatrix,
    NumericDegenerate,
    InputFileError,
)
from petpvc.geometry import ImageGeometry
from petpvc.psf import PointSpreadFunction, fwhm_to_sigma, fwhm_to_variance
from petpvc.operators.blurring import GaussianBlurringOperator, create_gaussian_blur
from petpvc.regions import (
    extract_region,
    fuzzy_correct,
    iter_regions,
    region_means,
    region_sums,
)
from petpvc.gtm import GTMResult, compute_gtm, solve_gtm
from petpvc.synthetic import correction_factors, synthetic_image
from petpvc.algorithms import (
    RBV,
    GTMCorrection,
    IterativeYang,
    iterative_yang,
    rbv,
    rbv_correct,
)
from petpvc.utils import get_array, load_image, load_mask_stack, save_image

__all__ = [
    "__version__",
    # Errors
    "PVCError",
    "InvalidParameter",
    "DimensionMismatch",
    "SingularMatrix",
    "NumericDegenerate",
    "InputFileError",
    # Model
    "ImageGeometry",
    "PointSpreadFunction",
    "fwhm_to_sigma",
    "fwhm_to_variance",
    "GaussianBlurringOperator",
    "create_gaussian_blur",
    "extract_region",
    "fuzzy_correct",
    "iter_regions",
    "region_means",
    "region_sums",
    "GTMResult",
    "compute_gtm",
    "solve_gtm",
    "correction_factors",
    "synthetic_image",
    # Algorithms
    "RBV",
    "GTMCorrection",
    "IterativeYang",
    "iterative_yang",
    "rbv",
    "rbv_correct",
    # Utils
    "get_array",
    "load_image",
    "load_mask_stack",
    "save_image",
]
