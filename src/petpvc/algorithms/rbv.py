"""
Region-based voxel-wise (RBV) partial volume correction.

Thomas, B. et al. (2011). "The importance of appropriate partial volume
correction for PET quantification in Alzheimer's disease". European Journal of
Nuclear Medicine and Molecular Imaging, 38:1104-1119.
"""

import logging

import numpy as np

from petpvc.gtm import DEFAULT_CONDITION_LIMIT, compute_gtm, solve_gtm
from petpvc.regions import check_mask_stack, check_same_grid, region_means
from petpvc.synthetic import correction_factors, synthetic_image
from petpvc.utils import get_array

LOGGER = logging.getLogger(__name__)


def rbv_correct(image, synthetic, blur) -> np.ndarray:
    """
    One voxel-wise correction pass.

    Multiplies the original image by ``synthetic / blur(synthetic)``; voxels
    whose blurred synthetic value is zero get a factor of 0.
    """
    image = np.asarray(get_array(image), dtype=np.float64)
    return image * correction_factors(synthetic, blur)


class RBV:
    """
    One-shot RBV correction.

    Region means are deconvolved with the GTM, painted back into a synthetic
    image, and the ratio of the synthetic image to its blurred copy is applied
    to the original volume.

    Parameters
    ----------
    image : np.ndarray
        3-D intensity volume
    masks : np.ndarray
        Region stack (x, y, z, N) on the same grid
    blurring_operator : callable
        PSF blur in voxel units
    condition_limit : float, optional
        Largest GTM condition number accepted before raising SingularMatrix

    Attributes
    ----------
    gtm : GTMResult
    observed_means, corrected_means : np.ndarray
        Set by :meth:`run`
    """

    def __init__(self, image, masks, blurring_operator,
                 condition_limit=DEFAULT_CONDITION_LIMIT):
        self.masks = check_mask_stack(masks)
        check_same_grid(image, self.masks)
        self.image = np.asarray(get_array(image), dtype=np.float64)
        self.blurring_operator = blurring_operator
        self.condition_limit = condition_limit
        self.gtm = None
        self.observed_means = None
        self.corrected_means = None
        self.synthetic = None

    def run(self) -> np.ndarray:
        self.gtm = compute_gtm(self.masks, self.blurring_operator)
        self.observed_means = region_means(self.image, self.masks, self.gtm.region_mass)
        LOGGER.info("Regional means: %s", np.array2string(self.observed_means))
        LOGGER.info("GTM:\n%s", np.array2string(self.gtm.matrix))

        self.corrected_means = solve_gtm(
            self.gtm.matrix, self.observed_means, self.condition_limit
        )
        LOGGER.info("Corrected means: %s", np.array2string(self.corrected_means))

        self.synthetic = synthetic_image(self.masks, self.corrected_means)
        return rbv_correct(self.image, self.synthetic, self.blurring_operator)


def rbv(image, masks, blurring_operator, condition_limit=DEFAULT_CONDITION_LIMIT):
    """Convenience wrapper returning the RBV-corrected volume."""
    return RBV(image, masks, blurring_operator, condition_limit).run()
