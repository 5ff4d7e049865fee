"""Region-level GTM partial volume correction."""

import logging

import numpy as np

from petpvc.gtm import DEFAULT_CONDITION_LIMIT, compute_gtm, solve_gtm
from petpvc.regions import check_mask_stack, check_same_grid, region_means
from petpvc.utils import get_array

LOGGER = logging.getLogger(__name__)


class GTMCorrection:
    """
    Geometric transfer matrix correction of regional means.

    Unlike RBV no voxel-wise image is produced; :meth:`run` returns the
    corrected mean of every region.
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
        self.condition_number = None

    def run(self) -> np.ndarray:
        self.gtm = compute_gtm(self.masks, self.blurring_operator)
        self.observed_means = region_means(self.image, self.masks, self.gtm.region_mass)
        self.corrected_means = solve_gtm(
            self.gtm.matrix, self.observed_means, self.condition_limit
        )
        self.condition_number = self.gtm.condition_number()
        LOGGER.info("Regional means: %s", np.array2string(self.observed_means))
        LOGGER.info("GTM condition number: %.4g", self.condition_number)
        LOGGER.info("Corrected means: %s", np.array2string(self.corrected_means))
        return self.corrected_means
