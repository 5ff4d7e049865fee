"""Iterative Yang (IY) partial volume correction."""

import logging

import numpy as np

from petpvc.algorithms.base import Algorithm, AlgorithmState
from petpvc.algorithms.rbv import rbv_correct
from petpvc.regions import check_mask_stack, check_same_grid, region_means, region_sums
from petpvc.synthetic import synthetic_image
from petpvc.utils import get_array

LOGGER = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 10


class IterativeYang(Algorithm):
    """
    Iterative Yang (IY) partial volume correction.

    Each iteration estimates region means directly from the current estimate
    (no GTM inversion), paints them into a synthetic image and updates

        x = y * s / (h * s)

    where y is the original image, s the synthetic image and h the PSF.
    The loop runs for exactly the requested number of iterations; there is no
    convergence test.

    Erlandsson, K. et al. (2012). "A review of partial volume correction
    techniques for emission tomography and their applications in neurology,
    cardiology and oncology". Physics in Medicine and Biology, 57(21), R119-59.

    Parameters
    ----------
    image : np.ndarray
        Observed 3-D volume
    masks : np.ndarray
        Region stack (x, y, z, N) on the same grid
    blurring_operator : callable
        PSF blur in voxel units
    verbose : bool, optional
        Log the region means used at every iteration

    Attributes
    ----------
    x : np.ndarray
        Current estimate (alias ``solution``)
    region_means : np.ndarray or None
        Means used by the most recent iteration

    Examples
    --------
    >>> iy = IterativeYang(image, masks, blur_op)
    >>> corrected = iy.run(iterations=10)
    """

    def __init__(self, image, masks, blurring_operator, verbose=False):
        super().__init__()
        self.masks = check_mask_stack(masks)
        check_same_grid(image, self.masks)
        self.observed_data = np.array(get_array(image), dtype=np.float64, copy=True)
        self.blurring_operator = blurring_operator
        self.verbose = verbose
        self.region_mass = region_sums(self.masks)
        self.region_means = None

        self.x = self.observed_data.copy()

    def update(self):
        """Perform one IY iteration."""
        self.region_means = region_means(self.x, self.masks, self.region_mass)
        if self.verbose:
            LOGGER.info(
                "IY iteration %d: region means %s",
                self.iteration + 1,
                np.array2string(self.region_means),
            )
        synthetic = synthetic_image(self.masks, self.region_means)
        self.x = rbv_correct(self.observed_data, synthetic, self.blurring_operator)

    def run(self, iterations=DEFAULT_ITERATIONS, verbose=0, callbacks=None):
        result = super().run(iterations, verbose=verbose, callbacks=callbacks)
        LOGGER.debug("IY finished after %d iterations", self.iteration)
        return result

    @property
    def done(self) -> bool:
        return self.state is AlgorithmState.DONE


def iterative_yang(image, masks, blurring_operator, iterations=DEFAULT_ITERATIONS,
                   verbose=False, callbacks=None):
    """Convenience wrapper returning the IY-corrected volume."""
    iy = IterativeYang(image, masks, blurring_operator, verbose=verbose)
    return iy.run(iterations=iterations, callbacks=callbacks)
