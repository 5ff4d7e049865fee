import logging

import numpy as np

import numba

from petpvc.errors import InvalidParameter
from petpvc.psf import PointSpreadFunction
from petpvc.utils import get_array

LOGGER = logging.getLogger(__name__)


# --- Numba implementation for CPU acceleration ---
# Edge voxels are replicated beyond the volume boundary, so a uniform field
# stays uniform after blurring.
@numba.jit(nopython=True, parallel=True)
def _numba_convolve_3d(x, psf):
    D, H, W = x.shape
    pd, ph, pw = psf.shape
    out = np.zeros_like(x)
    for i in numba.prange(D):
        for j in range(H):
            for k in range(W):
                acc = 0.0
                for di in range(pd):
                    xi = min(max(i + di - pd // 2, 0), D - 1)
                    for dj in range(ph):
                        yj = min(max(j + dj - ph // 2, 0), H - 1)
                        for dk in range(pw):
                            zk = min(max(k + dk - pw // 2, 0), W - 1)
                            acc += x[xi, yj, zk] * psf[di, dj, dk]
                out[i, j, k] = acc
    return out


class GaussianBlurringOperator:
    """
    Same-shape Gaussian blur of a 3-D volume.

    Parameters
    ----------
    psf : PointSpreadFunction
        Per-axis variance in voxel units.
    backend : str
        'auto', 'torch', 'numba' or 'scipy'. 'auto' prefers torch (CUDA only),
        then numba, then scipy.
    """

    def __init__(self, psf, backend='auto'):
        if not isinstance(psf, PointSpreadFunction):
            psf = PointSpreadFunction(tuple(psf))
        self.point_spread_function = psf
        self.sigma = np.array(psf.sigma)
        self.psf = self._make_psf(self.sigma)
        # choose backend
        if backend == 'auto':
            for b in ('torch', 'numba', 'scipy'):
                try:
                    if b == 'torch':
                        import torch
                        if not torch.cuda.is_available():
                            continue  # Skip torch if CUDA not available
                    else:
                        __import__(b)
                    backend = b
                    break
                except ImportError:
                    continue
        if backend not in ('torch', 'numba', 'scipy'):
            raise ValueError(
                f"Backend '{backend}' not available. "
                "Choose one of 'auto', 'torch', 'numba' or 'scipy'."
            )
        self.backend = backend
        if backend == 'torch':
            import torch
            self.torch = torch
            if not torch.cuda.is_available():
                raise RuntimeError(
                    "Torch backend selected but no CUDA GPUs available. "
                    "Use backend='auto', 'numba', or 'scipy' instead."
                )
            self.psf_t = torch.tensor(self.psf,
                                      dtype=torch.float64
                                    ).unsqueeze(0).unsqueeze(0).cuda()
        LOGGER.debug("Gaussian blur: sigma=%s voxels, kernel %s, backend %s",
                     tuple(self.sigma), self.psf.shape, self.backend)

    @staticmethod
    def _make_psf(sigma, sd=3):
        # a zero-width axis collapses to a delta
        rng = [int(np.ceil(s*sd)) if s > 0 else 0 for s in sigma]
        grids = np.meshgrid(*[np.arange(-r, r+1) for r in rng], indexing='ij')
        d2 = sum((g/s)**2 for g, s in zip(grids, sigma) if s > 0)
        psf = np.exp(-0.5*d2) * np.ones([2*r + 1 for r in rng])
        return psf/psf.sum()

    def direct(self, x):
        arr = np.ascontiguousarray(get_array(x), dtype=np.float64)
        if arr.ndim != 3:
            raise InvalidParameter(f"Blurring expects a 3-D volume, got shape {arr.shape}.")
        if self.backend == 'torch':
            F = self.torch.nn.functional
            t = self.torch.tensor(arr, dtype=self.torch.float64
                                  ).unsqueeze(0).unsqueeze(0).cuda()
            kd, kh, kw = self.psf.shape
            t = F.pad(t, (kw//2, kw//2, kh//2, kh//2, kd//2, kd//2),
                      mode='replicate')
            blurred = F.conv3d(t, self.psf_t).squeeze().cpu().numpy()
            del t
            self.clear_gpu()
        elif self.backend == 'numba':
            blurred = _numba_convolve_3d(arr, self.psf)
        else:  # scipy
            from scipy.ndimage import convolve
            blurred = convolve(arr, self.psf, mode='nearest')
        return np.asarray(blurred, dtype=np.float64).reshape(arr.shape)

    __call__ = direct

    def clear_gpu(self):
        """Release any cached GPU memory."""
        if self.backend == 'torch':
            # free PyTorch's CUDA cache
            self.torch.cuda.empty_cache()


def create_gaussian_blur(fwhm, geometry, backend=None):
    """
    Factory: returns a GaussianBlurringOperator for a FWHM in mm on the
    given grid, defaulting to torch → numba → scipy.
    """
    psf = PointSpreadFunction.from_fwhm(fwhm, geometry.voxel_size)
    return GaussianBlurringOperator(psf, backend or 'auto')
