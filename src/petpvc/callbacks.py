"""Callback utilities for iterative PVC algorithms."""

from pathlib import Path

import numpy as np

from petpvc.utils import save_image


class Callback:
    """Base class; called with the algorithm after every iteration."""

    def __call__(self, algorithm) -> None:
        pass


class RegionMeansCallback(Callback):
    """
    Callback to record the region means used at each iteration.

    Means are kept in memory (``history``) and, when ``output_file`` is
    given, appended to a CSV with one column per region.

    Parameters
    ----------
    output_file : str or Path, optional
        CSV destination
    interval : int, optional
        Record every N iterations (default: 1)

    Examples
    --------
    >>> callback = RegionMeansCallback("results/iy_means.csv")
    >>> iy.run(iterations=10, callbacks=[callback])
    """

    def __init__(self, output_file=None, interval: int = 1):
        super().__init__()
        self.output_file = Path(output_file) if output_file is not None else None
        self.interval = interval
        self.history = []
        self._header_written = False

    def __call__(self, algorithm) -> None:
        if algorithm.iteration % self.interval != 0:
            return

        means = np.asarray(algorithm.region_means, dtype=np.float64)
        self.history.append((algorithm.iteration, means.copy()))

        if self.output_file is None:
            return

        if not self._header_written:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, 'w') as f:
                regions = ",".join(f"region_{i}" for i in range(means.size))
                f.write(f"iteration,{regions}\n")
            self._header_written = True

        with open(self.output_file, 'a') as f:
            values = ",".join(f"{m:.8e}" for m in means)
            f.write(f"{algorithm.iteration},{values}\n")


class SaveIterationCallback(Callback):
    """
    Callback to save the current estimate at specific iterations.

    Parameters
    ----------
    output_dir : str or Path
        Directory to save iteration files
    interval : int
        Save every N iterations
    prefix : str, optional
        Prefix for saved filenames (default: "iter")
    geometry : ImageGeometry, optional
        Grid used for the output affine
    affine : np.ndarray, optional
        Affine of the input image; takes precedence over ``geometry``
    save_first_n : int, optional
        Save the first N iterations (default: 5)
    """

    def __init__(
        self,
        output_dir: Path,
        interval: int = 10,
        prefix: str = "iter",
        geometry=None,
        affine=None,
        save_first_n: int = 5,
    ):
        super().__init__()
        self.output_dir = Path(output_dir)
        self.interval = interval
        self.prefix = prefix
        self.geometry = geometry
        self.affine = affine
        self.save_first_n = save_first_n

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def __call__(self, algorithm) -> None:
        """Save current solution at specified intervals."""
        # Save first N iterations (1, 2, 3, 4, 5)
        if algorithm.iteration <= self.save_first_n:
            should_save = True
        # Then save at regular intervals (10, 20, 30...)
        elif algorithm.iteration % self.interval == 0:
            should_save = True
        else:
            should_save = False

        if not should_save:
            return

        output_path = self.output_dir / f"{self.prefix}_{algorithm.iteration:04d}.nii.gz"
        save_image(algorithm.solution, output_path,
                   geometry=self.geometry, affine=self.affine)
