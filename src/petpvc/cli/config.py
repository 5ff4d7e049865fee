from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from petpvc.algorithms.iterative_yang import DEFAULT_ITERATIONS
from petpvc.gtm import DEFAULT_CONDITION_LIMIT

METHODS = ("rbv", "iy", "gtm")


def _tuple3(values: Sequence[float]) -> Tuple[float, float, float]:
    if len(values) != 3:
        raise argparse.ArgumentTypeError("Expected three values for FWHM.")
    return float(values[0]), float(values[1]), float(values[2])


def _positive_float(value: str) -> float:
    number = float(value)
    if not number > 0.0:
        raise argparse.ArgumentTypeError(f"Expected a value > 0, got {value}.")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected an integer >= 1, got {value}.")
    return number


@dataclass
class PVCConfig:
    pet_file: Optional[Path] = None
    mask_file: Optional[Path] = None
    output_file: Optional[Path] = None
    method: str = "iy"
    fwhm: Tuple[float, float, float] = (6.0, 6.0, 6.0)
    iterations: int = DEFAULT_ITERATIONS
    debug: bool = False
    backend: str = "auto"
    condition_limit: float = DEFAULT_CONDITION_LIMIT
    fuzzy_correction: bool = True
    means_file: Optional[Path] = None
    figure_file: Optional[Path] = None
    save_interval: int = 0
    save_first_n: int = 5

    def summary_lines(self) -> Iterable[str]:
        yield "PVC configuration:"
        yield f"  pet_file: {self.pet_file}"
        yield f"  mask_file: {self.mask_file}"
        yield f"  output_file: {self.output_file}"
        yield f"  method: {self.method}"
        yield f"  fwhm (mm): {self.fwhm}"
        if self.method == "iy":
            yield f"  iterations: {self.iterations}"
        yield f"  backend: {self.backend}"
        yield f"  condition_limit: {self.condition_limit:.3g}"
        yield f"  fuzzy_correction: {self.fuzzy_correction}"
        yield f"  debug: {self.debug}"


def parse_common_args(
    *,
    defaults: PVCConfig,
    description: str,
    argv: Optional[Sequence[str]] = None,
) -> Tuple[PVCConfig, argparse.Namespace]:
    parser = argparse.ArgumentParser(description=description)

    parser.add_argument("petfile", type=Path, help="PET image (.nii/.nii.gz)")
    parser.add_argument("maskfile", type=Path, help="4-D region mask stack (.nii/.nii.gz)")
    parser.add_argument("outputfile", type=Path,
                        help="Corrected image, or region table for --method gtm")

    parser.add_argument("-x", "--fwhm-x", type=_positive_float, required=True,
                        help="The full-width at half maximum in mm along x-axis")
    parser.add_argument("-y", "--fwhm-y", type=_positive_float, required=True,
                        help="The full-width at half maximum in mm along y-axis")
    parser.add_argument("-z", "--fwhm-z", type=_positive_float, required=True,
                        help="The full-width at half maximum in mm along z-axis")

    parser.add_argument("-m", "--method", choices=METHODS, default=defaults.method)
    parser.add_argument("-i", "--iter", dest="iterations", type=_positive_int,
                        default=defaults.iterations, help="Number of iterations (IY only)")
    parser.add_argument("-d", "--debug", action="store_true", default=defaults.debug,
                        help="Prints debug information")
    parser.add_argument("--backend", choices=["auto", "torch", "numba", "scipy"],
                        default=defaults.backend)
    parser.add_argument("--condition-limit", type=_positive_float,
                        default=defaults.condition_limit,
                        help="Largest accepted GTM condition number")
    parser.add_argument("--fuzzy-correction", dest="fuzzy_correction", action="store_true",
                        default=defaults.fuzzy_correction)
    parser.add_argument("--no-fuzzy-correction", dest="fuzzy_correction", action="store_false")
    parser.add_argument("--means-file", type=Path, default=defaults.means_file,
                        help="Write observed/corrected region means (TSV)")
    parser.add_argument("--figure-file", type=Path, default=defaults.figure_file,
                        help="Save a central profile plot of input vs corrected image")
    parser.add_argument("--save-interval", type=int, default=defaults.save_interval,
                        help="Save IY estimates every N iterations (0 = disabled)")
    parser.add_argument("--save-first-n", type=int, default=defaults.save_first_n,
                        help="Save first N iterations before using interval")

    args = parser.parse_args(argv)

    config = PVCConfig(
        pet_file=args.petfile,
        mask_file=args.maskfile,
        output_file=args.outputfile,
        method=args.method,
        fwhm=_tuple3((args.fwhm_x, args.fwhm_y, args.fwhm_z)),
        iterations=args.iterations,
        debug=args.debug,
        backend=args.backend,
        condition_limit=args.condition_limit,
        fuzzy_correction=args.fuzzy_correction,
        means_file=args.means_file,
        figure_file=args.figure_file,
        save_interval=args.save_interval,
        save_first_n=args.save_first_n,
    )
    return config, args
