#!/usr/bin/env python3
"""CLI entry point for running partial volume correction."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

import numpy as np
from nibabel.filebasedimages import ImageFileError

from petpvc.algorithms import RBV, GTMCorrection, IterativeYang
from petpvc.callbacks import RegionMeansCallback, SaveIterationCallback
from petpvc.cli.config import PVCConfig, parse_common_args
from petpvc.errors import InputFileError, InvalidParameter, PVCError
from petpvc.operators.blurring import create_gaussian_blur
from petpvc.regions import check_mask_stack, check_same_grid, fuzzy_correct, region_means
from petpvc.utils import load_image, load_mask_stack, save_image, save_region_table

LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    level_name = os.environ.get("PETPVC_LOG_LEVEL")
    if debug:
        level = logging.DEBUG
    elif level_name is None:
        level = logging.INFO
    else:
        level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(format="%(levelname)s:%(name)s:%(message)s", level=level)


def configure_matplotlib() -> None:
    import matplotlib

    matplotlib.use("Agg")


def save_profile_plot(profiles: Mapping[str, np.ndarray], output: Path) -> None:
    """Save 1D profile comparison through the centre of each volume."""
    import matplotlib.pyplot as plt

    plt.figure(figsize=(10, 4))
    for label, img in profiles.items():
        centre_y = img.shape[1] // 2
        centre_z = img.shape[2] // 2
        plt.plot(img[:, centre_y, centre_z], label=label)
    plt.xlabel("x (voxels)")
    plt.ylabel("Intensity")
    plt.legend()
    plt.tight_layout()
    output.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output)
    plt.close()


def _read(loader, filepath, what):
    try:
        return loader(filepath)
    except ImageFileError as e:
        raise InputFileError(f"Cannot read {what} input file: {filepath}") from e


def build_blur(config: PVCConfig, geometry):
    """Create the PSF blur, reporting an unusable backend as a parameter error."""
    try:
        return create_gaussian_blur(config.fwhm, geometry, backend=config.backend)
    except (ImportError, RuntimeError) as e:
        raise InvalidParameter(f"Cannot use blur backend '{config.backend}': {e}") from e


def load_inputs(config: PVCConfig):
    """Load PET volume and mask stack, checking they share a grid."""
    pet, geometry, affine = _read(load_image, config.pet_file, "PET")
    masks, _, _ = _read(load_mask_stack, config.mask_file, "mask")
    masks = check_mask_stack(masks)
    check_same_grid(pet, masks)
    if config.fuzzy_correction:
        masks = fuzzy_correct(masks)
    LOGGER.info("PET image %s, voxel size %s mm, %d regions",
                pet.shape, geometry.voxel_size, masks.shape[3])
    return pet, masks, geometry, affine


def run_pipeline(config: PVCConfig) -> None:
    for line in config.summary_lines():
        LOGGER.info(line)

    pet, masks, geometry, affine = load_inputs(config)
    blur = build_blur(config, geometry)

    if config.method == "gtm":
        gtm = GTMCorrection(pet, masks, blur, condition_limit=config.condition_limit)
        gtm.run()
        save_region_table(config.output_file, gtm.observed_means, gtm.corrected_means)
        LOGGER.info("Region table written to %s", config.output_file)
        return

    if config.method == "rbv":
        algorithm = RBV(pet, masks, blur, condition_limit=config.condition_limit)
        corrected = algorithm.run()
        observed, corrected_means = algorithm.observed_means, algorithm.corrected_means
    else:
        callbacks = []
        means_callback = RegionMeansCallback()
        callbacks.append(means_callback)
        if config.save_interval > 0:
            callbacks.append(
                SaveIterationCallback(
                    output_dir=config.output_file.parent,
                    interval=config.save_interval,
                    prefix="iy_iter",
                    affine=affine,
                    save_first_n=config.save_first_n,
                )
            )
        algorithm = IterativeYang(pet, masks, blur, verbose=config.debug)
        corrected = algorithm.run(iterations=config.iterations, callbacks=callbacks)
        observed = means_callback.history[0][1]
        corrected_means = region_means(corrected, masks)

    if config.means_file is not None:
        save_region_table(config.means_file, observed, corrected_means)

    if config.figure_file is not None:
        configure_matplotlib()
        save_profile_plot({"Input": pet, config.method.upper(): corrected}, config.figure_file)

    save_image(corrected, config.output_file, geometry=geometry, affine=affine)
    LOGGER.info("Corrected image written to %s", config.output_file)


def main(argv=None) -> int:
    config, _ = parse_common_args(
        defaults=PVCConfig(),
        description="Performs partial volume correction (RBV, iterative Yang or GTM).",
        argv=argv,
    )
    configure_logging(config.debug)
    try:
        run_pipeline(config)
    except PVCError as e:
        LOGGER.error("[Error]\t%s: %s", type(e).__name__, e)
        return 1
    except (OSError, ValueError) as e:
        LOGGER.error("[Error]\t%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
