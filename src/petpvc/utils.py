"""Utility functions for the petpvc package."""

from pathlib import Path

import numpy as np

from petpvc.geometry import ImageGeometry


def get_array(x):
    """
    Extract numpy array from various data containers.

    Parameters
    ----------
    x : object
        Data container (object exposing ``as_array``/``asarray`` or a numpy array)

    Returns
    -------
    np.ndarray
        Numpy array representation
    """
    if hasattr(x, 'asarray'):
        return x.asarray()
    elif hasattr(x, 'as_array'):
        return x.as_array()
    elif isinstance(x, np.ndarray):
        return x
    else:
        return np.asarray(x)


def _is_nifti(filepath: Path) -> bool:
    return filepath.suffix in ['.nii', '.gz'] or str(filepath).endswith('.nii.gz')


def _unsupported(filepath: Path) -> ValueError:
    return ValueError(
        f"Unsupported file format: {filepath.suffix}. "
        "Supported formats: .nii, .nii.gz"
    )


def load_nifti(filepath):
    """
    Load a NIfTI file as a float64 array in (x, y, z[, t]) order.

    Parameters
    ----------
    filepath : str or Path
        Path to .nii or .nii.gz file

    Returns
    -------
    data : np.ndarray
    geometry : ImageGeometry
        Spatial grid with voxel sizes (mm) read from the affine
    affine : np.ndarray
        4x4 affine, kept so outputs can be written on the input grid
    """
    import nibabel as nib

    nii = nib.load(str(filepath))
    data = np.asarray(nii.get_fdata(), dtype=np.float64)
    voxel_sizes = nib.affines.voxel_sizes(nii.affine)[:3]
    geometry = ImageGeometry.from_array(data, voxel_sizes)
    return data, geometry, nii.affine


def load_image(filepath):
    """
    Load a 3-D intensity volume (supports .nii, .nii.gz).

    Returns
    -------
    data, geometry, affine
        See :func:`load_nifti`.
    """
    filepath = Path(filepath)
    if not _is_nifti(filepath):
        raise _unsupported(filepath)

    data, geometry, affine = load_nifti(filepath)
    # singleton trailing dimensions are common for 3-D PET exports
    while data.ndim > 3 and data.shape[-1] == 1:
        data = data[..., 0]
    if data.ndim != 3:
        raise ValueError(f"Expected a 3-D image in {filepath}, got shape {data.shape}.")
    return data, geometry, affine


def load_mask_stack(filepath):
    """
    Load a 4-D region mask stack (x, y, z, region).

    The stack is returned as stored; layout checks are done by
    :func:`petpvc.regions.check_mask_stack`.
    """
    filepath = Path(filepath)
    if not _is_nifti(filepath):
        raise _unsupported(filepath)
    return load_nifti(filepath)


def save_image(image, filepath, geometry=None, affine=None):
    """
    Save a 3-D volume to file.

    Parameters
    ----------
    image : np.ndarray
        Volume in (x, y, z) order
    filepath : str or Path
        Output file path (.nii, .nii.gz)
    geometry : ImageGeometry, optional
        Used to build a diagonal affine when ``affine`` is not given
    affine : np.ndarray, optional
        Affine of the source image
    """
    filepath = Path(filepath)
    if not _is_nifti(filepath):
        raise _unsupported(filepath)

    import nibabel as nib

    data = np.asarray(get_array(image), dtype=np.float32)
    if affine is None:
        voxel_sizes = geometry.voxel_size if geometry is not None else (1.0, 1.0, 1.0)
        affine = np.diag([voxel_sizes[0], voxel_sizes[1], voxel_sizes[2], 1.0])

    filepath.parent.mkdir(parents=True, exist_ok=True)
    nib.save(nib.Nifti1Image(data, affine), str(filepath))


def save_region_table(filepath, observed_means, corrected_means=None):
    """Write per-region means as a tab separated table."""
    filepath = Path(filepath)
    observed = np.asarray(observed_means, dtype=np.float64)
    columns = [np.arange(observed.size), observed]
    header = "Region\tObserved"
    if corrected_means is not None:
        columns.append(np.asarray(corrected_means, dtype=np.float64))
        header += "\tCorrected"
    filepath.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(
        filepath,
        np.column_stack(columns),
        delimiter="\t",
        header=header,
        comments="",
        fmt=["%d"] + ["%.8e"] * (len(columns) - 1),
    )
