import dataclasses

import numpy as np
import pytest

from petpvc.algorithms.gtm import GTMCorrection
from petpvc.errors import DimensionMismatch, SingularMatrix
from petpvc.gtm import compute_gtm, solve_gtm


class CountingBlur:
    """Wraps a blur and counts how often it is applied."""

    def __init__(self, blur):
        self.blur = blur
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return self.blur(x)


def test_single_full_region_gives_unit_gtm(blur):
    masks = np.ones((6, 6, 6, 1))
    result = compute_gtm(masks, blur)
    assert result.matrix.shape == (1, 1)
    assert np.allclose(result.matrix, 1.0)
    assert np.allclose(result.region_mass, 216.0)
    assert [f.name for f in dataclasses.fields(result)] == ["matrix", "region_mass"]


def test_disjoint_regions_diagonal_dominates(two_region_masks, blur):
    matrix = compute_gtm(two_region_masks, blur).matrix
    assert matrix[0, 1] > 0.0
    assert matrix[0, 1] < matrix[0, 0]
    assert matrix[1, 0] < matrix[1, 1]
    assert matrix[0, 1] < matrix[1, 1]
    assert matrix[1, 0] < matrix[0, 0]


def test_gtm_rows_sum_to_one_for_partition(two_region_masks, blur):
    # blur of the sum of all masks is uniform, so each row sums to 1
    matrix = compute_gtm(two_region_masks, blur).matrix
    assert np.allclose(matrix.sum(axis=1), 1.0)


def test_gtm_not_symmetric_for_unequal_regions(shape, blur):
    masks = np.zeros(shape + (2,))
    masks[:3, ..., 0] = 1.0
    masks[3:, ..., 1] = 1.0
    matrix = compute_gtm(masks, blur).matrix
    assert not np.isclose(matrix[0, 1], matrix[1, 0])


def test_each_mask_blurred_once(shape, blur):
    masks = np.zeros(shape + (4,))
    for k in range(4):
        masks[:, :, 2 * k:2 * k + 3, k] = 1.0
    counting = CountingBlur(blur)
    compute_gtm(masks, counting)
    assert counting.calls == 4


def test_solver_round_trip():
    rng = np.random.default_rng(5)
    matrix = np.eye(4) * 0.8 + rng.uniform(0.0, 0.05, size=(4, 4))
    truth = np.array([10.0, 25.0, 3.0, 70.0])
    assert np.allclose(solve_gtm(matrix, matrix @ truth), truth)


def test_identical_masks_are_singular(shape, blur):
    mask = np.zeros(shape)
    mask[:5] = 1.0
    masks = np.stack([mask, mask, 1.0 - mask], axis=3)
    result = compute_gtm(masks, blur)
    with pytest.raises(SingularMatrix):
        solve_gtm(result.matrix, np.ones(3))


def test_exactly_singular_matrix_rejected():
    with pytest.raises(SingularMatrix):
        solve_gtm(np.ones((2, 2)), np.ones(2))


def test_condition_limit_is_configurable():
    matrix = np.array([[1.0, 0.0], [0.0, 1e-4]])
    assert np.allclose(solve_gtm(matrix, [1.0, 1e-4]), [1.0, 1.0])
    with pytest.raises(SingularMatrix, match="ill-conditioned"):
        solve_gtm(matrix, [1.0, 1e-4], condition_limit=100.0)


def test_non_finite_matrix_rejected():
    with pytest.raises(SingularMatrix):
        solve_gtm(np.array([[1.0, np.nan], [0.0, 1.0]]), np.ones(2))


def test_solver_shape_checks():
    with pytest.raises(DimensionMismatch):
        solve_gtm(np.eye(2), np.ones(3))
    with pytest.raises(DimensionMismatch):
        solve_gtm(np.ones((2, 3)), np.ones(2))


def test_gtm_correction_recovers_true_means(two_region_masks, two_region_observed, blur):
    gtm = GTMCorrection(two_region_observed, two_region_masks, blur)
    corrected = gtm.run()
    # observed means are contaminated by spill-over
    assert gtm.observed_means[0] < 100.0
    assert gtm.observed_means[1] > 50.0
    assert np.allclose(corrected, [100.0, 50.0], rtol=1e-8)
    assert gtm.condition_number >= 1.0
