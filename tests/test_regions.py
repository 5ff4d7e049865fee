import numpy as np
import pytest

from petpvc.errors import DimensionMismatch, InvalidParameter, NumericDegenerate
from petpvc.regions import (
    check_mask_stack,
    check_same_grid,
    extract_region,
    fuzzy_correct,
    iter_regions,
    num_regions,
    region_means,
    region_sums,
)


def test_mask_stack_must_be_4d():
    with pytest.raises(DimensionMismatch, match="4-D"):
        check_mask_stack(np.ones((4, 4, 4)))


def test_mask_stack_needs_regions():
    with pytest.raises(DimensionMismatch, match="no regions"):
        check_mask_stack(np.ones((4, 4, 4, 0)))


def test_grid_mismatch_is_invalid_parameter(two_region_masks):
    with pytest.raises(InvalidParameter):
        check_same_grid(np.ones((10, 10, 9)), two_region_masks)


def test_extract_region_returns_independent_copy(two_region_masks):
    region = extract_region(two_region_masks, 1)
    assert region.shape == (10, 10, 10)
    region[...] = -1.0
    assert np.all(two_region_masks[..., 1] >= 0.0)
    with pytest.raises(IndexError):
        extract_region(two_region_masks, 2)


def test_iter_regions_order(two_region_masks):
    indices = [index for index, _ in iter_regions(two_region_masks)]
    assert indices == [0, 1]
    assert num_regions(two_region_masks) == 2


def test_region_sums_and_means(two_region_masks, two_region_truth):
    mass = region_sums(two_region_masks)
    assert np.allclose(mass, [500.0, 500.0])
    means = region_means(two_region_truth, two_region_masks)
    assert np.allclose(means, [100.0, 50.0])


def test_fuzzy_means_are_membership_weighted():
    masks = np.zeros((2, 1, 1, 1))
    masks[:, 0, 0, 0] = [1.0, 0.5]
    image = np.array([10.0, 40.0]).reshape(2, 1, 1)
    # (10 * 1 + 40 * 0.5) / 1.5
    assert np.allclose(region_means(image, masks), [20.0])


def test_empty_region_is_degenerate(two_region_masks):
    masks = np.concatenate([two_region_masks, np.zeros((10, 10, 10, 1))], axis=3)
    with pytest.raises(NumericDegenerate, match=r"\[2\]"):
        region_sums(masks)


def test_fuzzy_correct_clamps_invalid_values():
    masks = np.zeros((2, 2, 2, 2))
    masks[0, 0, 0] = [np.nan, 0.5]
    masks[1, 0, 0] = [-0.3, 0.2]
    masks[0, 1, 0] = [1.7, 0.0]
    corrected = fuzzy_correct(masks)
    assert corrected.shape == masks.shape
    assert np.all(np.isfinite(corrected))
    assert np.allclose(corrected[0, 0, 0], [0.0, 0.5])
    assert np.allclose(corrected[1, 0, 0], [0.0, 0.2])
    assert np.allclose(corrected[0, 1, 0], [1.0, 0.0])


def test_fuzzy_correct_renormalises_overlaps():
    masks = np.zeros((1, 1, 2, 2))
    masks[0, 0, 0] = [0.8, 0.6]
    masks[0, 0, 1] = [0.3, 0.2]
    corrected = fuzzy_correct(masks)
    assert np.isclose(corrected[0, 0, 0].sum(), 1.0)
    assert np.allclose(corrected[0, 0, 0], [0.8 / 1.4, 0.6 / 1.4])
    # sums below one are not inflated
    assert np.allclose(corrected[0, 0, 1], [0.3, 0.2])


def test_fuzzy_correct_without_partition_keeps_overlaps():
    masks = np.zeros((1, 1, 1, 2))
    masks[0, 0, 0] = [0.8, 0.6]
    corrected = fuzzy_correct(masks, partition=False)
    assert np.allclose(corrected[0, 0, 0], [0.8, 0.6])


def test_fuzzy_correct_leaves_partition_untouched(two_region_masks):
    assert np.array_equal(fuzzy_correct(two_region_masks), two_region_masks)


def test_fuzzy_correct_is_idempotent():
    rng = np.random.default_rng(11)
    masks = rng.normal(0.4, 0.5, size=(6, 5, 4, 3))
    masks[0, 0, 0, 0] = np.nan
    once = fuzzy_correct(masks)
    twice = fuzzy_correct(once)
    assert np.array_equal(once, twice)
