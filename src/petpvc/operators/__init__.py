"""Operators for PVC."""

from petpvc.operators.blurring import GaussianBlurringOperator, create_gaussian_blur

__all__ = [
    "GaussianBlurringOperator",
    "create_gaussian_blur",
]
