"""Command-line interface configuration and utilities."""

from petpvc.cli.config import PVCConfig, parse_common_args

__all__ = [
    "PVCConfig",
    "parse_common_args",
]
