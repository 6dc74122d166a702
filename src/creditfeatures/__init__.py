"""Leakage-safe applicant feature engineering for the Home Credit default risk data."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("creditfeatures")
except PackageNotFoundError:  # pragma: no cover - package metadata unavailable in dev installs
    __version__ = "0.0.0"

__all__ = ["__version__"]
