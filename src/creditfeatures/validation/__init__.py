"""Data contracts and the runner that enforces them."""

from __future__ import annotations

from .runner import ValidationRunner

__all__ = ["ValidationRunner"]
