from __future__ import annotations

from ...core.enums import ClipMode
from .base import DurationCalculator
from .end_clipped_calculator import EndClippedCalculator
from .symmetric_calculator import SymmetricCalculator


def calculator_for(mode: ClipMode) -> DurationCalculator:
    if mode == ClipMode.SYMMETRIC:
        return SymmetricCalculator()
    return EndClippedCalculator()
