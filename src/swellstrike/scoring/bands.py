"""Band tables for quality scoring.

A score is the sum of independent factor contributions, clamped to
[0, 100]. Each factor is an ordered list of bands; the first band whose
range contains the metric value contributes its points and the rest of the
factor is skipped. Metrics missing from a reading never match a band.

Bands are written in display units (feet, mph, inches, Fahrenheit) and
carry the conversion from the canonical SI value they read.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from swellstrike.cache.models import Reading
from swellstrike.utils.units import identity

SCORE_MIN = 0
SCORE_MAX = 100


@dataclass(frozen=True)
class Band:
    """A metric value range mapped to a fixed point contribution.

    Attributes:
        metric: Canonical metric name read from the Reading
        points: Contribution when the value falls in range (may be negative)
        low: Lower bound in display units, None for unbounded
        high: Upper bound in display units, None for unbounded
        low_inclusive: Whether `low` itself is in range
        high_inclusive: Whether `high` itself is in range
        convert: Canonical -> display unit conversion
    """

    metric: str
    points: int
    low: Optional[float] = None
    high: Optional[float] = None
    low_inclusive: bool = True
    high_inclusive: bool = False
    convert: Callable[[float], float] = identity

    def contains(self, value: float) -> bool:
        if self.low is not None:
            if value < self.low or (value == self.low and not self.low_inclusive):
                return False
        if self.high is not None:
            if value > self.high or (value == self.high and not self.high_inclusive):
                return False
        # NaN fails every comparison above, reject it explicitly
        return value == value

    def matches(self, reading: Reading) -> bool:
        if not reading.has(self.metric):
            return False
        return self.contains(self.convert(reading.metrics[self.metric]))


@dataclass(frozen=True)
class Factor:
    """Mutually exclusive bands scoring one aspect of conditions."""

    name: str
    bands: tuple[Band, ...]

    def contribution(self, reading: Reading) -> int:
        for band in self.bands:
            if band.matches(reading):
                return band.points
        return 0


@dataclass(frozen=True)
class BandTable:
    """A complete scoring function for one domain (or regional variant)."""

    name: str
    factors: tuple[Factor, ...]

    def breakdown(self, reading: Reading) -> dict[str, int]:
        """Per-factor contributions before clamping."""
        return {factor.name: factor.contribution(reading) for factor in self.factors}

    def score(self, reading: Reading) -> int:
        total = sum(self.breakdown(reading).values())
        return max(SCORE_MIN, min(SCORE_MAX, total))

    def with_factor(self, factor: Factor, name: Optional[str] = None) -> "BandTable":
        """Copy of this table with one factor replaced (or appended).

        Regional recalibration is expressed this way rather than as new code.
        """
        factors = list(self.factors)
        for i, existing in enumerate(factors):
            if existing.name == factor.name:
                factors[i] = factor
                break
        else:
            factors.append(factor)
        return replace(self, name=name or self.name, factors=tuple(factors))
