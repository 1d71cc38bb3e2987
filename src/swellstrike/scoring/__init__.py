"""Quality scoring for normalized readings.

Scores are pure functions of a Reading: the same reading always produces
the same integer in [0, 100].
"""

from typing import Mapping, Optional

from swellstrike.cache.models import Domain, Reading, ScoredReading
from swellstrike.scoring.bands import SCORE_MAX, SCORE_MIN, Band, BandTable, Factor
from swellstrike.scoring.ski import SKI_TABLE
from swellstrike.scoring.surf import SURF_TABLE

DEFAULT_TABLES: Mapping[Domain, BandTable] = {
    Domain.SURF: SURF_TABLE,
    Domain.SKI: SKI_TABLE,
}


def score(reading: Reading, table: Optional[BandTable] = None) -> int:
    """Score a reading against a band table, clamped to [0, 100].

    Raises:
        ValueError: If no table is given; use score_reading to pick one by domain
    """
    if table is None:
        raise ValueError("score() needs a band table; use score_reading() to score by domain")
    return table.score(reading)


def score_reading(
    reading: Reading,
    domain: Domain,
    tables: Optional[Mapping[Domain, BandTable]] = None,
) -> ScoredReading:
    """Score a reading with its domain's table and wrap it as a ScoredReading."""
    table = (tables or DEFAULT_TABLES)[domain]
    return ScoredReading(reading=reading, score=table.score(reading), domain=domain)


__all__ = [
    "Band",
    "BandTable",
    "DEFAULT_TABLES",
    "Factor",
    "SCORE_MAX",
    "SCORE_MIN",
    "SKI_TABLE",
    "SURF_TABLE",
    "score",
    "score_reading",
]
