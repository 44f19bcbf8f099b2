"""Curated competition list for the daily scan."""

from dataclasses import dataclass
from enum import Enum


class ScoringProfile(Enum):
    """Why a competition is on the scan list."""

    LOW_SCORING = "low_scoring"
    MAJOR = "major"
    INTERNATIONAL = "international"


@dataclass(frozen=True)
class Competition:
    """Competition configuration."""

    league_id: int
    name: str
    profile: ScoringProfile


CURATED_COMPETITIONS: list[Competition] = [
    # International tournaments
    Competition(1, "FIFA World Cup", ScoringProfile.INTERNATIONAL),
    Competition(4, "Euro Championship", ScoringProfile.INTERNATIONAL),
    Competition(9, "Copa America", ScoringProfile.INTERNATIONAL),
    # Historically low-scoring leagues
    Competition(135, "Serie A (Italy)", ScoringProfile.LOW_SCORING),
    Competition(197, "Super League 1 (Greece)", ScoringProfile.LOW_SCORING),
    Competition(262, "Liga MX (Mexico)", ScoringProfile.LOW_SCORING),
    Competition(71, "Serie A (Brazil)", ScoringProfile.LOW_SCORING),
    Competition(98, "J1 League (Japan)", ScoringProfile.LOW_SCORING),
    Competition(202, "Ligue 1 (Tunisia)", ScoringProfile.LOW_SCORING),
    Competition(290, "Persian Gulf Pro League (Iran)", ScoringProfile.LOW_SCORING),
    Competition(233, "Premier League (Egypt)", ScoringProfile.LOW_SCORING),
    Competition(129, "Primera Nacional (Argentina)", ScoringProfile.LOW_SCORING),
    Competition(239, "Primera A (Colombia)", ScoringProfile.LOW_SCORING),
    Competition(119, "Superliga (Denmark)", ScoringProfile.LOW_SCORING),
    Competition(113, "Allsvenskan (Sweden)", ScoringProfile.LOW_SCORING),
    # Major leagues
    Competition(39, "Premier League (England)", ScoringProfile.MAJOR),
    Competition(140, "La Liga (Spain)", ScoringProfile.MAJOR),
    Competition(78, "Bundesliga (Germany)", ScoringProfile.MAJOR),
    Competition(61, "Ligue 1 (France)", ScoringProfile.MAJOR),
    Competition(94, "Primeira Liga (Portugal)", ScoringProfile.MAJOR),
    Competition(88, "Eredivisie (Netherlands)", ScoringProfile.MAJOR),
    Competition(103, "Eliteserien (Norway)", ScoringProfile.MAJOR),
    Competition(218, "Bundesliga (Austria)", ScoringProfile.MAJOR),
    Competition(144, "Jupiler Pro League (Belgium)", ScoringProfile.MAJOR),
    Competition(40, "Championship (England)", ScoringProfile.MAJOR),
]

CURATED_LEAGUE_IDS: list[int] = [c.league_id for c in CURATED_COMPETITIONS]
