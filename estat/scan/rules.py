"""
Heuristic filter: small named predicates plus an explicit composition policy.

Every predicate looks at one MatchContext and answers PASS, FAIL or ABSTAIN.
ABSTAIN means "no opinion" (e.g. no head-to-head history under the
pass-through policy) and is neutral under both policies:

- any: candidate when at least one predicate PASSes
- all: candidate when no predicate FAILs and at least one PASSes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from estat.etl.base import FixtureData
from estat.scan.form_sources import TeamForm
from estat.scan.records import PredictionType


class RuleOutcome(Enum):
    PASS = "pass"
    FAIL = "fail"
    ABSTAIN = "abstain"


@dataclass
class MatchContext:
    """Everything the predicates may look at for one fixture."""

    fixture: FixtureData
    home: TeamForm
    away: TeamForm
    meetings: Optional[list[FixtureData]] = None  # None = head-to-head not fetched


@dataclass(frozen=True)
class RuleConfig:
    """Thresholds. Defaults are the values of the most recent scan revision."""

    goal_avg_threshold: float = 1.6
    conceded_avg_threshold: float = 1.4
    h2h_avg_threshold: float = 2.5
    h2h_last: int = 5
    h2h_missing_policy: str = "pass_through"  # or "disqualify"
    dominance_margin: int = 2
    dominance_min_h2h: int = 3

    @classmethod
    def from_settings(cls, settings) -> "RuleConfig":
        return cls(
            goal_avg_threshold=settings.SCAN_GOAL_AVG_THRESHOLD,
            conceded_avg_threshold=settings.SCAN_CONCEDED_AVG_THRESHOLD,
            h2h_avg_threshold=settings.SCAN_H2H_AVG_THRESHOLD,
            h2h_last=settings.SCAN_H2H_LAST,
            h2h_missing_policy=settings.SCAN_H2H_MISSING_POLICY,
            dominance_margin=settings.SCAN_DOMINANCE_MARGIN,
            dominance_min_h2h=settings.SCAN_DOMINANCE_MIN_H2H,
        )


def played_meetings(ctx: MatchContext, last: int) -> list[FixtureData]:
    """Finished meetings, most recent first, excluding the fixture itself."""
    if not ctx.meetings:
        return []
    played = [
        m for m in ctx.meetings
        if m.total_goals is not None and m.external_id != ctx.fixture.external_id
    ]
    played.sort(key=lambda m: (m.kickoff.timestamp() if m.kickoff else 0.0, m.external_id), reverse=True)
    return played[:last]


def h2h_average_goals(meetings: list[FixtureData]) -> Optional[float]:
    """Mean combined goals per meeting, None without meetings."""
    if not meetings:
        return None
    return sum(m.total_goals for m in meetings) / len(meetings)


def goal_average_rule(ctx: MatchContext, cfg: RuleConfig) -> RuleOutcome:
    """At least one side has a poor attack (goals-for average below the cutoff)."""
    if ctx.home.goals_for_avg < cfg.goal_avg_threshold or ctx.away.goals_for_avg < cfg.goal_avg_threshold:
        return RuleOutcome.PASS
    return RuleOutcome.FAIL


def conceded_average_rule(ctx: MatchContext, cfg: RuleConfig) -> RuleOutcome:
    """At least one side has a tight defence (goals-against average below the cutoff)."""
    if (
        ctx.home.goals_against_avg < cfg.conceded_avg_threshold
        or ctx.away.goals_against_avg < cfg.conceded_avg_threshold
    ):
        return RuleOutcome.PASS
    return RuleOutcome.FAIL


def h2h_average_rule(ctx: MatchContext, cfg: RuleConfig) -> RuleOutcome:
    """Recent meetings averaged at most the cutoff in combined goals."""
    average = h2h_average_goals(played_meetings(ctx, cfg.h2h_last))
    if average is None:
        if cfg.h2h_missing_policy == "disqualify":
            return RuleOutcome.FAIL
        return RuleOutcome.ABSTAIN
    return RuleOutcome.PASS if average <= cfg.h2h_avg_threshold else RuleOutcome.FAIL


@dataclass
class Dominance:
    """One side dominates the other, by head-to-head wins or by form wins."""

    stronger: TeamForm
    weaker: TeamForm
    source: str  # "h2h" or "form"
    stronger_wins: int
    weaker_wins: int


def find_dominance(ctx: MatchContext, cfg: RuleConfig) -> Optional[Dominance]:
    """
    Head-to-head wins are used when enough meetings exist; otherwise, or when
    they show no dominance, the wins in each side's recent form are compared.
    """
    meetings = played_meetings(ctx, cfg.h2h_last)
    if len(meetings) >= cfg.dominance_min_h2h:
        winners = [m.winner_id() for m in meetings]
        home_wins = sum(1 for w in winners if w is not None and w == ctx.home.team_id)
        away_wins = sum(1 for w in winners if w is not None and w == ctx.away.team_id)
        if home_wins >= away_wins + cfg.dominance_margin:
            return Dominance(ctx.home, ctx.away, "h2h", home_wins, away_wins)
        if away_wins >= home_wins + cfg.dominance_margin:
            return Dominance(ctx.away, ctx.home, "h2h", away_wins, home_wins)

    if ctx.home.form and ctx.away.form:
        home_wins, away_wins = ctx.home.wins, ctx.away.wins
        if home_wins >= away_wins + cfg.dominance_margin:
            return Dominance(ctx.home, ctx.away, "form", home_wins, away_wins)
        if away_wins >= home_wins + cfg.dominance_margin:
            return Dominance(ctx.away, ctx.home, "form", away_wins, home_wins)

    return None


def dominance_prediction(ctx: MatchContext, cfg: RuleConfig) -> Optional[tuple[PredictionType, Dominance]]:
    """
    Historical dominance confirmed by current form.

    Stronger form score above the weaker's -> WINNER, equal -> DOUBLE_CHANCE,
    below -> nothing.
    """
    dominance = find_dominance(ctx, cfg)
    if dominance is None:
        return None
    if dominance.stronger.score > dominance.weaker.score:
        return PredictionType.WINNER, dominance
    if dominance.stronger.score == dominance.weaker.score:
        return PredictionType.DOUBLE_CHANCE, dominance
    return None


def dominance_rule(ctx: MatchContext, cfg: RuleConfig) -> RuleOutcome:
    """Predicate form of the dominance check, for use as a low-score gate."""
    return RuleOutcome.PASS if dominance_prediction(ctx, cfg) else RuleOutcome.FAIL


Rule = Callable[[MatchContext, RuleConfig], RuleOutcome]

RULES: dict[str, Rule] = {
    "goal_average": goal_average_rule,
    "conceded_average": conceded_average_rule,
    "h2h_average": h2h_average_rule,
    "dominance": dominance_rule,
}

RULES_NEEDING_H2H = {"h2h_average", "dominance"}


class RuleSet:
    """Ordered, named predicates combined by an explicit policy."""

    def __init__(self, names: list[str], policy: str = "any"):
        unknown = [n for n in names if n not in RULES]
        if unknown:
            raise ValueError(f"Unknown rules: {unknown}")
        if policy not in ("any", "all"):
            raise ValueError(f"Unknown rule policy: {policy}")
        self.names = list(names)
        self.policy = policy

    @property
    def needs_head_to_head(self) -> bool:
        return any(n in RULES_NEEDING_H2H for n in self.names)

    def outcomes(self, ctx: MatchContext, cfg: RuleConfig) -> dict[str, RuleOutcome]:
        return {name: RULES[name](ctx, cfg) for name in self.names}

    def passes(self, ctx: MatchContext, cfg: RuleConfig) -> bool:
        results = self.outcomes(ctx, cfg).values()
        passed = any(r == RuleOutcome.PASS for r in results)
        if self.policy == "any":
            return passed
        return passed and not any(r == RuleOutcome.FAIL for r in results)


def weaker_team(ctx: MatchContext) -> Optional[TeamForm]:
    """Side with the strictly lower goals-for average; None on equal averages."""
    if ctx.home.goals_for_avg < ctx.away.goals_for_avg:
        return ctx.home
    if ctx.away.goals_for_avg < ctx.home.goals_for_avg:
        return ctx.away
    return None
