"""
Scan module.

Turns a day's fixtures into cached prediction records:
- form_sources: per-team recent form (embedded stats, head-to-head, latest games)
- rules: named predicates and their any/all composition
- scanner: the daily scan pipeline
- cache: per-day prediction store
- grading: result annotation for the dashboard
"""

from estat.scan.cache import CacheUnavailable, PredictionCache
from estat.scan.form_sources import FormSource, TeamForm, build_form_source
from estat.scan.grading import grade_records
from estat.scan.records import PredictionRecord, PredictionType
from estat.scan.rules import MatchContext, RuleConfig, RuleOutcome, RuleSet
from estat.scan.scanner import DailyScanner, ScanResult

__all__ = [
    "CacheUnavailable",
    "PredictionCache",
    "FormSource",
    "TeamForm",
    "build_form_source",
    "grade_records",
    "PredictionRecord",
    "PredictionType",
    "MatchContext",
    "RuleConfig",
    "RuleOutcome",
    "RuleSet",
    "DailyScanner",
    "ScanResult",
]
