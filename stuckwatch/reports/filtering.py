"""Country filter and health classification over stuck reports (pure functions)."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from stuckwatch.reports.report_types import StuckReport


WARNING_THRESHOLD = 1
CRITICAL_THRESHOLD = 10


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


def classify_status(total: int) -> HealthStatus:
    """0 stuck is healthy, 1..9 is a warning, 10 or more is critical."""
    if total >= CRITICAL_THRESHOLD:
        return HealthStatus.CRITICAL
    if total >= WARNING_THRESHOLD:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def filter_by_country(report: Optional[StuckReport], country_code: Optional[str]) -> Optional[StuckReport]:
    """Narrow a report to one country code.

    Filters the sample only, no re-query: the filtered total counts sampled rows,
    so it undercounts whenever the report was truncated.
    """
    if report is None or not country_code:
        return report
    matches = [r for r in report.results if r.country_code == country_code]
    return StuckReport(total=len(matches), results=matches)


def available_countries(report: Optional[StuckReport]) -> List[str]:
    """Distinct country codes present in the sample, sorted."""
    if report is None:
        return []
    return sorted({r.country_code for r in report.results if r.country_code})
