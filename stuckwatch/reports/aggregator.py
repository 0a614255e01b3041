"""Dashboard fan-out: fetch every stage at once and roll up pipeline health."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from stuckwatch.checks.stages import STAGES, StageConfig
from stuckwatch.reports.filtering import HealthStatus, classify_status
from stuckwatch.reports.report_types import StuckReport


logger = logging.getLogger(__name__)

StageResult = Tuple[StageConfig, Optional[StuckReport]]


@dataclass(frozen=True)
class DashboardSummary:
    total_stuck: int
    healthy: int
    warning: int
    critical: int
    failed: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def fetch_all_stages(
    fetch: Callable[[StageConfig], StuckReport],
    stages: Sequence[StageConfig] = STAGES,
) -> List[StageResult]:
    """Run `fetch` for every stage concurrently.

    Waits for all of them. A stage whose fetch raises comes back as None instead
    of failing the batch. Results keep the order of `stages`.
    """
    if not stages:
        return []
    with ThreadPoolExecutor(max_workers=len(stages)) as executor:
        futures = [(stage, executor.submit(fetch, stage)) for stage in stages]
        out: List[StageResult] = []
        for stage, fut in futures:
            try:
                out.append((stage, fut.result()))
            except Exception as e:
                logger.error(f"Stage {stage.slug} fetch failed: {e}")
                out.append((stage, None))
    return out


def summarize(results: Sequence[StageResult]) -> DashboardSummary:
    """Roll up stage results; a missing stage adds nothing except to `failed`."""
    counts = {status: 0 for status in HealthStatus}
    total = 0
    failed = 0
    for _, report in results:
        if report is None:
            failed += 1
            continue
        total += report.total
        counts[classify_status(report.total)] += 1
    return DashboardSummary(
        total_stuck=total,
        healthy=counts[HealthStatus.HEALTHY],
        warning=counts[HealthStatus.WARNING],
        critical=counts[HealthStatus.CRITICAL],
        failed=failed,
    )
