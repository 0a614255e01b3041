"""HTTP client for the stuck-item check endpoints, plus the per-view state container."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Optional

import requests

from stuckwatch.checks.stages import StageConfig
from stuckwatch.contracts.stuck_report import validate_stuck_report
from stuckwatch.reports.csv_export import CsvExport, build_bulk_export, build_single_export
from stuckwatch.reports.filtering import HealthStatus, available_countries, classify_status, filter_by_country
from stuckwatch.reports.report_types import StuckReport


logger = logging.getLogger(__name__)


class StuckReportFetchError(RuntimeError):
    """A check endpoint could not be reached or returned something unusable."""


class StuckReportClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        # None waits as long as the server takes; the service applies no timeout either
        self.timeout = timeout

    def url_for(self, stage: StageConfig) -> str:
        return f"{self.base_url}{stage.endpoint}"

    def fetch(self, stage: StageConfig) -> StuckReport:
        url = self.url_for(stage)
        try:
            resp = self.session.get(url, timeout=self.timeout, headers={"Accept": "application/json"})
        except requests.RequestException as e:
            raise StuckReportFetchError(f"{stage.slug}: request failed: {e}") from e

        if not resp.ok:
            raise StuckReportFetchError(f"{stage.slug}: HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise StuckReportFetchError(f"{stage.slug}: response is not JSON") from e

        errors = validate_stuck_report(payload)
        if errors:
            raise StuckReportFetchError(f"{stage.slug}: invalid payload: {'; '.join(errors[:3])}")
        return StuckReport.from_payload(payload)


class StageReportView:
    """State for one stage page: last report, loading flag, filter selection.

    Lives as long as the view does; nothing is persisted. Refreshes are not
    de-duplicated or cancelled, so with overlapping refreshes the last response
    to land is what the view shows.
    """

    def __init__(self, stage: StageConfig, client: StuckReportClient):
        self.stage = stage
        self.client = client
        self.data: Optional[StuckReport] = None
        self.loading = False
        self.last_updated: Optional[datetime] = None
        self.selected_country: Optional[str] = None

    def refresh(self) -> bool:
        """Fetch the stage again. On failure the previous data stays on screen."""
        self.loading = True
        try:
            report = self.client.fetch(self.stage)
        except StuckReportFetchError as e:
            logger.error(f"Error fetching {self.stage.slug} data: {e}")
            return False
        finally:
            self.loading = False
        self.apply(report)
        return True

    def apply(self, report: StuckReport, at: Optional[datetime] = None) -> None:
        self.data = report
        self.last_updated = at or datetime.now()

    def select_country(self, country_code: Optional[str]) -> None:
        # picking the active country again clears the filter
        if country_code == self.selected_country:
            self.selected_country = None
        else:
            self.selected_country = country_code or None

    def clear_filter(self) -> None:
        self.selected_country = None

    @property
    def display(self) -> Optional[StuckReport]:
        return filter_by_country(self.data, self.selected_country)

    @property
    def displayed_total(self) -> int:
        report = self.display
        return report.total if report is not None else 0

    @property
    def status(self) -> HealthStatus:
        return classify_status(self.displayed_total)

    @property
    def countries(self):
        return available_countries(self.data)

    def export_bulk(self, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> CsvExport:
        return build_bulk_export(self.display, self.stage.export_prefix, now=now, tz=tz)

    def export_row(self, link_yid: str, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> CsvExport:
        report = self.display
        item = report.find(link_yid) if report is not None else None
        return build_single_export(item, self.stage.export_prefix, now=now, tz=tz)
