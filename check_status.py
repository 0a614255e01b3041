#!/usr/bin/env python3
"""
Quick stuck-document status check against a running StuckWatch service.

Fetches every pipeline stage at once, prints the rolled-up health summary and,
with --export-dir, writes one CSV per stage that has stuck links.
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from stuckwatch.checks.stages import STAGES, get_stage, UnknownStageError
from stuckwatch.reports.aggregator import fetch_all_stages, summarize
from stuckwatch.reports.client import StageReportView, StuckReportClient
from stuckwatch.reports.csv_export import NoDataToExport
from stuckwatch.reports.filtering import classify_status, filter_by_country

load_dotenv()

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

API_URL = os.environ.get('STUCKWATCH_API_URL', 'http://localhost:5002')

STATUS_ICONS = {'healthy': '✅', 'warning': '⚠️ ', 'critical': '❌'}


def print_stage_line(stage, report, country=None):
    if report is None:
        print(f"  {stage.title}: ❓ unavailable")
        return
    shown = filter_by_country(report, country)
    status = classify_status(shown.total).value
    note = f" (sample of {len(report.results)} / {report.total})" if country and report.truncated else ""
    print(f"  {stage.title}: {STATUS_ICONS[status]} {shown.total} stuck{note}")


def check_all(client, country=None):
    """Overview of all four stages"""
    print("\n🔄 Pipeline Stages")
    print("-" * 40)

    results = fetch_all_stages(client.fetch)
    for stage, report in results:
        print_stage_line(stage, report, country)

    summary = summarize(results)
    print("\n📊 Summary")
    print("-" * 40)
    print(f"  Total stuck: {summary.total_stuck}")
    print(f"  Healthy: {summary.healthy}  Warning: {summary.warning}  Critical: {summary.critical}")
    if summary.failed:
        print(f"  Unavailable: {summary.failed}")
    return results, summary


def export_stage(view, export_dir):
    """Write the displayed rows of one stage view to export_dir"""
    try:
        export = view.export_bulk()
    except NoDataToExport:
        print(f"  {view.stage.title}: nothing to export")
        return None
    path = Path(export_dir) / export.filename
    path.write_text(export.content, encoding='utf-8')
    print(f"  {view.stage.title}: wrote {export.rows} rows to {path}")
    return path


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check documents stuck in the ingestion pipeline")
    parser.add_argument("--api-url", default=API_URL, help="StuckWatch service base URL")
    parser.add_argument("--stage", help="Only this stage (slug, e.g. website-scraping)")
    parser.add_argument("--country", help="Filter sampled rows by country code")
    parser.add_argument("--export-dir", help="Write CSV exports into this directory")
    args = parser.parse_args(argv)

    print("🔍 StuckWatch Pipeline Status Check")
    print("=" * 50)
    print(f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"API: {args.api_url}")

    client = StuckReportClient(args.api_url)

    if args.stage:
        try:
            stages = [get_stage(args.stage)]
        except UnknownStageError:
            print(f"Unknown stage '{args.stage}'. Choose from: {', '.join(s.slug for s in STAGES)}")
            return 2
        results = fetch_all_stages(client.fetch, stages)
        print()
        for stage, report in results:
            print_stage_line(stage, report, args.country)
    else:
        results, summary = check_all(client, args.country)

    if args.export_dir:
        print("\n💾 CSV Export")
        print("-" * 40)
        os.makedirs(args.export_dir, exist_ok=True)
        for stage, report in results:
            if report is None:
                print(f"  {stage.title}: skipped (unavailable)")
                continue
            view = StageReportView(stage, client)
            view.apply(report)
            view.select_country(args.country)
            export_stage(view, args.export_dir)

    failed = sum(1 for _, report in results if report is None)
    return 1 if failed == len(results) else 0


if __name__ == "__main__":
    sys.exit(main())
