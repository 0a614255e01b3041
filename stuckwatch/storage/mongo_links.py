"""Read-only access to the `links` collection for stuck-item reports."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pymongo.database import Database

from stuckwatch.checks.stages import SAMPLE_LIMIT, StageConfig
from stuckwatch.reports.report_types import StuckItem, StuckReport
from stuckwatch.storage.mongo_connection import get_db


logger = logging.getLogger(__name__)


class MongoLinksStore:
    def __init__(self, db_getter: Optional[Callable[[], Database]] = None, *, sample_limit: int = SAMPLE_LIMIT):
        self._db_getter = db_getter or get_db
        self.sample_limit = sample_limit

    def stuck_report(self, stage: StageConfig) -> StuckReport:
        """Count and sample the links that have not cleared `stage`.

        Two point-in-time reads (count, then find); the sample is in natural order,
        so `total` can exceed `len(results)`. PyMongoError propagates to the caller.
        """
        coll = self._db_getter()[stage.collection]
        query = stage.query()

        total = coll.count_documents(query)
        cursor = coll.find(query, stage.projection()).limit(self.sample_limit)
        results = [StuckItem.from_document(doc) for doc in cursor]

        logger.debug(f"{stage.slug}: total={total} sampled={len(results)}")
        return StuckReport(total=int(total), results=results)
