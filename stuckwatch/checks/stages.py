"""Pipeline stage registry for stuck-item checks.

Every check is the same read against the shared `links` collection; a stage only
differs in which `download_analysis.<key>.processing_done` flag it looks at, an
optional extra filter, and the projected fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


LINKS_COLLECTION = "links"
SAMPLE_LIMIT = 100

BASE_PROJECTION: Tuple[str, ...] = ("link_yid", "url", "source_channel.country_code", "createdAt")


class UnknownStageError(KeyError):
    """Raised when a slug does not name a registered stage."""


@dataclass(frozen=True)
class StageConfig:
    slug: str
    analysis_key: str
    title: str
    export_prefix: str
    projection_fields: Tuple[str, ...] = BASE_PROJECTION
    extra_filter: Optional[Dict[str, Any]] = field(default=None, hash=False)
    collection: str = LINKS_COLLECTION

    @property
    def endpoint(self) -> str:
        return f"/checks/stuck-in-{self.slug}"

    @property
    def done_flag(self) -> str:
        return f"download_analysis.{self.analysis_key}.processing_done"

    @property
    def has_country(self) -> bool:
        return "source_channel.country_code" in self.projection_fields

    def query(self) -> Dict[str, Any]:
        q: Dict[str, Any] = {self.done_flag: False}
        if self.extra_filter:
            q.update(self.extra_filter)
        return q

    def projection(self) -> Dict[str, int]:
        proj = {name: 1 for name in self.projection_fields}
        proj["_id"] = 0
        return proj


SOURCE_CHANNEL_ANALYSIS = StageConfig(
    slug="source-channel-analysis",
    analysis_key="source-channel-analysis",
    title="Stuck in Source Channel Analysis",
    export_prefix="stuck-source-channel-analysis",
)

WEBSITE_SCRAPING = StageConfig(
    slug="website-scraping",
    analysis_key="website-scraping",
    title="Stuck in Website Scraping",
    export_prefix="stuck-website-scraping",
    # excluded links never count as stuck here, whatever their processing state
    extra_filter={"exclude_link": {"$ne": True}},
)

GENERAL_FILE_PARSER = StageConfig(
    slug="general-file-parser",
    analysis_key="general-file-parser",
    title="Stuck in General File Parser",
    export_prefix="stuck-general-file-parser",
)

# The classifier check never projected the country code; its country column is always N/A.
ARTICLE_CLASSIFIER = StageConfig(
    slug="article-classifier",
    analysis_key="articleclassifier",
    title="Stuck in Article Classifier",
    export_prefix="stuck-article-classifier",
    projection_fields=("link_yid", "url", "createdAt"),
)

STAGES: List[StageConfig] = [
    SOURCE_CHANNEL_ANALYSIS,
    WEBSITE_SCRAPING,
    GENERAL_FILE_PARSER,
    ARTICLE_CLASSIFIER,
]

_BY_SLUG: Dict[str, StageConfig] = {s.slug: s for s in STAGES}


def get_stage(slug: str) -> StageConfig:
    try:
        return _BY_SLUG[slug]
    except KeyError:
        raise UnknownStageError(slug) from None
