"""
Pipeline Run Metrics

Summary figures for a single catalog build, reported when the run finishes.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from catalog_etl.models import Item, Plan

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Metrics for a single pipeline run."""
    sheets_fetched: int = 0
    total_items: int = 0
    items_with_sub_items: int = 0
    duplicate_codes: int = 0
    images_requested: int = 0
    images_downloaded: int = 0
    images_failed: int = 0
    total_plans: int = 0
    unresolved_benefits: int = 0
    duration_seconds: float = 0.0
    status: str = "pending"
    failed_step: Optional[str] = None
    error_message: Optional[str] = None
    sheet_rows: Dict[str, int] = field(default_factory=dict)

    @property
    def image_success_rate(self) -> float:
        """Share of requested images that downloaded, as a percentage."""
        if self.images_requested == 0:
            return 0.0
        return (self.images_downloaded / self.images_requested) * 100

    def record_items(self, items: Dict[str, Item]) -> None:
        self.total_items = len(items)
        self.items_with_sub_items = sum(1 for item in items.values() if item.sub)

    def record_plans(self, plans: Dict[str, Plan]) -> None:
        self.total_plans = len(plans)

    def log(self) -> None:
        """Log the run summary."""
        logger.info("Summary:")
        logger.info(f"- Total items: {self.total_items}")
        logger.info(f"- Items with sub-items: {self.items_with_sub_items}")
        logger.info(f"- Sponsorship plans: {self.total_plans}")
        logger.info(
            f"- Images: {self.images_downloaded}/{self.images_requested} downloaded "
            f"({self.image_success_rate:.2f}%), {self.images_failed} failed"
        )
        if self.duplicate_codes:
            logger.info(f"- Duplicate item codes overwritten: {self.duplicate_codes}")
        if self.unresolved_benefits:
            logger.info(f"- Benefit rows without a matching item: {self.unresolved_benefits}")
        logger.info(f"Duration: {self.duration_seconds:.2f} seconds")
