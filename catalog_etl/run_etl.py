"""
Catalog Pipeline Orchestrator

Coordinates the complete build:
- Fetch every configured sheet tab
- Merge the item tabs into the catalog
- Harvest catalog images
- Write the item catalog
- Build and write the sponsorship plans
"""

import argparse
import logging
import os
import sys
import time
from enum import Enum
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from catalog_etl.exceptions import ConfigurationError
from catalog_etl.extract import PublishedSheetExtractor, SheetTable
from catalog_etl.images import ImageHarvester
from catalog_etl.load import write_items, write_plans
from catalog_etl.metrics import RunSummary
from catalog_etl.models import Item, Plan
from catalog_etl.plans import PlanBuilder, process_plan_data
from catalog_etl.transform import ItemMerger
from config.settings import Settings, SheetConfig

logger = logging.getLogger(__name__)

# Connection pool size per host when MAX_WORKERS leaves the thread pools unbounded
DEFAULT_POOL_SIZE = 64


def build_session(pool_size: int) -> requests.Session:
    """
    Create an HTTP session keeping up to pool_size connections per host.
    """
    session = requests.Session()
    adapter = HTTPAdapter(pool_maxsize=pool_size)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class PipelineState(Enum):
    IDLE = "idle"
    FETCHING_SHEETS = "fetching_sheets"
    MERGING = "merging"
    HARVESTING_IMAGES = "harvesting_images"
    WRITING_CATALOG = "writing_catalog"
    BUILDING_PLANS = "building_plans"
    WRITING_PLANS = "writing_plans"
    DONE = "done"
    FAILED = "failed"


class CatalogOrchestrator:
    """
    Orchestrates the complete catalog pipeline.

    Workflow:
    1. Load and validate the sheet config
    2. Fetch all tabs concurrently
    3. Merge item tabs into the catalog
    4. Download images and rewrite references
    5. Write item.json
    6. Build plans from the plan tab and the catalog
    7. Write plan.json

    Any failing step moves the run to FAILED. Files written by earlier
    steps are left in place.
    """

    def __init__(
        self,
        settings: Settings,
        sheet_config: Optional[SheetConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Paths, timeouts and logging options
            sheet_config: Pre-loaded sheet config (default: read from settings.SHEET_CONFIG_PATH)
            session: HTTP session shared by the fetcher and harvester
                (default: build_session sized to settings.MAX_WORKERS)
        """
        self.settings = settings
        self.sheet_config = sheet_config
        self.session = session or build_session(settings.MAX_WORKERS or DEFAULT_POOL_SIZE)
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [self.state]
        self.summary = RunSummary()

        self.sheets: SheetTable = {}
        self.items: Dict[str, Item] = {}
        self.plans: Dict[str, Plan] = {}

    def run(self) -> bool:
        """
        Execute the complete pipeline.

        Returns:
            True if successful, False otherwise
        """
        start = time.monotonic()

        try:
            logger.info("=" * 60)
            logger.info("Starting catalog build")
            logger.info("=" * 60)

            if self.sheet_config is None:
                self.sheet_config = SheetConfig.load(self.settings.SHEET_CONFIG_PATH)

            self._execute_pipeline()
            self._transition(PipelineState.DONE)
            self.summary.status = "success"

            self.summary.duration_seconds = time.monotonic() - start
            logger.info("=" * 60)
            logger.info("Catalog build completed successfully")
            logger.info("=" * 60)
            self.summary.log()
            return True

        except Exception as e:
            self.summary.failed_step = self.state.value
            self.summary.error_message = str(e)
            self.summary.status = "failed"
            self.summary.duration_seconds = time.monotonic() - start
            logger.error(f"Catalog build failed during {self.state.value}: {e}", exc_info=True)
            self._transition(PipelineState.FAILED)
            return False

    def _execute_pipeline(self) -> None:
        settings = self.settings

        # FETCH
        self._transition(PipelineState.FETCHING_SHEETS)
        extractor = PublishedSheetExtractor(
            self.sheet_config.spreadsheet_id,
            session=self.session,
            timeout=settings.REQUEST_TIMEOUT,
        )
        self.sheets = extractor.extract_all(self.sheet_config.sheets, max_workers=settings.MAX_WORKERS)
        self.summary.sheets_fetched = len(self.sheets)
        self.summary.sheet_rows = {name: len(records) for name, records in self.sheets.items()}

        # MERGE
        self._transition(PipelineState.MERGING)
        merger = ItemMerger()
        self.items = merger.merge(self.sheets)
        self.summary.record_items(self.items)
        self.summary.duplicate_codes = merger.metrics["duplicate_codes"]

        # IMAGES
        self._transition(PipelineState.HARVESTING_IMAGES)
        harvester = ImageHarvester(settings.IMAGES_DIR, session=self.session, timeout=settings.REQUEST_TIMEOUT)
        harvester.harvest(self.items, max_workers=settings.MAX_WORKERS)
        self.summary.images_requested = harvester.metrics["requested"]
        self.summary.images_downloaded = harvester.metrics["downloaded"]
        self.summary.images_failed = harvester.metrics["failed"]

        # WRITE CATALOG
        self._transition(PipelineState.WRITING_CATALOG)
        write_items(self.items, settings.ITEMS_OUTPUT_PATH)

        # BUILD PLANS
        self._transition(PipelineState.BUILDING_PLANS)
        builder = PlanBuilder()
        self.plans = process_plan_data(self.sheets, self.items, builder=builder)
        self.summary.record_plans(self.plans)
        self.summary.unresolved_benefits = builder.metrics["unresolved_rows"]

        # WRITE PLANS
        self._transition(PipelineState.WRITING_PLANS)
        write_plans(self.plans, settings.PLANS_OUTPUT_PATH)

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


def setup_logging(log_file: str = "logs/etl.log", level: str = "INFO") -> None:
    """
    Configure logging for the pipeline.

    Args:
        log_file: Path to log file
        level: Console log level name
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build item.json, plan.json and item images from the published spreadsheet."
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Path to sheet config JSON (default: $SHEET_CONFIG_PATH or scripts/sheet.json)")
    parser.add_argument("--items-output", type=str, default=None,
                        help="Item catalog output path (default: src/data/item.json)")
    parser.add_argument("--plans-output", type=str, default=None,
                        help="Sponsorship plan output path (default: src/data/plan.json)")
    parser.add_argument("--images-dir", type=str, default=None,
                        help="Image output directory (default: src/assets/img/items)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the catalog pipeline."""
    args = parse_args(argv)

    try:
        settings = Settings(
            SHEET_CONFIG_PATH=args.config,
            ITEMS_OUTPUT_PATH=args.items_output,
            PLANS_OUTPUT_PATH=args.plans_output,
            IMAGES_DIR=args.images_dir,
        )
        setup_logging(settings.LOG_FILE, settings.LOG_LEVEL)
        sheet_config = SheetConfig.load(settings.SHEET_CONFIG_PATH)
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    orchestrator = CatalogOrchestrator(settings, sheet_config=sheet_config)
    success = orchestrator.run()
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
