"""
Sponsorship Plan Matrix

Interprets the grid-shaped sponsorship tab (tier columns x benefit rows) and
links benefit rows to catalog items by display name.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from catalog_etl.exceptions import DataError
from catalog_etl.extract import Record
from catalog_etl.models import Benefit, Item, Plan
from catalog_etl.predicates import is_category_header

logger = logging.getLogger(__name__)

PLANS_SHEET = "sponsorship_plans"

# Columns 0 and 1 hold the benefit label and the price label
FIRST_TIER_COLUMN = 2

TIER_NAMES = {
    "領航級": ("Navigator Tier", "navigator"),
    "深耕級": ("Deep Cultivation Tier", "deep_cultivation"),
    "前瞻級": ("Visionary Tier", "visionary"),
    "新芽級": ("New Sprout Tier", "new_sprout"),
}


def _cell(row: Record, index: int) -> str:
    values = list(row.values())
    if index >= len(values) or values[index] is None:
        return ""
    return str(values[index]).strip()


def build_name_index(items: Dict[str, Item]) -> Dict[str, str]:
    """
    Map item display names to item codes.

    On a name collision the item later in catalog order wins.
    """
    name_to_id: Dict[str, str] = {}
    for code, item in items.items():
        if not item.name:
            continue
        if item.name in name_to_id and name_to_id[item.name] != code:
            logger.debug(f"Item name {item.name!r} maps to both {name_to_id[item.name]} and {code}; using {code}")
        name_to_id[item.name] = code
    return name_to_id


class PlanBuilder:
    """
    Builds sponsorship plans from the plan tab records.

    Row 0 names the tiers, row 1 prices them, and every later row is a
    benefit row whose lead column names a catalog item.
    """

    def __init__(self, header_predicate: Optional[Callable[[str], bool]] = None):
        """
        Args:
            header_predicate: Classifies lead-column text as a category header
                (default: CategoryHeaderPredicate)
        """
        self.header_predicate = header_predicate or is_category_header
        self.metrics = {"benefit_rows": 0, "category_rows": 0, "unresolved_rows": 0}

    def build(self, plan_sheet: Optional[List[Record]], items: Dict[str, Item]) -> Dict[str, Plan]:
        """
        Build the plan set.

        Args:
            plan_sheet: Sponsorship tab records
            items: Finished item catalog used for name resolution

        Returns:
            Mapping of plan slug to Plan, in column order

        Raises:
            DataError: If the plan tab is empty
        """
        logger.info("Processing sponsorship plans data...")

        if not plan_sheet:
            raise DataError("Plan sheet is empty or not found")

        name_to_id = build_name_index(items)
        logger.info(f"Built mapping for {len(name_to_id)} items")

        tiers = self._read_tiers(plan_sheet)
        plans: Dict[str, Plan] = {}
        for _, plan in tiers:
            if plan.id in plans:
                logger.warning(f"Duplicate plan slug {plan.id}: later column overwrites earlier tier")
            plans[plan.id] = plan

        for row in plan_sheet[2:]:
            item_name = _cell(row, 0)
            if not item_name:
                continue

            item_id = name_to_id.get(item_name, "")
            if item_name not in name_to_id and self.header_predicate(item_name):
                self.metrics["category_rows"] += 1
                logger.debug(f"Skipping category header row: {item_name}")
                continue

            if not item_id:
                self.metrics["unresolved_rows"] += 1
                logger.warning(f"Benefit {item_name!r} does not match any item name")

            self.metrics["benefit_rows"] += 1
            for column, plan in tiers:
                plan.benefits.append(Benefit(
                    item_id=item_id,
                    item_name=item_name,
                    quantity=_cell(row, column),
                ))

        logger.info(f"Processed {len(plans)} sponsorship plans")
        return plans

    def _read_tiers(self, plan_sheet: List[Record]) -> List[Tuple[int, Plan]]:
        """Pair each tier column index with its new Plan."""
        header_row = plan_sheet[0]
        price_row = plan_sheet[1] if len(plan_sheet) > 1 else {}

        tiers = []
        for column in range(FIRST_TIER_COLUMN, len(header_row)):
            name_zh = _cell(header_row, column)
            if not name_zh:
                continue

            name_en, slug = TIER_NAMES.get(name_zh, (name_zh, name_zh.lower()))
            tiers.append((column, Plan(
                id=slug,
                name_zh=name_zh,
                name_en=name_en,
                price=_cell(price_row, column),
                order=len(tiers) + 1,
            )))

        return tiers


def process_plan_data(sheets: Dict[str, List[Record]], items: Dict[str, Item],
                      builder: Optional[PlanBuilder] = None) -> Dict[str, Plan]:
    """
    Convenience function to build plans from the parsed tabs.

    Args:
        sheets: Mapping of tab name to records
        items: Finished item catalog
        builder: PlanBuilder to use (default: a new PlanBuilder)

    Returns:
        Mapping of plan slug to Plan

    Raises:
        DataError: If the sponsorship plans tab is missing
    """
    if PLANS_SHEET not in sheets:
        raise DataError("Sponsorship plans sheet not found")

    builder = builder or PlanBuilder()
    return builder.build(sheets[PLANS_SHEET], items)
