"""
Item Catalog Transformation

Joins the primary items tab with its four satellite tabs by item code and
assembles the nested item catalog.
"""

import logging
import re
from typing import Dict, List, Optional

from catalog_etl.exceptions import DataError
from catalog_etl.extract import Record, SheetTable
from catalog_etl.models import Item, SubItem

logger = logging.getLogger(__name__)

ITEMS_SHEET = "items"
SATELLITE_SHEETS = (
    "global_description",
    "talent_recruitment",
    "brand_exposure",
    "product_promotion",
)

CODE_COLUMN = "編號"
NAME_COLUMNS = ("項目", "項目名稱")
QUANTITY_COLUMN = "數量"
IMAGE_COLUMN = "圖片連結"
IMAGE_DESC_ZH_COLUMN = "圖片 敘述"
IMAGE_DESC_EN_COLUMN = "圖片 description"
PRICE_COLUMN = "價錢（這欄與贊助分級和子項目是互斥關係）"

COPY_ZH_COLUMN = "文案"
COPY_EN_COLUMN = "description"
ORDER_COLUMN = "排序"
DEADLINE_COLUMN = "截止時間"

MAX_SUB_ITEMS = 50

DRIVE_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)")
LEADING_INT_PATTERN = re.compile(r"^[+-]?\d+")


def extract_drive_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the file identifier from a sharable link such as
    https://drive.google.com/file/d/FILE_ID/view?usp=sharing.

    Returns None when the URL is empty or not recognized.
    """
    if not url:
        return None
    match = DRIVE_ID_PATTERN.search(url)
    return match.group(1) if match else None


def parse_order(value: Optional[str]) -> int:
    """Leading integer of the value, or 0 when missing or non-numeric."""
    if not value:
        return 0
    match = LEADING_INT_PATTERN.match(str(value).strip())
    return int(match.group(0)) if match else 0


def normalize_code(value) -> str:
    """Item codes compare as trimmed strings so 7 and "7" match."""
    if value is None:
        return ""
    return str(value).strip()


class ItemMerger:
    """
    Merges the item tabs into the catalog.

    Operations:
    - Satellite lookup by item code (first matching row wins)
    - Sub-item extraction with a hard cap
    - Image identifier extraction
    - Lenient order parsing
    """

    def __init__(self, max_sub_items: int = MAX_SUB_ITEMS):
        self.max_sub_items = max_sub_items
        self.metrics = {
            "total_rows": 0,
            "skipped_rows": 0,
            "duplicate_codes": 0,
            "items": 0,
        }

    def merge(self, sheets: SheetTable) -> Dict[str, Item]:
        """
        Build the item catalog from parsed tabs.

        Args:
            sheets: Mapping of tab name to records

        Returns:
            Mapping of item code to Item, in primary tab order

        Raises:
            DataError: If the items tab is missing or empty
        """
        logger.info("Merging sheet data...")
        items_sheet = sheets.get(ITEMS_SHEET)

        if not items_sheet:
            raise DataError("Items sheet is empty or not found")

        self.metrics["total_rows"] = len(items_sheet)
        indexes = {name: self._index_by_code(sheets.get(name)) for name in SATELLITE_SHEETS}

        items: Dict[str, Item] = {}
        for row in items_sheet:
            code = normalize_code(row.get(CODE_COLUMN))
            if not code:
                self.metrics["skipped_rows"] += 1
                continue

            if code in items:
                self.metrics["duplicate_codes"] += 1
                logger.warning(f"Duplicate item code {code}: later row overwrites earlier entry")

            items[code] = self._build_item(row, {name: index.get(code) for name, index in indexes.items()})

        self.metrics["items"] = len(items)
        logger.info(f"Merged {len(items)} items")
        return items

    def _index_by_code(self, records: Optional[List[Record]]) -> Dict[str, Record]:
        index: Dict[str, Record] = {}
        for record in records or []:
            code = normalize_code(record.get(CODE_COLUMN))
            if code and code not in index:
                index[code] = record
        return index

    def _build_item(self, row: Record, satellites: Dict[str, Optional[Record]]) -> Item:
        global_desc = satellites["global_description"] or {}
        talent = satellites["talent_recruitment"] or {}
        brand = satellites["brand_exposure"] or {}
        product = satellites["product_promotion"] or {}

        name = next((row[col] for col in NAME_COLUMNS if row.get(col)), "")

        return Item(
            name=name,
            quantity=row.get(QUANTITY_COLUMN, ""),
            global_description_zh=global_desc.get(COPY_ZH_COLUMN, ""),
            global_description_en=global_desc.get(COPY_EN_COLUMN, ""),
            talent_recruitment_zh=talent.get(COPY_ZH_COLUMN, ""),
            talent_recruitment_en=talent.get(COPY_EN_COLUMN, ""),
            brand_exposure_zh=brand.get(COPY_ZH_COLUMN, ""),
            brand_exposure_en=brand.get(COPY_EN_COLUMN, ""),
            product_promotion_zh=product.get(COPY_ZH_COLUMN, ""),
            product_promotion_en=product.get(COPY_EN_COLUMN, ""),
            image=extract_drive_id(row.get(IMAGE_COLUMN)) or "",
            image_description_zh=row.get(IMAGE_DESC_ZH_COLUMN, ""),
            image_description_en=row.get(IMAGE_DESC_EN_COLUMN, ""),
            price=row.get(PRICE_COLUMN, ""),
            deadline=global_desc.get(DEADLINE_COLUMN, ""),
            talent_recruitment_order=parse_order(talent.get(ORDER_COLUMN)),
            brand_exposure_order=parse_order(brand.get(ORDER_COLUMN)),
            product_promotion_order=parse_order(product.get(ORDER_COLUMN)),
            sub=self.extract_sub_items(row),
        )

    def extract_sub_items(self, row: Record) -> List[SubItem]:
        """
        Collect numbered sub-items until the first index with no name in either language.

        Args:
            row: Primary tab record

        Returns:
            Sub-items in index order, at most max_sub_items
        """
        sub_items = []

        for index in range(1, self.max_sub_items + 1):
            name_zh = row.get(f"子項目{index}", "")
            name_en = row.get(f"sub projects {index}", "")
            if not name_zh and not name_en:
                break

            sub_items.append(SubItem(
                name_zh=name_zh,
                name_en=name_en,
                price=row.get(f"子項目{index}價錢", ""),
                image=extract_drive_id(row.get(f"子項目{index}圖片連結")) or "",
                image_description_zh=row.get(f"子項目{index}圖片 敘述", ""),
                image_description_en=row.get(f"子項目{index}圖片 description", ""),
            ))

        if len(sub_items) == self.max_sub_items:
            logger.warning(
                f"Reached maximum sub-items limit ({self.max_sub_items}) for item "
                f"{normalize_code(row.get(CODE_COLUMN))}. Some sub-items may have been skipped."
            )

        return sub_items


def merge_sheet_data(sheets: SheetTable) -> Dict[str, Item]:
    """
    Convenience function to build the item catalog.

    Args:
        sheets: Mapping of tab name to records

    Returns:
        Mapping of item code to Item
    """
    merger = ItemMerger()
    return merger.merge(sheets)
