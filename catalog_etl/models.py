"""
Catalog and Plan Records

Field names and ordering match what the site build imports from item.json and plan.json.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass
class SubItem:
    """A numbered offering nested under one Item."""
    name_zh: str = ""
    name_en: str = ""
    price: str = ""
    image: str = ""
    image_description_zh: str = ""
    image_description_en: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Item:
    """A catalog entry keyed by its item code."""
    name: str = ""
    quantity: str = ""
    global_description_zh: str = ""
    global_description_en: str = ""
    talent_recruitment_zh: str = ""
    talent_recruitment_en: str = ""
    brand_exposure_zh: str = ""
    brand_exposure_en: str = ""
    product_promotion_zh: str = ""
    product_promotion_en: str = ""
    image: str = ""
    image_description_zh: str = ""
    image_description_en: str = ""
    price: str = ""
    deadline: str = ""
    talent_recruitment_order: int = 0
    brand_exposure_order: int = 0
    product_promotion_order: int = 0
    sub: List[SubItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Benefit:
    """One (tier, item) inclusion; an empty quantity still means included."""
    item_id: str = ""
    item_name: str = ""
    quantity: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Plan:
    """A sponsorship tier and its benefit list."""
    id: str
    name_zh: str
    name_en: str
    price: str = ""
    order: int = 0
    benefits: List[Benefit] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
