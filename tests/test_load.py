"""Tests for JSON artifact writing and run metrics."""

import json

from catalog_etl.load import JSONArtifactWriter, write_items, write_plans
from catalog_etl.metrics import RunSummary
from catalog_etl.models import Benefit, Item, Plan, SubItem

ITEM_KEYS = [
    "name", "quantity",
    "global_description_zh", "global_description_en",
    "talent_recruitment_zh", "talent_recruitment_en",
    "brand_exposure_zh", "brand_exposure_en",
    "product_promotion_zh", "product_promotion_en",
    "image", "image_description_zh", "image_description_en",
    "price", "deadline",
    "talent_recruitment_order", "brand_exposure_order", "product_promotion_order",
    "sub",
]


def test_write_items_preserves_field_order_and_unicode(tmp_path):
    output = tmp_path / "data" / "item.json"
    items = {"2": Item(name="攤位", sub=[SubItem(name_zh="A區")]), "1": Item(name="看板")}

    assert write_items(items, str(output)) == 2

    text = output.read_text(encoding="utf-8")
    data = json.loads(text)
    assert list(data) == ["2", "1"]
    assert list(data["2"]) == ITEM_KEYS
    assert list(data["2"]["sub"][0]) == [
        "name_zh", "name_en", "price", "image", "image_description_zh", "image_description_en",
    ]
    assert "攤位" in text
    assert '\n  "2": {\n    "name"' in text


def test_write_plans_serializes_benefits(tmp_path):
    output = tmp_path / "plan.json"
    plans = {"navigator": Plan(id="navigator", name_zh="領航級", name_en="Navigator Tier",
                               price="$1", order=1, benefits=[Benefit("7", "活動入場", "")])}

    write_plans(plans, str(output))

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["navigator"]["benefits"] == [{"item_id": "7", "item_name": "活動入場", "quantity": ""}]
    assert list(data["navigator"]) == ["id", "name_zh", "name_en", "price", "order", "benefits"]


def test_serialize_is_deterministic():
    writer = JSONArtifactWriter()
    items = {"1": Item(name="攤位", talent_recruitment_order=3)}
    assert writer.serialize(items) == writer.serialize({"1": Item(name="攤位", talent_recruitment_order=3)})


def test_run_summary_counts_items_with_sub_items():
    summary = RunSummary()
    summary.record_items({"1": Item(sub=[SubItem(name_zh="A")]), "2": Item(), "3": Item()})
    summary.record_plans({"a": Plan(id="a", name_zh="a", name_en="a")})

    assert summary.total_items == 3
    assert summary.items_with_sub_items == 1
    assert summary.total_plans == 1


def test_run_summary_image_success_rate():
    assert RunSummary().image_success_rate == 0.0
    assert RunSummary(images_requested=4, images_downloaded=3).image_success_rate == 75.0
