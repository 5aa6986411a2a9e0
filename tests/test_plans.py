"""Tests for the sponsorship plan builder and its row predicates."""

import pytest

from catalog_etl.exceptions import DataError
from catalog_etl.models import Item
from catalog_etl.plans import PlanBuilder, build_name_index, process_plan_data
from catalog_etl.predicates import CategoryHeaderPredicate, PatternPredicate, is_category_header
from tests.helpers import rows_to_records

HEADER = ["", "價格", "領航級", "深耕級"]
PRICES = ["", "", "$100000", "$50000"]


@pytest.fixture
def catalog():
    return {
        "7": Item(name="活動入場"),
        "8": Item(name="攤位"),
        "9": Item(name=""),
    }


# ---------------------------------------------------------------------------
# predicates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("label", ["年會現場", "Logo曝光", "網路宣傳", "社群曝光", " 品牌曝光 "])
def test_category_header_predicate_matches_section_labels(label):
    assert is_category_header(label)


@pytest.mark.parametrize("label", ["活動入場", "曝光次數說明", "", "網路宣傳貼文"])
def test_category_header_predicate_rejects_benefit_labels(label):
    assert not is_category_header(label)


def test_category_header_predicate_accepts_extra_labels():
    predicate = CategoryHeaderPredicate(extra_labels=["其他權益"])
    assert predicate("其他權益")
    assert predicate("年會現場")
    assert not predicate("其他")


def test_pattern_predicate_uses_full_match():
    predicate = PatternPredicate(r"ab+")
    assert predicate("abb")
    assert not predicate("xabb")


# ---------------------------------------------------------------------------
# build_name_index
# ---------------------------------------------------------------------------


def test_build_name_index_skips_blank_names_and_prefers_later_items():
    items = {"1": Item(name="攤位"), "2": Item(name=""), "3": Item(name="攤位")}
    assert build_name_index(items) == {"攤位": "3"}


# ---------------------------------------------------------------------------
# PlanBuilder.build
# ---------------------------------------------------------------------------


def test_build_creates_plans_from_header_and_price_rows(catalog):
    sheet = rows_to_records([HEADER, PRICES, ["活動入場", "", "2", "1"]])

    plans = PlanBuilder().build(sheet, catalog)

    assert list(plans) == ["navigator", "deep_cultivation"]
    assert plans["navigator"].to_dict() == {
        "id": "navigator",
        "name_zh": "領航級",
        "name_en": "Navigator Tier",
        "price": "$100000",
        "order": 1,
        "benefits": [{"item_id": "7", "item_name": "活動入場", "quantity": "2"}],
    }
    assert plans["deep_cultivation"].name_en == "Deep Cultivation Tier"
    assert plans["deep_cultivation"].price == "$50000"
    assert plans["deep_cultivation"].order == 2
    assert [b.to_dict() for b in plans["deep_cultivation"].benefits] == [
        {"item_id": "7", "item_name": "活動入場", "quantity": "1"},
    ]


def test_build_ignores_row_whose_lead_column_is_blank(catalog):
    # Item name shifted two columns right of the label column
    sheet = rows_to_records([HEADER, PRICES, ["", "", "活動入場", "2", "1"]])

    builder = PlanBuilder()
    plans = builder.build(sheet, catalog)

    assert list(plans) == ["navigator", "deep_cultivation"]
    assert all(plan.benefits == [] for plan in plans.values())
    assert builder.metrics["benefit_rows"] == 0


def test_build_skips_blank_tier_columns_and_slugs_unknown_tiers(catalog):
    sheet = rows_to_records([
        ["", "價格", "前瞻級", "  ", "Gold", "新芽級"],
        ["", "", "$1", "", "$2", "$3"],
    ])

    plans = PlanBuilder().build(sheet, catalog)

    assert list(plans) == ["visionary", "gold", "new_sprout"]
    assert plans["gold"].name_zh == "Gold"
    assert plans["gold"].name_en == "Gold"
    assert plans["gold"].price == "$2"
    assert [p.order for p in plans.values()] == [1, 2, 3]
    assert plans["new_sprout"].name_en == "New Sprout Tier"


def test_build_skips_category_header_rows(catalog):
    sheet = rows_to_records([
        HEADER,
        PRICES,
        ["年會現場", "", "", ""],
        ["活動入場", "", "2", "1"],
        ["網路宣傳", "", "", ""],
    ])

    plans = PlanBuilder().build(sheet, catalog)

    for plan in plans.values():
        assert [b.item_name for b in plan.benefits] == ["活動入場"]


def test_build_keeps_header_like_row_when_it_names_an_item():
    catalog = {"5": Item(name="Logo曝光")}
    sheet = rows_to_records([HEADER, PRICES, ["Logo曝光", "", "V", ""]])

    plans = PlanBuilder().build(sheet, catalog)

    assert plans["navigator"].benefits[0].to_dict() == {"item_id": "5", "item_name": "Logo曝光", "quantity": "V"}


def test_build_keeps_empty_quantities_and_unresolved_names(catalog):
    sheet = rows_to_records([HEADER, PRICES, ["神秘贈品", "", "", " 1 "], ["", "", "9", "9"]])

    builder = PlanBuilder()
    plans = builder.build(sheet, catalog)

    assert [b.to_dict() for b in plans["navigator"].benefits] == [
        {"item_id": "", "item_name": "神秘贈品", "quantity": ""},
    ]
    assert plans["deep_cultivation"].benefits[0].quantity == "1"
    assert builder.metrics["unresolved_rows"] == 1


def test_build_accepts_custom_header_predicate(catalog):
    sheet = rows_to_records([HEADER, PRICES, ["年會現場", "", "1", "1"], ["活動入場", "", "2", "1"]])

    plans = PlanBuilder(header_predicate=lambda label: label == "活動入場").build(sheet, catalog)

    # 活動入場 names an item, so it is never treated as a header
    assert [b.item_name for b in plans["navigator"].benefits] == ["年會現場", "活動入場"]


def test_build_requires_plan_rows(catalog):
    with pytest.raises(DataError, match="Plan sheet is empty"):
        PlanBuilder().build([], catalog)


def test_process_plan_data_requires_plan_sheet(catalog):
    with pytest.raises(DataError, match="Sponsorship plans sheet not found"):
        process_plan_data({"items": []}, catalog)


def test_process_plan_data_builds_from_named_sheet(catalog):
    sheets = {"sponsorship_plans": rows_to_records([HEADER, PRICES, ["攤位", "", "1", ""]])}

    plans = process_plan_data(sheets, catalog)

    assert plans["navigator"].benefits[0].item_id == "8"
    assert plans["deep_cultivation"].benefits[0].quantity == ""
