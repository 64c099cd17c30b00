from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

from salesdash.config import get_config, set_config_for_test
from salesdash.data.backends.csv_backend import CsvDataAccess
from salesdash.data.engine import (
    SalesQueryEngine,
    build_criteria,
    extract_tag_vocabulary,
    paginate,
    resolve_page_request,
    resolve_sort,
    round_money,
    split_values,
)
from salesdash.data.fields import DATE, FIELDS_BY_NAME
from salesdash.data.models import SalesQueryParams
from salesdash.errors import InvalidAgeRange, InvalidDateRange, InvalidSortField


def query(engine, **params):
    return engine.query_sales(SalesQueryParams(**params))


def ids(response):
    return [r.transaction_id for r in response.data]


@pytest.fixture
def engine(csv_access):
    return SalesQueryEngine(csv_access)


class UntouchableAccess:
    """DataAccess that fails the test if any record is read."""
    name = "untouchable"

    @contextmanager
    def open_source(self):
        raise AssertionError("validation must reject the request before reading records")
        yield

    def describe(self):
        raise AssertionError("not expected")


# ---------- pure helpers ----------

def test_split_values_trims_and_drops_empties():
    assert split_values(" North , ,South,") == ("North", "South")
    assert split_values("") == ()
    assert split_values(None) == ()


def test_paginate_clamps_page():
    assert paginate(8, 99, 10).page == 1
    assert paginate(25, 0, 10).page == 1
    assert paginate(25, -3, 10).page == 1
    p = paginate(25, 7, 10)
    assert (p.page, p.total_pages) == (3, 3)


def test_paginate_empty_set_has_zero_pages():
    p = paginate(0, 1, 10)
    assert p.total == 0
    assert p.total_pages == 0
    assert p.page == 1


@pytest.mark.parametrize("raw, expected", [
    (None, 10), ("", 10), ("abc", 10), ("0", 10), ("-5", 10), ("3", 3), ("5000", 5000),
])
def test_limit_defaults_and_is_uncapped(raw, expected):
    _, limit = resolve_page_request(SalesQueryParams(limit=raw))
    assert limit == expected


def test_configured_limit_cap(engine):
    _, limit = resolve_page_request(SalesQueryParams(limit="5000"), max_limit=1000)
    assert limit == 1000
    set_config_for_test(app_env="test", log_level="WARNING", max_page_limit=4)
    result = SalesQueryEngine(engine.data_access, get_config()).query_sales(SalesQueryParams(limit="50"))
    assert result.pagination.limit == 4
    assert result.pagination.total_pages == 2
    assert len(result.data) == 4


def test_page_parse_failure_defaults_to_one():
    page, _ = resolve_page_request(SalesQueryParams(page="two"))
    assert page == 1


def test_round_money_half_up():
    assert round_money(Decimal("20.005")) == 20.01
    assert round_money(Decimal("0.125")) == 0.13
    assert round_money(Decimal("0")) == 0.0


def test_tag_vocabulary_trims_dedupes_and_sorts():
    values = ["Cotton, Casual", " Casual ,Summer", "", None, ",,"]
    assert extract_tag_vocabulary(values) == ["Casual", "Cotton", "Summer"]


def test_criteria_lowercases_search_and_tags():
    criteria = build_criteria(SalesQueryParams(search="AISHA, Kurta", tags="Gadget"))
    assert criteria.search_terms == ("aisha", "kurta")
    assert criteria.tags == ("gadget",)


def test_start_with_time_of_day_excludes_that_day():
    criteria = build_criteria(SalesQueryParams(start_date="2023-06-01T10:30:00", end_date="2023-06-05"))
    assert criteria.start_date == date(2023, 6, 2)
    assert criteria.end_date == date(2023, 6, 5)


def test_default_sort_is_date_descending():
    sort = resolve_sort(SalesQueryParams())
    assert sort.field == DATE
    assert sort.descending is True


def test_sort_order_is_case_insensitive():
    sort = resolve_sort(SalesQueryParams(sort_by="Quantity", sort_order="DESC"))
    assert sort.field == FIELDS_BY_NAME["quantity"]
    assert sort.descending is True
    assert resolve_sort(SalesQueryParams(sort_by="Quantity", sort_order="sideways")).descending is False


# ---------- validation ----------

def test_min_age_above_max_age_is_rejected_before_reading():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidAgeRange) as exc:
        query(engine, min_age="50", max_age="20")
    assert exc.value.error_code == "INVALID_AGE_RANGE"


def test_non_numeric_age_is_rejected():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidAgeRange):
        query(engine, min_age="old")


def test_start_after_end_is_rejected_before_reading():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidDateRange) as exc:
        query(engine, start_date="2024-02-01", end_date="2024-01-01")
    assert exc.value.error_code == "INVALID_DATE_RANGE"


def test_unparseable_date_is_rejected():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidDateRange):
        query(engine, end_date="not-a-date")


def test_age_is_checked_before_date():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidAgeRange):
        query(engine, min_age="60", max_age="10", start_date="2024-02-01", end_date="2024-01-01")


def test_unknown_sort_field_is_rejected():
    engine = SalesQueryEngine(UntouchableAccess())
    with pytest.raises(InvalidSortField):
        query(engine, sort_by="Shoe Size")


# ---------- listing over the sample dataset ----------

def test_no_filters_returns_everything_newest_first(engine):
    result = query(engine)
    assert result.pagination.total == 8
    assert result.pagination.page == 1
    assert result.pagination.limit == 10
    assert result.pagination.total_pages == 1
    # T003 and T004 share a date and keep their file order
    assert ids(result) == ["T008", "T007", "T006", "T005", "T003", "T004", "T002", "T001"]


def test_stats_cover_full_set(engine):
    stats = query(engine).stats
    assert stats.total_units == 19
    assert stats.total_amount == 1135.0
    assert stats.total_discount == 115.0


def test_search_matches_name_case_insensitively(engine):
    assert sorted(ids(query(engine, search="AISHA"))) == ["T001", "T004"]


def test_search_matches_phone_fragment(engine):
    assert sorted(ids(query(engine, search="98765"))) == ["T001", "T006"]


def test_multiple_search_terms_must_all_match_by_default(engine):
    assert ids(query(engine, search="aisha, clothing")) == ["T001"]


def test_multiple_search_terms_any_match(sales_csv):
    set_config_for_test(app_env="test", log_level="WARNING", search_match="any")
    engine = SalesQueryEngine(CsvDataAccess(data_file=sales_csv), get_config())
    assert sorted(ids(query(engine, search="aisha, clothing"))) == ["T001", "T004", "T006", "T008"]


def test_region_filter_accepts_any_listed_value(engine):
    assert sorted(ids(query(engine, region="North, South"))) == ["T001", "T002", "T005", "T007"]


def test_membership_is_exact(engine):
    assert query(engine, region="north").pagination.total == 0
    assert query(engine, gender="Male").pagination.total == 3


def test_filters_combine_with_and(engine):
    result = query(engine, category="Clothing", payment_method="UPI")
    assert sorted(ids(result)) == ["T001", "T008"]


def test_tags_match_by_substring_within_a_tag(engine):
    assert sorted(ids(query(engine, tags="gadget"))) == ["T002", "T004"]
    # "phone" is a fragment of "smartphone" only; "Electronics,Gadget" does not match
    assert ids(query(engine, tags="phone")) == ["T004"]


def test_any_selected_tag_may_match(engine):
    assert sorted(ids(query(engine, tags="Casual,FITNESS"))) == ["T001", "T005", "T007", "T008"]


def test_age_range_is_inclusive(engine):
    assert sorted(ids(query(engine, min_age="34", max_age="45"))) == ["T002", "T003", "T008"]
    assert sorted(ids(query(engine, min_age="52"))) == ["T004", "T006"]


def test_end_date_includes_the_whole_day(engine):
    result = query(engine, start_date="2023-06-01", end_date="2023-06-01")
    assert ids(result) == ["T003", "T004"]


def test_end_date_includes_late_times_on_that_day(write_sales_csv, sample_rows):
    sample_rows[2]["Date"] = "2023-06-01 23:30:00"
    engine = SalesQueryEngine(CsvDataAccess(data_file=write_sales_csv(sample_rows)))
    result = query(engine, start_date="2023-06-01", end_date="2023-06-01")
    assert ids(result) == ["T003", "T004"]
    assert query(engine, end_date="2023-05-31").pagination.total == 2


def test_start_date_only(engine):
    assert query(engine, start_date="2023-07-01").pagination.total == 4


def test_sort_numeric_descending(engine):
    result = query(engine, sort_by="Total Amount", sort_order="desc")
    assert ids(result) == ["T002", "T004", "T007", "T001", "T005", "T003", "T006", "T008"]


def test_sort_string_case_insensitive_ascending(engine):
    result = query(engine, sort_by="Customer Name")
    assert [r.customer_name for r in result.data] == [
        "Aisha Khan", "Aisha Patel", "Karan Mehta", "Meera Das",
        "Priya Singh", "Rahul Sharma", "Sana Iqbal", "Vikram Rao",
    ]


def test_sort_is_stable_for_equal_keys(engine):
    result = query(engine, sort_by="Discount")
    assert ids(result) == ["T003", "T006", "T001", "T002", "T004", "T005", "T007", "T008"]


def test_sort_by_normalized_name(engine):
    result = query(engine, sort_by="total amount")
    assert ids(result)[0] == "T008"


def test_pages_partition_the_sorted_set(engine):
    pages = [query(engine, limit="3", page=str(p)) for p in (1, 2, 3)]
    assert [len(p.data) for p in pages] == [3, 3, 2]
    assert sum((ids(p) for p in pages), []) == ids(query(engine))
    assert all(p.pagination.total_pages == 3 for p in pages)


def test_page_beyond_last_is_clamped(engine):
    result = query(engine, page="99")
    assert result.pagination.page == 1
    assert len(result.data) == 8


def test_stats_do_not_depend_on_page_size(engine):
    small = query(engine, gender="Female", limit="5")
    large = query(engine, gender="Female", limit="1000")
    assert small.stats == large.stats
    assert small.pagination.total == large.pagination.total == 5
    assert len(small.data) == 5


def test_tag_vocabulary_ignores_filters(engine):
    everything = query(engine).filters.tags
    filtered = query(engine, region="Central").filters.tags
    assert everything == filtered
    assert everything == [
        "Casual", "Cotton", "Decor", "Electronics", "Fitness",
        "Gadget", "Organic", "Skincare", "smartphone",
    ]


def test_no_matches_is_an_empty_page(engine):
    result = query(engine, region="Nowhere", page="3")
    assert result.data == []
    assert result.pagination.total == 0
    assert result.pagination.total_pages == 0
    assert result.stats.total_units == 0
    assert result.stats.total_amount == 0.0


def test_money_sums_round_half_up(write_sales_csv, make_row):
    rows = [
        make_row("R1", "2024-01-01", "A", "1", "Male", 30, "North", "X", "Home", "", 1, 10.005, 0, 10.005, 10.005, "UPI"),
        make_row("R2", "2024-01-02", "B", "2", "Male", 30, "North", "Y", "Home", "", 1, 10.0, 0, 10.0, 10.0, "UPI"),
    ]
    engine = SalesQueryEngine(CsvDataAccess(data_file=write_sales_csv(rows)))
    assert query(engine).stats.total_amount == 20.01


def test_records_serialize_with_labels(engine):
    payload = query(engine, limit="1").model_dump(by_alias=True)
    assert set(payload) == {"data", "stats", "filters", "pagination"}
    record = payload["data"][0]
    assert record["Transaction ID"] == "T008"
    assert record["Customer Name"] == "Sana Iqbal"
    assert record["Date"] == date(2023, 12, 31)
    assert set(payload["pagination"]) == {"total", "page", "limit", "totalPages"}
    assert set(payload["stats"]) == {"totalUnits", "totalAmount", "totalDiscount"}


def test_filter_options(engine):
    options = engine.filter_options()
    assert options.regions == ["Central", "East", "North", "South", "West"]
    assert options.genders == ["Female", "Male"]
    assert options.payment_methods == ["Cash", "Credit Card", "Debit Card", "UPI"]
    assert options.age_range.min == 19
    assert options.age_range.max == 61
    assert options.date_range.min == date(2023, 1, 15)
    assert options.date_range.max == date(2023, 12, 31)
