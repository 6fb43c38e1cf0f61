import unittest
from datetime import datetime, timezone

from fastapi_query_params.core import get_filter_params, parse_range


class FilterParamsTests(unittest.TestCase):
    def test_named_slots_are_copied(self):
        filters = get_filter_params({"search": "john", "status": "active", "role": "USER"})
        self.assertEqual(filters.search, "john")
        self.assertEqual(filters.status, "active")
        self.assertEqual(filters.role, "USER")
        self.assertEqual(filters.custom, {})

    def test_empty_values_leave_slots_unset(self):
        filters = get_filter_params({"search": "", "status": None})
        self.assertIsNone(filters.search)
        self.assertIsNone(filters.status)

    def test_date_bounds_are_parsed_as_utc(self):
        filters = get_filter_params({"dateFrom": "2024-01-01", "dateTo": "2024-12-31T23:59:59Z"})
        self.assertEqual(filters.date_from, datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(filters.date_to, datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc))

    def test_invalid_date_bound_is_dropped(self):
        filters = get_filter_params({"dateFrom": "not-a-date", "dateTo": "2024-02-30"})
        self.assertIsNone(filters.date_from)
        self.assertIsNone(filters.date_to)

    def test_non_iso_date_bound_is_dropped(self):
        filters = get_filter_params({"dateFrom": "2024/01/01", "dateTo": "06/30/2024"})
        self.assertIsNone(filters.date_from)
        self.assertIsNone(filters.date_to)

    def test_numeric_range(self):
        filters = get_filter_params({"priceRange": "0,500"}, ["price"])
        bound = filters.ranges["price"]
        self.assertEqual((bound.min, bound.max), (0, 500))
        self.assertIsInstance(bound.min, int)

    def test_numeric_range_is_trimmed_and_accepts_decimals(self):
        filters = get_filter_params({"priceRange": " 9.5 , 20 "}, ["price"])
        self.assertEqual((filters.ranges["price"].min, filters.ranges["price"].max), (9.5, 20))

    def test_date_range(self):
        filters = get_filter_params({"createdAtRange": "2024-01-01,2024-12-31"}, ["createdAt"])
        bound = filters.ranges["createdAt"]
        self.assertEqual(bound.min, datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(bound.max, datetime(2024, 12, 31, tzinfo=timezone.utc))

    def test_unparsable_ranges_are_dropped(self):
        for raw in ("abc,def", "10", "10,", ",10", "10,2024-01-01"):
            with self.subTest(raw=raw):
                filters = get_filter_params({"priceRange": raw}, ["price"])
                self.assertEqual(filters.ranges, {})
                self.assertNotIn("priceRange", filters.custom)

    def test_range_keys_of_unlisted_fields_pass_through(self):
        filters = get_filter_params({"priceRange": "0,500"})
        self.assertEqual(filters.ranges, {})
        self.assertEqual(filters.custom, {"priceRange": "0,500"})

    def test_unknown_keys_pass_through_verbatim(self):
        filters = get_filter_params(
            {
                "page": "1",
                "limit": "5",
                "sortBy": "name",
                "category": "books",
                "tag": ["a", "b"],
                "priceRange": "1,2",
            },
            ["price"],
        )
        self.assertEqual(filters.custom, {"category": "books", "tag": ["a", "b"]})

    def test_input_map_is_not_mutated(self):
        params = {"search": "x", "priceRange": "1,2", "category": "books"}
        snapshot = dict(params)
        get_filter_params(params, ["price"])
        self.assertEqual(params, snapshot)


class ParseRangeTests(unittest.TestCase):
    def test_extra_parts_are_ignored(self):
        bound = parse_range("1,2,3")
        self.assertEqual((bound.min, bound.max), (1, 2))

    def test_mixed_kinds_are_rejected(self):
        self.assertIsNone(parse_range("2024-01-01,99"))
