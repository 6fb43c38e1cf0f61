import unittest

from fastapi_query_params.core import parse_advanced_filters


class AdvancedFilterTests(unittest.TestCase):
    def test_in_operator_splits_values(self):
        self.assertEqual(
            parse_advanced_filters({"status[in]": "active,pending"}),
            {"status": {"in": ["active", "pending"]}},
        )

    def test_not_in_operator_trims_values(self):
        self.assertEqual(
            parse_advanced_filters({"status[notIn]": " banned , deleted "}),
            {"status": {"notIn": ["banned", "deleted"]}},
        )

    def test_pattern_operators_are_case_insensitive(self):
        self.assertEqual(
            parse_advanced_filters({"name[contains]": "john"}),
            {"name": {"contains": "john", "mode": "insensitive"}},
        )
        self.assertEqual(
            parse_advanced_filters({"email[endsWith]": "@example.com", "name[startsWith]": "Jo"}),
            {
                "email": {"endsWith": "@example.com", "mode": "insensitive"},
                "name": {"startsWith": "Jo", "mode": "insensitive"},
            },
        )

    def test_comparisons_accumulate_on_one_field(self):
        self.assertEqual(
            parse_advanced_filters({"price[gte]": "100", "price[lte]": "500", "price[ne]": "250"}),
            {"price": {"gte": 100, "lte": 500, "not": "250"}},
        )

    def test_comparison_values_are_numbers_when_possible(self):
        where = parse_advanced_filters({"score[gt]": "1.5", "createdAt[lt]": "2024-01-01"})
        self.assertEqual(where["score"], {"gt": 1.5})
        self.assertEqual(where["createdAt"], {"lt": "2024-01-01"})

    def test_eq_replaces_earlier_operators(self):
        self.assertEqual(
            parse_advanced_filters({"price[gte]": "1", "price[eq]": "5"}),
            {"price": "5"},
        )

    def test_eq_is_exclusive_for_later_operators(self):
        self.assertEqual(
            parse_advanced_filters({"price[eq]": "5", "price[gte]": "1"}),
            {"price": "5"},
        )

    def test_unknown_operator_and_plain_keys_are_ignored(self):
        self.assertEqual(
            parse_advanced_filters({"price[between]": "1,2", "category": "books", "page": "2"}),
            {},
        )

    def test_repeated_operator_key_uses_first_value(self):
        self.assertEqual(
            parse_advanced_filters({"age[gt]": ["18", "21"]}),
            {"age": {"gt": 18}},
        )
