import unittest

from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from marketplace.core.catalog_filters import CatalogFilters, compile_filters
from marketplace.core.constants import SORT_CATALOG, SORT_NEWEST
from marketplace.models.product import Product


def _postgres_sql(compiled):
    stmt = select(Product.id).where(*compiled.predicates).order_by(*compiled.order_by)
    return str(stmt.compile(dialect=postgresql.dialect()))


class CompileFiltersTest(unittest.TestCase):
    def test_no_filters_adds_no_predicates(self):
        compiled = compile_filters(CatalogFilters())
        self.assertEqual(compiled.predicates, [])
        self.assertEqual(compiled.bound_values, [])
        self.assertEqual(compiled.limit, 12)
        self.assertEqual(compiled.offset, 0)

    def test_all_sentinel_is_unrestricted(self):
        compiled = compile_filters(
            CatalogFilters(category="All", technology="All", location="All")
        )
        self.assertEqual(compiled.predicates, [])

    def test_bound_values_follow_rule_order(self):
        compiled = compile_filters(
            CatalogFilters(
                query="mono",
                category="module",
                technology="topcon",
                min_qty=2,
                location="Pune",
                min_price=10,
                max_price=20,
            )
        )
        self.assertEqual(len(compiled.predicates), 6)
        self.assertEqual(
            compiled.bound_values,
            ["%mono%", "module", "%topcon%", 2, "%Pune%", 10, 20, 10, 20],
        )

    def test_one_sided_price_range_binds_each_side_once(self):
        compiled = compile_filters(CatalogFilters(max_price=15))
        self.assertEqual(compiled.bound_values, [15, 15])

    def test_zero_minimum_order_is_ignored(self):
        compiled = compile_filters(CatalogFilters(min_qty=0))
        self.assertEqual(compiled.predicates, [])

    def test_search_term_wildcards_are_escaped(self):
        compiled = compile_filters(CatalogFilters(query="50%_off"))
        self.assertEqual(compiled.bound_values, ["%50\\%\\_off%"])

    def test_supplier_scope_is_last(self):
        compiled = compile_filters(CatalogFilters(category="inverter", supplier_id=7))
        self.assertEqual(compiled.bound_values, ["inverter", 7])

    def test_location_and_price_use_exists_subqueries(self):
        sql = _postgres_sql(compile_filters(CatalogFilters(location="Pune", min_price=5)))
        self.assertEqual(sql.count("EXISTS"), 2)
        self.assertIn("pp_location", sql)
        self.assertIn("pp_price", sql)

    def test_minimum_order_extraction_compiles_for_postgres(self):
        sql = _postgres_sql(compile_filters(CatalogFilters(min_qty=1.5)))
        self.assertIn("regexp_replace", sql)
        self.assertIn("CAST(", sql)

    def test_price_sort_orders_nulls_last_with_id_tiebreak(self):
        sql = _postgres_sql(compile_filters(CatalogFilters(sort="price_asc")))
        self.assertIn("ASC NULLS LAST", sql)
        self.assertIn("products.id DESC", sql)

    def test_sort_orderings(self):
        self.assertEqual(len(compile_filters(CatalogFilters(sort=SORT_NEWEST)).order_by), 2)
        self.assertEqual(len(compile_filters(CatalogFilters(sort=SORT_CATALOG)).order_by), 2)
        self.assertEqual(len(compile_filters(CatalogFilters(sort="bogus")).order_by), 1)

    def test_offset_derives_from_page(self):
        compiled = compile_filters(CatalogFilters(page=3, limit=12))
        self.assertEqual(compiled.offset, 24)


class CatalogFiltersFromParamsTest(unittest.TestCase):
    def test_defaults(self):
        filters = CatalogFilters.from_params({})
        self.assertEqual(filters.page, 1)
        self.assertEqual(filters.limit, 12)
        self.assertEqual(filters.sort, SORT_NEWEST)
        self.assertIsNone(filters.min_price)

    def test_unparsable_numbers_count_as_absent(self):
        filters = CatalogFilters.from_params(
            {"minPrice": "cheap", "maxPrice": "nan", "minQty": "", "page": "two"}
        )
        self.assertIsNone(filters.min_price)
        self.assertIsNone(filters.max_price)
        self.assertIsNone(filters.min_qty)
        self.assertEqual(filters.page, 1)

    def test_page_and_limit_are_clamped(self):
        filters = CatalogFilters.from_params(
            {"page": "-4", "limit": "500"}, default_limit=12, max_limit=100
        )
        self.assertEqual(filters.page, 1)
        self.assertEqual(filters.limit, 100)

        filters = CatalogFilters.from_params({"limit": "0"}, default_limit=20)
        self.assertEqual(filters.limit, 20)

    def test_huge_page_keeps_offset_within_64_bits(self):
        filters = CatalogFilters.from_params({"page": "1e20", "limit": "12"}, max_limit=100)
        self.assertLessEqual(filters.offset, 2**63 - 1)
        self.assertGreater(filters.page, 1)

        overflowing = CatalogFilters.from_params({"page": "1e400"})
        self.assertEqual(overflowing.page, 1)

    def test_text_values_are_trimmed(self):
        filters = CatalogFilters.from_params(
            {"q": "  mono ", "category": " module ", "minPrice": " 12.5 "}
        )
        self.assertEqual(filters.query, "mono")
        self.assertEqual(filters.category, "module")
        self.assertEqual(filters.min_price, 12.5)


if __name__ == "__main__":
    unittest.main()
