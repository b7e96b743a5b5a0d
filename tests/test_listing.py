import unittest
from datetime import date

from marketplace.core.listing import (
    build_catalog_product,
    build_listing,
    compute_display_price,
    normalize_locations,
    parse_attributes,
)


class DisplayPriceTest(unittest.TestCase):
    def test_base_price_without_locations(self):
        self.assertEqual(compute_display_price(14.5, []), 14.5)

    def test_lower_location_price_wins(self):
        self.assertEqual(compute_display_price(15, [16, 13.5]), 13.5)

    def test_base_price_kept_when_locations_are_higher(self):
        self.assertEqual(compute_display_price(12, [13, 14]), 12)

    def test_missing_base_price_uses_lowest_location(self):
        self.assertEqual(compute_display_price(None, [18, 17.25]), 17.25)

    def test_zero_base_price_adopts_location_price(self):
        self.assertEqual(compute_display_price(0, [5]), 5)

    def test_nothing_priced_is_zero(self):
        self.assertEqual(compute_display_price(None, []), 0)


class ShapeNormalizerTest(unittest.TestCase):
    def test_malformed_attributes_become_empty(self):
        self.assertEqual(parse_attributes("{not json"), {})
        self.assertEqual(parse_attributes("[1, 2]"), {})
        self.assertEqual(parse_attributes(None), {})
        self.assertEqual(parse_attributes('{"efficiency": "21%"}'), {"efficiency": "21%"})

    def test_locations_accept_json_text(self):
        locations = normalize_locations('[{"state": "Gujarat", "city": "Surat", "price": "13.2"}]')
        self.assertEqual(locations, [{"state": "Gujarat", "city": "Surat", "price": 13.2}])
        self.assertEqual(normalize_locations("oops"), [])
        self.assertEqual(normalize_locations(None), [])

    def test_listing_shape(self):
        listing = build_listing(
            {
                "id": 4,
                "name": "Mono 540",
                "supplier_name": None,
                "supplier_id": 2,
                "category": "module",
                "power_kw": None,
                "min_order": "1 MWp",
                "validity": date(2025, 3, 31),
                "price_ex_factory": 15.0,
                "attributes": {"efficiency": "21%", "name": "shadow", "warranty": 25},
                "locations": [{"state": "Rajasthan", "city": "Jaipur", "price": 14.0}],
            }
        )
        self.assertEqual(listing["supplier"], "Unknown Supplier")
        self.assertEqual(listing["power"], 0)
        self.assertEqual(listing["moq"], "1 MWp")
        self.assertEqual(listing["validity"], "2025-03-31")
        self.assertEqual(listing["basePrice"], 15.0)
        self.assertEqual(listing["displayPrice"], 14.0)
        self.assertEqual(listing["warranty"], 25)
        # Custom keys never shadow reserved listing fields.
        self.assertEqual(listing["name"], "Mono 540")
        self.assertEqual(listing["customFields"]["name"], "shadow")

    def test_listing_without_locations_has_empty_list(self):
        listing = build_listing({"id": 1, "name": "Inverter", "locations": "[]"})
        self.assertEqual(listing["locations"], [])
        self.assertEqual(listing["customFields"], {})
        self.assertEqual(listing["displayPrice"], 0)

    def test_catalog_product_keeps_column_names(self):
        product = build_catalog_product(
            {
                "id": 9,
                "supplier_id": 3,
                "name": "TOPCon 580",
                "row_order": 2,
                "validity": date(2025, 1, 1),
                "attributes": '{"bifaciality": "80%"}',
                "locations": None,
            }
        )
        self.assertEqual(product["row_order"], 2)
        self.assertEqual(product["validity"], "2025-01-01")
        self.assertEqual(product["attributes"], {"bifaciality": "80%"})
        self.assertEqual(product["locations"], [])


if __name__ == "__main__":
    unittest.main()
