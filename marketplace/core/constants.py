DEFAULT_CATEGORY = "module"

# Filter value meaning "no restriction", sent by the marketplace drop-downs.
ALL_SENTINEL = "All"

SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_NEWEST = "newest"
SORT_CATALOG = "catalog"
DEFAULT_SORT = SORT_NEWEST

UNKNOWN_SUPPLIER = "Unknown Supplier"

ALLOWED_UPLOAD_EXTENSIONS = (".pdf", ".pan", ".ond", ".png", ".jpg", ".jpeg", ".webp", ".gif")
