"""
Domain Constants: catalog-wide constants.

Collection names, URL layout, and enumerations shared by the store,
the controllers and the views.
"""

# =============================================================================
# Collections (document store)
# =============================================================================

BOOKS = "books"
AUTHORS = "authors"
GENRES = "genres"
BOOK_INSTANCES = "bookinstances"

# =============================================================================
# URL Layout
# =============================================================================
# /catalog/<resource>s            -> list
# /catalog/<resource>/<id>        -> detail (canonical location)
# /catalog/<resource>/create      -> create form
# /catalog/<resource>/<id>/delete -> delete confirmation
# /catalog/<resource>/<id>/update -> update form

CATALOG_PREFIX = "/catalog"

BOOK_LIST_URL = f"{CATALOG_PREFIX}/books"
AUTHOR_LIST_URL = f"{CATALOG_PREFIX}/authors"
GENRE_LIST_URL = f"{CATALOG_PREFIX}/genres"
BOOK_INSTANCE_LIST_URL = f"{CATALOG_PREFIX}/bookinstances"

# =============================================================================
# Book Instance Status
# =============================================================================

STATUS_AVAILABLE = "Available"
STATUS_MAINTENANCE = "Maintenance"
STATUS_LOANED = "Loaned"
STATUS_RESERVED = "Reserved"

BOOK_INSTANCE_STATUSES = (
    STATUS_AVAILABLE,
    STATUS_MAINTENANCE,
    STATUS_LOANED,
    STATUS_RESERVED,
)
DEFAULT_BOOK_INSTANCE_STATUS = STATUS_MAINTENANCE

# =============================================================================
# Sort Direction
# =============================================================================

ASCENDING = 1
DESCENDING = -1
