"""
Marketplace constants.
"""
from decimal import Decimal

# Listing endpoints default page size and hard upper bound
DEFAULT_LIMIT = 50
MAX_LIMIT = 500

# Purchase totals are rounded to the price column's scale (6 places)
PRICE_QUANTUM = Decimal("0.000001")

# Header carrying the caller's user id on wallet requests
USER_ID_HEADER = "user-id"
