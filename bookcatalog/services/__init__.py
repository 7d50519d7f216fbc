"""
Services Package

Business logic kept apart from HTTP handling so it can be tested directly.

Current services:
- ratings.py: Rating aggregation (mean of review ratings, 0 when none)
- reviews.py: Review ledger (add / update / delete by owner)
- favorites.py: Per-user favorites set (toggle, membership)
- catalog.py: Book catalog operations composing the three above
- security.py: Password hashing, access tokens, caller identity
- rate_limiter.py: Rate limiting with slowapi
"""
