"""
Test Suite for the Book Catalog API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_ratings.py / test_review_ledger.py / test_favorites.py: Domain services
- test_catalog_service.py: Catalog operations called directly
- test_concurrency.py: Version-checked writes from competing sessions
- test_books.py / test_reviews.py / test_auth.py: HTTP endpoints

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=bookcatalog --cov-report=html

    # Run specific file
    pytest tests/test_books.py

    # Run with verbose output
    pytest -v
"""
