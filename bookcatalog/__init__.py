"""
Book Catalog API Application Package

REST backend for a book catalog: browse and search books, mark favorites,
and post star-rated reviews.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine and session management
- exceptions.py: Domain errors raised by the services
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (ratings, review ledger, favorites, catalog)
"""

__version__ = "0.1.0"
