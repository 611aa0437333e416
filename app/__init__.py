"""
KoboWave API Application Package

REST backend for KoboWave: star-rated reviews of movies and restaurants,
stored in a document store.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy async engine and declarative base
- exceptions.py: Typed service errors
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models (the document table)
- store/: Document store client (collections, queries, server timestamps)
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (validation, reviews, bootstrap, security)
"""

__version__ = "1.0.0"
