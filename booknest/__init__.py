"""
BookNest Application Package

Community book-sharing API: members (and anonymous visitors) submit book
links, vote on them, discuss them in threaded comments and write star reviews.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- exceptions.py: Domain error taxonomy mapped to HTTP responses
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (identity, votes, ratings, comments, auth)
"""

__version__ = "0.1.0"
