"""
EventHub Backend — Application Package Initializer
====================================================

What: Marks the `eventhub` directory as a Python package.
Why:  Enables module imports like `from eventhub.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ownership rules, filters, tokens
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never touch HTTP objects.
"""

__version__ = "1.0.0"
