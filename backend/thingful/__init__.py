"""
Thingful Backend — Application Package Initializer
==================================================

What: Marks the `thingful` directory as a Python package.
Why:  Enables module imports like `from thingful.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │     Routes + Auth Dependency (API)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Authentication, serialization
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The authenticator in services/auth_service.py knows nothing about HTTP or
    SQLAlchemy: storage and hashing are handed to it as explicit callables.
"""

__version__ = "1.0.0"
