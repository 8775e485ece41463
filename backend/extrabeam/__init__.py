"""
ExtraBeam Backend - Application Package
=======================================

What: The `extrabeam` package: API for freelancers ("entreprises") to manage
      missions, availability, invoices, client contacts and a public CV page.
Who:  Imported by uvicorn (`extrabeam.main:app`), Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Business Rules)       │  ← access checks, pricing, mails
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
