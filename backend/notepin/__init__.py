"""
Notepin — Application Package Initializer
==========================================

What: Personal notes board. Short text posts with up to nine images,
      listed newest-first, editable and deletable behind a PIN gate.
Who:  Imported by uvicorn (`notepin.main:app`), Alembic, pytest and the
      headless client package (`notepin.client`).

Architecture Note:
    The server side follows a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Post + Upload rules)  │  ← validation, orchestration
    ├─────────────────────────────────────┤
    │   Stores (sql | json file | memory) │  ← one PostStore interface
    ├─────────────────────────────────────┤
    │   Models & Schemas (ORM + Pydantic) │
    └─────────────────────────────────────┘

    The client side (`notepin.client`) mirrors the browser half of the
    system: data layer, render layer, PIN gate and the feed controller
    that wires them over a session-scoped state object.
"""

__version__ = "1.0.0"
