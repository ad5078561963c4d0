"""
Travel Story Backend — Application Package
============================================

A personal travel-journal API: users register, sign in with a bearer token,
and keep travel stories (title, narrative, locations, photo, visit date,
favourite flag) that only they can see.

Layers:
    ┌─────────────────────────────────────┐
    │   Routes + Auth Guard (API Layer)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Business Logic)      │  ← validation, ownership scoping
    ├─────────────────────────────────────┤
    │      Models & Schemas (Data)        │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Disk (Persistence)     │  ← async sessions, uploads dir
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
