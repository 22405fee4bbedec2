"""
Scholar Registry: Application Package
======================================

Backend for the scholar records UI: a JSON/multipart API over a database of
scholar records, with profile images kept in blob storage.

Layers:
    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← HTTP concerns, upload size cap
    ├─────────────────────────────────────┤
    │        Services (Business Logic)    │  ← record lifecycle, image swaps
    ├──────────────────┬──────────────────┤
    │ Models & Schemas │  Blob Stores     │  ← SQLAlchemy ORM / S3 / local disk
    ├──────────────────┴──────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
