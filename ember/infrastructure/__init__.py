"""Infrastructure Layer — database sessions, credentials, and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Store failures leave this layer as StoreError, credential failures as
      UnauthenticatedError

Design Decisions:
    - Thin wrappers over SQLAlchemy, bcrypt and python-jose (single responsibility)
"""
