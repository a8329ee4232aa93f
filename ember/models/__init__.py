"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Friendship and Pin reference users.id

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from ember.models.user import User  # noqa: F401
from ember.models.friendship import Friendship  # noqa: F401
from ember.models.pin import Pin  # noqa: F401
