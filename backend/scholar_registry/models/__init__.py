# Models package init
"""
Scholar Registry: ORM Models
=============================

Importing this package registers every table with `Base.metadata`, which is
what Alembic autogenerate and `Database.create_all()` rely on.
"""

from scholar_registry.models.scholar import Scholar
from scholar_registry.models.sponsor import Sponsor

__all__ = ["Scholar", "Sponsor"]
