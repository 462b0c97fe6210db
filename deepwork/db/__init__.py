"""Database utilities and models."""

from deepwork.db.base import Base
from deepwork.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
