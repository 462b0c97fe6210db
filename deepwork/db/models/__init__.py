"""ORM models."""

from deepwork.db.models.task import TaskRecord

__all__ = ["TaskRecord"]
