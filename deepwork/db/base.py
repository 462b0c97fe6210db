"""Declarative base shared by the ORM models."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
