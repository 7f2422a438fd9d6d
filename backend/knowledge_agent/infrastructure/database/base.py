"""Declarative base shared by the documents and chat_history tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the agent's ORM models; ``create_all`` runs at startup."""
