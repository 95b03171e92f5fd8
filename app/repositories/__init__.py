"""Data access for ORM models."""

from app.repositories.user_repository import UserRepository

__all__ = ["UserRepository"]
