"""Convenience imports for Alembic metadata discovery."""

from app.models.user import User
from app.models.email_token import EmailToken
