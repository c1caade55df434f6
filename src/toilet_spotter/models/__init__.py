"""ORM model registry. Import all models so Alembic autogenerate discovers them."""

from toilet_spotter.models.access_code import AccessCode
from toilet_spotter.models.code_vote import CodeVote

__all__ = [
    "AccessCode",
    "CodeVote",
]
