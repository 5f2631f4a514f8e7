"""
User repository.
"""

import logging

from ..domain.models import User, UserStats
from ..identifier import Identifier, by_email
from .base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """User-specific finders and statistics on top of BaseRepository."""

    async def ensure_indexes(self) -> None:
        """Create the unique index on ``email`` so the store rejects duplicates."""
        async with self._unit_of_work() as uow:
            name = await uow.ensure_index("email", unique=True)
        logger.info(f"Ensured index '{name}' on '{User.collection_name()}'")

    async def find_by_email(self, email: str) -> User:
        """
        Raises:
            EntityNotFoundError: If no non-deleted user has this email
        """
        return await self.find_one(by_email(email))

    async def find_active_users(self) -> list[User]:
        return await self.find_all(Identifier().equal("active", True))

    async def find_users_by_age_range(self, min_age: int, max_age: int) -> list[User]:
        """Users with ``min_age <= age <= max_age``."""
        return await self.find_all(Identifier().between("age", min_age, max_age))

    async def get_user_stats(self) -> UserStats:
        users = await self.find_all()
        active_users = await self.count(Identifier().equal("active", True))

        average_age = sum(user.age for user in users) / len(users) if users else 0.0
        return UserStats(
            total_users=len(users),
            active_users=active_users,
            average_age=average_age,
        )
