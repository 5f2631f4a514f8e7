"""
User service.

Business rules for users on top of UserRepository: input validation,
email uniqueness and activation state changes.
"""

import logging
from collections.abc import Sequence

from bson import ObjectId

from ..constants import MAX_USER_AGE, MIN_USER_AGE
from ..domain.models import User, UserStats
from ..exceptions import DuplicateEntityError, EntityNotFoundError, ValidationError
from ..identifier import by_id
from ..repositories.users import UserRepository
from ..utils.mongo import coerce_object_id

logger = logging.getLogger(__name__)


def _check_age(age: int) -> None:
    if age < MIN_USER_AGE or age > MAX_USER_AGE:
        raise ValidationError(
            f"age must be between {MIN_USER_AGE} and {MAX_USER_AGE}", field="age"
        )


class UserService:
    """
    User use cases.

    Example:
        service = UserService(UserRepository(factory))
        alice = await service.create_user("alice@example.com", 30)
        await service.deactivate_user(alice.id)
    """

    def __init__(self, repository: UserRepository):
        self._repository = repository

    @property
    def repository(self) -> UserRepository:
        return self._repository

    async def create_user(self, email: str, age: int) -> User:
        """
        Create an active user.

        Raises:
            ValidationError: If email is empty or age is out of range
            DuplicateEntityError: If a user with this email already exists
        """
        if not email:
            raise ValidationError("email is required", field="email")
        _check_age(age)

        try:
            await self._repository.find_by_email(email)
        except EntityNotFoundError:
            pass
        else:
            raise DuplicateEntityError(
                f"user with email {email} already exists", field="email", value=email
            )

        user = User(
            name=f"User_{email}",
            slug=f"user-{email}",
            email=email,
            age=age,
            active=True,
        )
        user = await self._repository.insert(user)
        logger.info(f"Created user {user.id} ({email})")
        return user

    async def get_user_by_id(self, id: ObjectId | str) -> User:
        return await self._repository.find_one_by_id(id)

    async def get_user_by_email(self, email: str) -> User:
        return await self._repository.find_by_email(email)

    async def update_user(self, user: User) -> User:
        """Persist changes to ``user``, matched by its id."""
        _check_age(user.age)
        return await self._repository.update(by_id(user.id), user)

    async def _set_active(self, id: ObjectId | str, active: bool) -> User:
        user = await self._repository.find_one_by_id(id)
        user.active = active
        return await self._repository.update(by_id(user.id), user)

    async def deactivate_user(self, id: ObjectId | str) -> User:
        return await self._set_active(id, False)

    async def activate_user(self, id: ObjectId | str) -> User:
        return await self._set_active(id, True)

    async def delete_user(self, id: ObjectId | str) -> None:
        """Physically delete a user."""
        await self._repository.delete(by_id(coerce_object_id(id)))

    async def get_all_active_users(self) -> list[User]:
        return await self._repository.find_active_users()

    async def get_users_by_age_range(self, min_age: int, max_age: int) -> list[User]:
        if min_age < MIN_USER_AGE or max_age > MAX_USER_AGE or min_age > max_age:
            raise ValidationError("invalid age range", field="age")
        return await self._repository.find_users_by_age_range(min_age, max_age)

    async def get_user_statistics(self) -> UserStats:
        return await self._repository.get_user_stats()

    async def create_users(self, users: Sequence[User]) -> list[User]:
        """
        Validate every user, then insert them in one batch.

        Nothing is inserted when any user fails validation.
        """
        for i, user in enumerate(users):
            if not user.email:
                raise ValidationError(f"user {i}: email is required", field="email")
            try:
                _check_age(user.age)
            except ValidationError as e:
                raise ValidationError(f"user {i}: {e.message}", field="age") from e

        return await self._repository.bulk_insert(users)

    async def bulk_deactivate_users(self, ids: Sequence[ObjectId | str]) -> None:
        """
        Deactivate users one at a time.

        Stops at the first failure; users deactivated before it stay
        deactivated.
        """
        for id in ids:
            try:
                await self.deactivate_user(id)
            except Exception:
                logger.warning(f"Failed to deactivate user {id}")
                raise
