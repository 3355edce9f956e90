from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatline.config.database import async_session_manager
from seatline.models.user import Profile, User
from seatline.users.dtos import ProfileDTO, UserDTO, UserWithProfileDTO


class UserReadModel(ABC):
    @abstractmethod
    async def get_user_with_profile(self, user_id: UUID) -> UserWithProfileDTO | None:
        """Return the user and their profile, or None if the user does not exist."""
        raise NotImplementedError


class SqlUserReadModel(UserReadModel):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_user_with_profile(self, user_id: UUID) -> UserWithProfileDTO | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            stmt = (
                select(User, Profile)
                .outerjoin(Profile, Profile.user_id == User.uuid)
                .where(User.uuid == user_id)
            )
            row = (await session.execute(stmt)).one_or_none()
            if row is None:
                return None
            user, profile = row
            return UserWithProfileDTO(
                user=UserDTO(id=user.uuid, email=user.email, is_active=user.is_active),
                profile=ProfileDTO(
                    display_name=profile.display_name,
                    locale=profile.locale,
                    communication_preferences=dict(profile.communication_preferences or {}),
                )
                if profile is not None
                else None,
            )
