from dataclasses import dataclass, field
from uuid import UUID

from seatline.errors import NotFoundError


class UserNotFoundError(NotFoundError):
    entity = "user"


@dataclass(frozen=True)
class UserDTO:
    """DTO for the account part of a user."""

    id: UUID
    email: str
    is_active: bool = True


@dataclass(frozen=True)
class ProfileDTO:
    """DTO for a user's public profile and communication preferences."""

    display_name: str | None = None
    locale: str = "en"
    # e.g. {"event_reminders": False}; missing keys mean enabled
    communication_preferences: dict = field(default_factory=dict)


@dataclass(frozen=True)
class UserWithProfileDTO:
    user: UserDTO
    profile: ProfileDTO | None = None

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.display_name:
            return self.profile.display_name
        return self.user.email
