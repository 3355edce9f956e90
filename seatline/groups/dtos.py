from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from seatline.errors import NotFoundError


class GroupNotFoundError(NotFoundError):
    entity = "group"


class GroupRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class GroupDTO:
    id: UUID
    name: str
    description: str | None = None


@dataclass(frozen=True)
class GroupMemberDTO:
    user_id: UUID
    role: GroupRole = GroupRole.MEMBER
    joined_at: datetime | None = None


@dataclass(frozen=True)
class GroupWithMembersDTO:
    """DTO for a group together with its membership list."""

    group: GroupDTO
    members: list[GroupMemberDTO] = field(default_factory=list)
