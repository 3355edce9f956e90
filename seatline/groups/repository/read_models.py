from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatline.config.database import async_session_manager
from seatline.groups.dtos import GroupDTO, GroupMemberDTO, GroupRole, GroupWithMembersDTO
from seatline.models.base import ensure_utc
from seatline.models.group import Group, GroupMember


class GroupReadModel(ABC):
    @abstractmethod
    async def get_group_with_members(self, group_id: UUID) -> GroupWithMembersDTO | None:
        raise NotImplementedError


class SqlGroupReadModel(GroupReadModel):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_group_with_members(self, group_id: UUID) -> GroupWithMembersDTO | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            group = await session.get(Group, group_id)
            if group is None:
                return None
            result = await session.execute(
                select(GroupMember)
                .where(GroupMember.group_id == group_id)
                .order_by(GroupMember.joined_at)
            )
            members = [
                GroupMemberDTO(
                    user_id=member.user_id,
                    role=GroupRole(member.role),
                    joined_at=ensure_utc(member.joined_at),
                )
                for member in result.scalars().all()
            ]
            return GroupWithMembersDTO(
                group=GroupDTO(id=group.uuid, name=group.name, description=group.description),
                members=members,
            )
