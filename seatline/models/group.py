from datetime import datetime
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from seatline.config.table_names import TableNames
from seatline.groups.dtos import GroupRole
from seatline.models.base import Base, BaseModel, TimeStamp


class Group(Base, TimeStamp):
    __tablename__ = TableNames.GROUPS.value

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_user_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Group {self.name}>"


class GroupMember(BaseModel):
    __tablename__ = TableNames.GROUP_MEMBERS.value

    group_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.GROUPS.value}.uuid", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        Enum(GroupRole, name="group_role_enum", values_callable=lambda x: [e.value for e in x]),
        default=GroupRole.MEMBER,
        nullable=False,
    )
    joined_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.current_timestamp(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<GroupMember {self.user_id} of {self.group_id} ({self.role})>"
