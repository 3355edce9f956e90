from .base import Base, BaseModel, TimeStamp
from .group import Group, GroupMember
from .user import Profile, User

__all__ = [
    "Base",
    "BaseModel",
    "TimeStamp",
    "User",
    "Profile",
    "Group",
    "GroupMember",
]
