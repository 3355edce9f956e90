from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# registers every table on the shared metadata
import seatline.events.repository.orm_models  # noqa: F401
import seatline.notifications.repository.orm_models  # noqa: F401
from seatline.config.database import get_async_session
from seatline.events.dtos import EventVisibility, RSVPStatus
from seatline.events.repository.orm_models import Event, EventRSVP, Venue
from seatline.groups.dtos import GroupRole
from seatline.main import app
from seatline.models import BaseModel, Group, GroupMember, Profile, User

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def db_session():
    """A session on a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def client_factory(db_session: AsyncSession):
    """Build a test client with the given dependency overrides."""

    async def override_get_async_session():
        yield db_session

    @asynccontextmanager
    async def factory(overrides: dict | None = None):
        app.dependency_overrides[get_async_session] = override_get_async_session
        app.dependency_overrides.update(overrides or {})
        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()

    return factory


@pytest.fixture
async def client(client_factory):
    async with client_factory() as client:
        yield client


class Seeder:
    """Inserts rows for SQL model tests."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def user(
        self,
        email: str | None = None,
        display_name: str | None = None,
        communication_preferences: dict | None = None,
        with_profile: bool = True,
    ) -> UUID:
        user = User(uuid=uuid4(), email=email or f"{uuid4().hex[:8]}@example.com", is_active=True)
        self.session.add(user)
        if with_profile:
            self.session.add(
                Profile(
                    user_id=user.uuid,
                    display_name=display_name,
                    locale="en",
                    communication_preferences=communication_preferences or {},
                )
            )
        await self.session.flush()
        return user.uuid

    async def venue(self, name: str = "Community Hall", address: str = "1 Main St") -> UUID:
        venue = Venue(uuid=uuid4(), name=name, address=address, city="Lisbon", country="Portugal")
        self.session.add(venue)
        await self.session.flush()
        return venue.uuid

    async def event(
        self,
        host_user_id: UUID,
        capacity: int | None = None,
        title: str = "Friday Night Draft",
        start_at: datetime | None = None,
        group_id: UUID | None = None,
        venue_id: UUID | None = None,
    ) -> UUID:
        start_at = start_at or datetime.now(UTC) + timedelta(days=7)
        event = Event(
            uuid=uuid4(),
            host_user_id=host_user_id,
            group_id=group_id,
            venue_id=venue_id,
            title=title,
            description="Bring your own sleeves",
            visibility=EventVisibility.PUBLIC,
            capacity=capacity,
            start_at=start_at,
            end_at=start_at + timedelta(hours=3),
            timezone="UTC",
        )
        self.session.add(event)
        await self.session.flush()
        return event.uuid

    async def rsvp(
        self,
        event_id: UUID,
        user_id: UUID,
        status: RSVPStatus,
        created_at: datetime | None = None,
    ) -> None:
        created_at = created_at or datetime.now(UTC)
        self.session.add(
            EventRSVP(
                event_id=event_id,
                user_id=user_id,
                status=status,
                created_at=created_at,
                updated_at=created_at,
            )
        )
        await self.session.flush()

    async def group(
        self,
        owner_user_id: UUID,
        member_ids: list[UUID],
        name: str = "Tuesday Regulars",
    ) -> UUID:
        group = Group(uuid=uuid4(), name=name, description="Weekly games", owner_user_id=owner_user_id)
        self.session.add(group)
        await self.session.flush()
        joined_at = datetime.now(UTC)
        for offset, user_id in enumerate(member_ids):
            self.session.add(
                GroupMember(
                    group_id=group.uuid,
                    user_id=user_id,
                    role=GroupRole.OWNER if user_id == owner_user_id else GroupRole.MEMBER,
                    joined_at=joined_at + timedelta(seconds=offset),
                )
            )
        await self.session.flush()
        return group.uuid


@pytest.fixture
def seed(db_session: AsyncSession) -> Seeder:
    return Seeder(db_session)
