"""
CampusConnect - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import datetime, timedelta
from typing import AsyncGenerator, Iterable, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
_TMP_DIR = tempfile.mkdtemp(prefix="campusconnect-tests-")
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{_TMP_DIR}/app.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['UPLOAD_DIR'] = f'{_TMP_DIR}/uploads'
os.environ.pop('REDIS_URL', None)
os.environ.pop('SUPER_ADMIN_EMAIL', None)

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.core.types import generate_uuid
from app.models import (
    User,
    UsedEmail,
    PlatformRole,
    UserStatus,
    Institution,
    InstitutionMembership,
    MembershipKind,
    MembershipStatus,
    College,
    Department,
    Program,
    Club,
    ClubMembership,
    ClubStatus,
    ClubRole,
    Event,
    Announcement,
    PostStatus,
    Visibility,
)
from app.modules.auth.session import SessionUser
from app.services.auth_service import issue_token
from app.services.storage_service import UploadStorage, get_upload_storage
from app.utils.slug import slugify

fake = Faker()

PASSWORD = 'password123'

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = bytes.fromhex(
    '89504e470d0a1a0a0000000d4948445200000001000000010806000000'
    '1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082'
)


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file for each test"""
    eng = create_async_engine(f'sqlite+aiosqlite:///{tmp_path}/test.db', poolclass=NullPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> UploadStorage:
    return UploadStorage(base_dir=tmp_path / 'uploads', url_prefix='/uploads')


@pytest.fixture
async def client(session_factory, storage) -> AsyncGenerator[AsyncClient, None]:
    """Test client; each request gets its own session committed like get_db does"""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                if session.in_transaction():
                    await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    """Bearer header carrying the same claims the login endpoint issues"""
    return {'Authorization': f'Bearer {issue_token(user)}'}


def image_file(name: str = 'logo.png') -> tuple:
    return (name, PNG_BYTES, 'image/png')


class Factory:
    """Builds committed fixtures directly through the models"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._phone = 9170000000

    def _next_phone(self) -> str:
        self._phone += 1
        return f'0{self._phone}'

    async def _commit(self, *entities):
        await self.db.commit()
        return entities[0] if len(entities) == 1 else entities

    def _user(self, role: PlatformRole, status: UserStatus, email: Optional[str] = None, **fields) -> User:
        email = (email or fake.unique.email()).lower()
        user = User(
            id=generate_uuid(),
            name=fields.pop('name', None) or fake.name(),
            email=email,
            hashed_password=get_password_hash(fields.pop('password', PASSWORD)),
            platform_role=role,
            status=status,
            **fields,
        )
        self.db.add(user)
        self.db.add(UsedEmail(email=email))
        return user

    async def institution(
        self,
        name: str = 'Partido State University',
        status: UserStatus = UserStatus.APPROVED,
        email: Optional[str] = None,
    ) -> User:
        """Institution account; its profile shares the account id"""
        account = self._user(PlatformRole.INSTITUTION, status, email=email, name=name)
        self.db.add(Institution(
            id=account.id,
            name=name,
            slug=slugify(name),
            contact_person_email=account.email,
            email_domain='parsu.edu.ph',
        ))
        return await self._commit(account)

    async def member(
        self,
        institution: User,
        kind: MembershipKind = MembershipKind.STUDENT,
        status: UserStatus = UserStatus.ACTIVE,
        membership_status: MembershipStatus = MembershipStatus.APPROVED,
        is_staff: bool = False,
        email: Optional[str] = None,
        **fields,
    ) -> User:
        role = PlatformRole.STUDENT if kind == MembershipKind.STUDENT else PlatformRole.EMPLOYEE
        user = self._user(
            role, status, email=email,
            phone=fields.pop('phone', None) or self._next_phone(),
            id_number=fields.pop('id_number', None) or fake.unique.bothify('##-#####'),
            **fields,
        )
        self.db.add(InstitutionMembership(
            id=generate_uuid(),
            user_id=user.id,
            institution_id=institution.id,
            kind=kind,
            status=membership_status,
            is_staff=is_staff,
        ))
        return await self._commit(user)

    async def student(self, institution: User, **kwargs) -> User:
        return await self.member(institution, MembershipKind.STUDENT, **kwargs)

    async def employee(self, institution: User, **kwargs) -> User:
        return await self.member(institution, MembershipKind.EMPLOYEE, **kwargs)

    async def super_admin(self, protected: bool = True) -> User:
        user = self._user(PlatformRole.SUPER_ADMIN, UserStatus.ACTIVE, is_protected=protected)
        return await self._commit(user)

    async def club(
        self,
        institution: User,
        name: Optional[str] = None,
        status: ClubStatus = ClubStatus.APPROVED,
        advisor: Optional[User] = None,
        officers: Iterable[User] = (),
        members: Iterable[User] = (),
    ) -> Club:
        name = name or f'{fake.unique.word().title()} Society'
        club = Club(
            id=generate_uuid(),
            institution_id=institution.id,
            slug=slugify(name),
            status=status,
            advisor_id=advisor.id if advisor else None,
        )
        club.rename(name)
        self.db.add(club)
        for user in officers:
            self.db.add(ClubMembership(id=generate_uuid(), club_id=club.id, user_id=user.id, role=ClubRole.OFFICER))
        for user in members:
            self.db.add(ClubMembership(id=generate_uuid(), club_id=club.id, user_id=user.id, role=ClubRole.MEMBER))
        return await self._commit(club)

    async def event(
        self,
        institution: User,
        club: Optional[Club] = None,
        status: PostStatus = PostStatus.PUBLISHED,
        visibility: Visibility = Visibility.INSTITUTION,
        start_at: Optional[datetime] = None,
        author: Optional[User] = None,
        title: Optional[str] = None,
    ) -> Event:
        start_at = start_at or datetime.utcnow() + timedelta(days=1)
        event = Event(
            id=generate_uuid(),
            institution_id=institution.id,
            club_id=club.id if club else None,
            author_id=author.id if author else institution.id,
            title=title or fake.sentence(nb_words=3),
            description=fake.paragraph(),
            start_at=start_at,
            end_at=start_at + timedelta(hours=2),
            venue='Main Gym',
            visibility=visibility,
            status=status,
        )
        self.db.add(event)
        return await self._commit(event)

    async def announcement(
        self,
        institution: User,
        club: Optional[Club] = None,
        status: PostStatus = PostStatus.PUBLISHED,
        visibility: Visibility = Visibility.INSTITUTION,
        author: Optional[User] = None,
        created_at: Optional[datetime] = None,
    ) -> Announcement:
        announcement = Announcement(
            id=generate_uuid(),
            institution_id=institution.id,
            club_id=club.id if club else None,
            author_id=author.id if author else institution.id,
            title=fake.sentence(nb_words=3),
            description=fake.paragraph(),
            visibility=visibility,
            status=status,
            created_at=created_at or datetime.utcnow(),
        )
        self.db.add(announcement)
        return await self._commit(announcement)

    async def org_units(self, institution: User):
        """(college, department, program) chain of one institution"""
        college = College(id=generate_uuid(), institution_id=institution.id, name='College of Science', acronym='CS')
        department = Department(
            id=generate_uuid(), institution_id=institution.id, college_id=college.id,
            name='Department of Computing', acronym='DC',
        )
        program = Program(
            id=generate_uuid(), institution_id=institution.id, department_id=department.id,
            name='BS Computer Science', acronym='BSCS',
        )
        self.db.add_all([college, department, program])
        return await self._commit(college, department, program)


@pytest.fixture
def factory(db_session: AsyncSession) -> Factory:
    return Factory(db_session)


def session_for(user: User, institution_id: Optional[str] = None, is_staff: bool = False) -> SessionUser:
    """Resolved session as the auth dependency would build it"""
    if user.platform_role == PlatformRole.INSTITUTION:
        institution_id = user.id
    return SessionUser(
        user_id=user.id,
        role=user.platform_role,
        institution_id=institution_id,
        email=user.email,
        name=user.name,
        is_staff=is_staff,
    )
