import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="crates-registry-tests-"))
os.environ.setdefault("CRATES_REGISTRY_DATABASE_URL", "sqlite://")
os.environ.setdefault("CRATES_REGISTRY_STORAGE_ROOT", str(_TEST_ROOT / "crates"))
os.environ.setdefault("CRATES_REGISTRY_INDEX_ROOT", str(_TEST_ROOT / "index"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from crates_api.db import seed_data
from crates_api.db import session as session_module
from crates_api.db.base import Base
from crates_api.db.models import ReservedCrateName, Team
from crates_api.db.session import run_in_session
from crates_api.errors import IndexAppendError, RegistryAuthorizationError
from crates_api.package_index import LocalPackageIndex
from crates_api.repo.accounts import TeamMembershipRepository, TeamRepository, UserRepository
from crates_api.service.publish import PublishService
from crates_api.storage import LocalArtifactStore
from crates_api.upload import encode_upload


class FailingIndex:
    def __init__(self) -> None:
        self.attempts = []

    def append(self, entry) -> None:
        self.attempts.append(entry)
        raise IndexAppendError(f"could not add crate `{entry.name}` to the index")


class StaticTeamDirectory:
    """Membership checker backed by a plain ``{team_login: {user_id}}`` mapping."""

    def __init__(self, members=None) -> None:
        self.members = {login: set(ids) for login, ids in (members or {}).items()}
        self._teams = TeamRepository()

    def is_member(self, team, user, *, session) -> bool:
        return user.id in self.members.get(team.login, set())

    def resolve_or_create_team(self, login, requesting_user, *, session) -> Team:
        if requesting_user.id not in self.members.get(login, set()):
            raise RegistryAuthorizationError("only members of a team can add it as an owner")
        existing = self._teams.get_by_login(login=login, session=session)
        if existing is not None:
            return existing
        return self._teams.create(login=login, name=login.rsplit(":", 1)[-1], session=session)


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'registry.db').as_posix()}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    monkeypatch.setattr(session_module, "SessionLocal", factory)
    monkeypatch.setattr(seed_data, "SessionLocal", factory)
    yield factory
    engine.dispose()


@pytest.fixture
def make_user():
    users = UserRepository()

    def _make(login: str, *, name: str | None = None):
        return run_in_session(
            lambda session: users.create(
                login=login,
                api_token=f"token-{login}",
                name=name,
                session=session,
            )
        )

    return _make


@pytest.fixture
def add_member():
    memberships = TeamMembershipRepository()

    def _add(team_login: str, user_id: int) -> None:
        run_in_session(
            lambda session: memberships.add_member(team_login=team_login, user_id=user_id, session=session)
        )

    return _add


@pytest.fixture
def reserve_name():
    def _reserve(name: str) -> None:
        run_in_session(lambda session: session.add(ReservedCrateName(name=name)))

    return _reserve


@pytest.fixture
def artifact_store(tmp_path):
    return LocalArtifactStore(tmp_path / "crates", base_url="/crates")


@pytest.fixture
def package_index(tmp_path):
    return LocalPackageIndex(tmp_path / "index")


@pytest.fixture
def publisher(artifact_store, package_index):
    return PublishService(artifacts=artifact_store, index=package_index)


def crate_body(name: str, vers: str = "1.0.0", *, tarball: bytes = b"tarball-bytes", **overrides) -> bytes:
    metadata = {
        "name": name,
        "vers": vers,
        "deps": [],
        "features": {},
        "authors": ["Crate Author <author@example.com>"],
        "description": f"The {name} crate",
        "license": "MIT",
        "keywords": [],
        "categories": [],
        "badges": {},
    }
    metadata.update(overrides)
    return encode_upload(metadata, tarball)


@pytest.fixture
def body():
    return crate_body


@pytest.fixture
def failing_index():
    return FailingIndex()


@pytest.fixture
def team_directory():
    return StaticTeamDirectory()
