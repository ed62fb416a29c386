import pytest
from sqlalchemy import func, select

from crates_api.db.models import Dependency, Version
from crates_api.db.session import run_in_session
from crates_api.errors import CrateVersionExistsError, RegistryValidationError
from crates_api.models import NewCrateDependency
from crates_api.package_index import IndexDependency
from crates_api.service.crates import CrateDraft, CrateStore
from crates_api.service.versions import VersionLinker


@pytest.fixture
def crates(make_user):
    alice = make_user("alice")
    store = CrateStore()

    def _create(name):
        return run_in_session(
            lambda session: store.create_or_update(
                CrateDraft(name=name, license="MIT"),
                license_file_present=False,
                actor=alice,
                session=session,
            )
        )

    return _create


def _count(model):
    return run_in_session(lambda session: session.execute(select(func.count()).select_from(model)).scalar())


def test_add_version_links_dependencies(crates):
    app = crates("app")
    crates("Serde-Json")
    deps = [
        NewCrateDependency(name="serde_json", version_req="^1.0", features=["std"], kind="dev"),
        NewCrateDependency(name="serde-json", version_req="^1.0", optional=True, target="cfg(unix)"),
    ]

    version, encoded = run_in_session(
        lambda session: VersionLinker().add_version(
            app,
            "0.1.0",
            {"default": ["std"], "std": []},
            ["alice"],
            deps,
            session=session,
        )
    )

    assert version.num == "0.1.0"
    assert encoded == [
        IndexDependency(name="Serde-Json", req="^1.0", features=["std"], kind="dev"),
        IndexDependency(name="Serde-Json", req="^1.0", optional=True, target="cfg(unix)", kind="normal"),
    ]
    assert _count(Dependency) == 2


def test_duplicate_version_is_rejected_without_dependency_rows(crates):
    app = crates("app")
    crates("dep")
    linker = VersionLinker()
    run_in_session(lambda session: linker.add_version(app, "1.0.0", {}, [], session=session))

    with pytest.raises(CrateVersionExistsError, match="crate version `1.0.0` is already uploaded"):
        run_in_session(
            lambda session: linker.add_version(
                app,
                "1.0.0",
                {},
                [],
                [NewCrateDependency(name="dep", version_req="*")],
                session=session,
            )
        )

    assert _count(Version) == 1
    assert _count(Dependency) == 0


def test_build_metadata_does_not_make_a_new_version(crates):
    app = crates("app")
    linker = VersionLinker()
    run_in_session(lambda session: linker.add_version(app, "1.0.0+a", {}, [], session=session))

    with pytest.raises(CrateVersionExistsError, match=r"crate version `1.0.0\+b` is already uploaded"):
        run_in_session(lambda session: linker.add_version(app, "1.0.0+b", {}, [], session=session))
    run_in_session(lambda session: linker.add_version(app, "1.0.0-rc.1", {}, [], session=session))

    assert _count(Version) == 2


def test_unknown_dependency_aborts_the_whole_version(crates):
    app = crates("app")
    crates("known")
    deps = [
        NewCrateDependency(name="known", version_req="*"),
        NewCrateDependency(name="unknown", version_req="*"),
    ]

    with pytest.raises(RegistryValidationError, match="no known crate named `unknown`"):
        run_in_session(lambda session: VersionLinker().add_version(app, "1.0.0", {}, [], deps, session=session))

    assert _count(Version) == 0
    assert _count(Dependency) == 0


def test_add_dependency_to_existing_version(crates):
    app = crates("app")
    crates("log")
    linker = VersionLinker()

    def _link(session):
        version, _ = linker.add_version(app, "1.0.0", {}, [], session=session)
        return linker.add_dependency(version, NewCrateDependency(name="LOG", version_req="0.4"), session=session)

    encoded = run_in_session(_link)

    assert encoded.name == "log"
    assert encoded.to_dict() == {
        "name": "log",
        "req": "0.4",
        "features": [],
        "optional": False,
        "default_features": True,
        "target": None,
        "kind": "normal",
    }
