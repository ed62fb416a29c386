import pytest
from sqlalchemy import func, select

from crates_api.db import session as session_module
from crates_api.db.models import CrateOwner
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryNotFoundError, RegistryValidationError, ReservedCrateNameError
from crates_api.licenses import NON_STANDARD_LICENSE
from crates_api.naming import canonicalize
from crates_api.repo.crates import CrateRepository
from crates_api.service.crates import CrateDraft, CrateStore


def _create(store, draft, actor, *, license_file_present=False):
    return run_in_session(
        lambda session: store.create_or_update(
            draft,
            license_file_present=license_file_present,
            actor=actor,
            session=session,
        )
    )


def _owner_rows():
    return run_in_session(lambda session: list(session.execute(select(CrateOwner)).scalars().all()))


def test_first_publish_creates_crate_and_owner(make_user):
    alice = make_user("alice")
    store = CrateStore()

    crate = _create(store, CrateDraft(name="Foo-Bar", description="first", license="MIT"), alice)

    assert crate.name == "Foo-Bar"
    assert crate.canonical_name == "foo_bar"
    rows = _owner_rows()
    assert [(row.owner_id, row.owner_kind, row.created_by, row.deleted) for row in rows] == [
        (alice.id, "user", alice.id, False)
    ]


def test_lookup_ignores_case_and_separator(make_user):
    alice = make_user("alice")
    store = CrateStore()
    _create(store, CrateDraft(name="foo-bar", license="MIT"), alice)

    for name in ("foo_bar", "FOO-BAR", "Foo_Bar"):
        found = run_in_session(lambda session: store.find_by_name(name, session=session))
        assert found.name == "foo-bar"


def test_missing_crate_is_not_found():
    with pytest.raises(RegistryNotFoundError, match="crate `nope` does not exist"):
        run_in_session(lambda session: CrateStore().find_by_name("nope", session=session))


def test_second_publish_updates_fields_but_not_name(make_user):
    alice = make_user("alice")
    store = CrateStore()
    _create(store, CrateDraft(name="foo", description="old", license="MIT", max_upload_size=5), alice)

    crate = _create(
        store,
        CrateDraft(name="FOO", description="new", homepage="https://example.com", license="Apache-2.0"),
        alice,
    )

    assert crate.name == "foo"
    assert crate.description == "new"
    assert crate.homepage == "https://example.com"
    assert crate.license == "Apache-2.0"
    assert crate.max_upload_size == 5
    assert len(_owner_rows()) == 1


def test_concurrent_first_publish_records_a_single_owner(make_user):
    alice = make_user("alice")
    bob = make_user("bob")

    class RacingCrateRepository(CrateRepository):
        """Commits a competing insert from another session right before our own."""

        def insert_if_absent(self, *, values, session):
            competitor = session_module.SessionLocal()
            try:
                CrateRepository().insert_if_absent(values=dict(values), session=competitor)
                competitor.add(
                    CrateOwner(
                        crate_id=CrateRepository().get_by_name(name=values["name"], session=competitor).id,
                        owner_id=bob.id,
                        owner_kind="user",
                        created_by=bob.id,
                        deleted=False,
                    )
                )
                competitor.commit()
            finally:
                competitor.close()
            return super().insert_if_absent(values=values, session=session)

    store = CrateStore(crates=RacingCrateRepository())
    crate = _create(store, CrateDraft(name="contested", description="alice's", license="MIT"), alice)

    assert crate.description == "alice's"
    rows = _owner_rows()
    assert [(row.owner_id, row.created_by) for row in rows] == [(bob.id, bob.id)]
    count = run_in_session(
        lambda session: session.execute(select(func.count()).select_from(CrateOwner)).scalar()
    )
    assert count == 1


def test_reserved_names_are_rejected_in_any_spelling(make_user, reserve_name):
    alice = make_user("alice")
    reserve_name("Core-Foundation")

    with pytest.raises(ReservedCrateNameError, match="cannot upload a crate with a reserved name"):
        _create(CrateStore(), CrateDraft(name="core_foundation", license="MIT"), alice)


@pytest.mark.parametrize(
    "field,url,message",
    [
        ("homepage", "not a url", "`homepage` is not a valid url: `not a url`"),
        ("documentation", "ftp://example.com/docs", "`documentation` has an invalid url scheme: `ftp`"),
        ("repository", "https:example", "`repository` must have relative scheme data: https:example"),
    ],
)
def test_invalid_urls_are_rejected(make_user, field, url, message):
    alice = make_user("alice")
    draft = CrateDraft(name="foo", license="MIT", **{field: url})

    with pytest.raises(RegistryValidationError) as excinfo:
        _create(CrateStore(), draft, alice)

    assert str(excinfo.value) == message
    assert _owner_rows() == []


def test_invalid_license_is_rejected_without_writes(make_user):
    alice = make_user("alice")

    with pytest.raises(RegistryValidationError, match="spdx.org/licenses"):
        _create(CrateStore(), CrateDraft(name="foo", license="NOT-A-LICENSE"), alice)

    assert run_in_session(lambda session: CrateRepository().get_by_name(name="foo", session=session)) is None


def test_license_file_marks_license_non_standard(make_user):
    alice = make_user("alice")

    crate = _create(CrateStore(), CrateDraft(name="foo"), alice, license_file_present=True)

    assert crate.license == NON_STANDARD_LICENSE
    assert crate.canonical_name == canonicalize("foo")
