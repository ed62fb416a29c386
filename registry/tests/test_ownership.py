import pytest
from sqlalchemy import select

from crates_api.db.models import CrateOwner
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryAuthorizationError, RegistryNotFoundError, RegistryValidationError
from crates_api.service.crates import CrateDraft, CrateStore
from crates_api.service.ownership import Owner, OwnershipService, Rights
from crates_api.teams import DatabaseTeamDirectory

TEAM = "github:acme:core"


@pytest.fixture
def crate_of(make_user):
    store = CrateStore()

    def _create(name, owner):
        return run_in_session(
            lambda session: store.create_or_update(
                CrateDraft(name=name, license="MIT"),
                license_file_present=False,
                actor=owner,
                session=session,
            )
        )

    return _create


def _rows(crate_id):
    return run_in_session(
        lambda session: list(
            session.execute(select(CrateOwner).where(CrateOwner.crate_id == crate_id)).scalars().all()
        )
    )


def _rights(service, crate, user):
    return run_in_session(
        lambda session: service.rights(service.owners(crate, session=session), user, session=session)
    )


def test_rights_levels(make_user, add_member, crate_of):
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol")
    add_member(TEAM, alice.id)
    add_member(TEAM, bob.id)
    crate = crate_of("foo", alice)
    service = OwnershipService(directory=DatabaseTeamDirectory())
    run_in_session(lambda session: service.owner_add(crate, alice, TEAM, session=session))

    assert _rights(service, crate, alice) is Rights.FULL
    assert _rights(service, crate, bob) is Rights.PUBLISH
    assert _rights(service, crate, carol) is Rights.NONE
    assert Rights.NONE < Rights.PUBLISH < Rights.FULL


def test_owners_are_tagged_by_kind(make_user, add_member, crate_of):
    alice = make_user("alice", name="Alice")
    add_member(TEAM, alice.id)
    crate = crate_of("foo", alice)
    service = OwnershipService()
    run_in_session(lambda session: service.owner_add(crate, alice, TEAM, session=session))

    owners = run_in_session(lambda session: service.owners(crate, session=session))

    assert [(owner.kind, owner.login) for owner in owners] == [("user", "alice"), ("team", TEAM)]
    assert owners[0] == Owner(kind="user", id=alice.id, login="alice", name="Alice", avatar=None)
    assert owners[1].name == "core"


def test_add_remove_add_reuses_single_row(make_user, crate_of):
    alice = make_user("alice")
    make_user("bob")
    crate = crate_of("foo", alice)
    service = OwnershipService()

    service.add_owners("foo", ["bob"], actor_id=alice.id)
    service.remove_owners("foo", ["bob"], actor_id=alice.id)
    service.add_owners("foo", ["bob"], actor_id=alice.id)

    rows = _rows(crate.id)
    assert len(rows) == 2
    assert all(not row.deleted for row in rows)
    assert [owner.login for owner in service.list_owners("foo").users] == ["alice", "bob"]


def test_removed_owner_is_soft_deleted(make_user, crate_of):
    alice = make_user("alice")
    bob = make_user("bob")
    crate = crate_of("foo", alice)
    service = OwnershipService()
    service.add_owners("foo", ["bob"], actor_id=alice.id)

    service.remove_owners("foo", ["bob"], actor_id=alice.id)

    rows = {row.owner_id: row for row in _rows(crate.id)}
    assert rows[bob.id].deleted is True
    assert [owner.login for owner in service.list_owners("foo").users] == ["alice"]


def test_unknown_user_cannot_be_added(make_user, crate_of):
    alice = make_user("alice")
    crate_of("foo", alice)

    with pytest.raises(RegistryNotFoundError, match="could not find user with login `ghost`"):
        OwnershipService().add_owners("foo", ["ghost"], actor_id=alice.id)


def test_existing_owner_cannot_be_added_twice(make_user, crate_of):
    alice = make_user("alice")
    make_user("bob")
    crate_of("foo", alice)
    service = OwnershipService()
    service.add_owners("foo", ["bob"], actor_id=alice.id)

    with pytest.raises(RegistryValidationError, match="`bob` is already an owner"):
        service.add_owners("foo", ["bob"], actor_id=alice.id)


def test_cannot_remove_yourself(make_user, crate_of):
    alice = make_user("alice")
    crate_of("foo", alice)

    with pytest.raises(RegistryValidationError, match="cannot remove yourself as an owner"):
        OwnershipService().remove_owners("foo", ["alice"], actor_id=alice.id)


def test_removing_unknown_owner_fails(make_user, crate_of):
    alice = make_user("alice")
    crate_of("foo", alice)

    with pytest.raises(RegistryNotFoundError, match="could not find owner with login `ghost`"):
        OwnershipService().remove_owners("foo", ["ghost"], actor_id=alice.id)


def test_non_owner_cannot_modify_owners(make_user, crate_of):
    alice = make_user("alice")
    mallory = make_user("mallory")
    crate_of("foo", alice)

    with pytest.raises(RegistryAuthorizationError, match="only owners have permission to modify owners"):
        OwnershipService().add_owners("foo", ["mallory"], actor_id=mallory.id)


def test_team_member_can_add_but_not_remove(make_user, add_member, crate_of):
    alice = make_user("alice")
    bob = make_user("bob")
    make_user("carol")
    add_member(TEAM, alice.id)
    add_member(TEAM, bob.id)
    crate_of("foo", alice)
    service = OwnershipService()
    service.add_owners("foo", [TEAM], actor_id=alice.id)

    service.add_owners("foo", ["carol"], actor_id=bob.id)
    with pytest.raises(RegistryAuthorizationError, match="team members don't have permission to remove owners"):
        service.remove_owners("foo", ["carol"], actor_id=bob.id)


def test_team_owner_requires_membership_of_requester(make_user, add_member, crate_of):
    alice = make_user("alice")
    bob = make_user("bob")
    add_member(TEAM, alice.id)
    crate_of("foo", alice)
    crate_of("bar", bob)
    service = OwnershipService()
    service.add_owners("foo", [TEAM], actor_id=alice.id)

    with pytest.raises(RegistryAuthorizationError, match=f"only members of {TEAM} can add it as an owner"):
        service.add_owners("bar", [TEAM], actor_id=bob.id)


def test_unknown_team_without_members_is_not_found(make_user, crate_of):
    alice = make_user("alice")
    crate_of("foo", alice)

    with pytest.raises(RegistryNotFoundError, match="could not find the team `github:acme:nobody`"):
        OwnershipService().add_owners("foo", ["github:acme:nobody"], actor_id=alice.id)


def test_membership_checker_is_pluggable(make_user, crate_of, team_directory):
    alice = make_user("alice")
    bob = make_user("bob")
    crate = crate_of("foo", alice)
    team_directory.members[TEAM] = {alice.id, bob.id}
    service = OwnershipService(directory=team_directory)

    service.add_owners("foo", [TEAM], actor_id=alice.id)

    assert _rights(service, crate, bob) is Rights.PUBLISH
