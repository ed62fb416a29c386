"""Utility script for registry accounts, team memberships and download rollups."""

from __future__ import annotations

import argparse
import secrets
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from crates_api.db.session import run_in_session
from crates_api.repo.accounts import TeamMembershipRepository, UserRepository
from crates_api.service.downloads import DownloadService

_users = UserRepository()
_memberships = TeamMembershipRepository()


def create_user(args: argparse.Namespace) -> None:
    token = args.token or secrets.token_hex(16)

    def _create(session):
        if _users.get_by_login(login=args.login, session=session):
            return None
        return _users.create(
            login=args.login,
            api_token=token,
            name=args.name,
            email=args.email,
            session=session,
        ).id

    user_id = run_in_session(_create)
    if user_id is None:
        print(f"User '{args.login}' already exists.", file=sys.stderr)
        sys.exit(1)
    print(f"Created user '{args.login}' with id {user_id} and token {token}")


def add_team_member(args: argparse.Namespace) -> None:
    def _add(session):
        user = _users.get_by_login(login=args.login, session=session)
        if user is None:
            return False
        _memberships.add_member(team_login=args.team, user_id=user.id, session=session)
        return True

    if not run_in_session(_add):
        print(f"User '{args.login}' not found.", file=sys.stderr)
        sys.exit(1)
    print(f"Added '{args.login}' to team '{args.team}'")


def update_downloads(_: argparse.Namespace) -> None:
    total = DownloadService().rollup()
    print(f"Rolled up {total} downloads")


def main() -> None:
    parser = argparse.ArgumentParser(description="Manage the crates registry")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user with an API token")
    create.add_argument("login")
    create.add_argument("--name")
    create.add_argument("--email")
    create.add_argument("--token", help="API token; generated when omitted")
    create.set_defaults(func=create_user)

    member = sub.add_parser("add-team-member", help="Record a user as member of a team")
    member.add_argument("team", help="Team login such as github:org:team")
    member.add_argument("login")
    member.set_defaults(func=add_team_member)

    rollup = sub.add_parser("update-downloads", help="Fold daily downloads into crate totals")
    rollup.set_defaults(func=update_downloads)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
