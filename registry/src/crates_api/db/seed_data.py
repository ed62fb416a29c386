"""Seed the registry database with reserved names, categories and a dev account."""

from __future__ import annotations

import os

from sqlalchemy import select

from .models import Category, ReservedCrateName, User
from .session import SessionLocal

RESERVED_CRATE_NAMES = [
    "alloc",
    "arena",
    "ast",
    "builtins",
    "collections",
    "compiler-builtins",
    "compiler-rt",
    "compiletest",
    "core",
    "coretest",
    "debug",
    "driver",
    "flate",
    "fmt_macros",
    "grammar",
    "graphviz",
    "macro",
    "macros",
    "proc_macro",
    "rbml",
    "rust-installer",
    "rustbook",
    "rustc",
    "rustc_back",
    "rustc_borrowck",
    "rustc_driver",
    "rustc_llvm",
    "rustc_resolve",
    "rustc_trans",
    "rustc_typeck",
    "rustdoc",
    "rustllvm",
    "rustuv",
    "serialize",
    "std",
    "syntax",
    "test",
    "unicode",
]

DEFAULT_CATEGORIES = [
    {"slug": "algorithms", "category": "Algorithms", "description": "Core algorithm implementations."},
    {"slug": "api-bindings", "category": "API bindings", "description": "Idiomatic wrappers of APIs."},
    {"slug": "command-line-utilities", "category": "Command line utilities", "description": "Applications to run at the command line."},
    {"slug": "data-structures", "category": "Data structures", "description": "Rust implementations of data structures."},
    {"slug": "database", "category": "Database interfaces", "description": "Crates to interface with database management systems."},
    {"slug": "development-tools", "category": "Development tools", "description": "Crates that provide developer-facing features."},
    {"slug": "development-tools::testing", "category": "Testing", "description": "Crates to help you verify the correctness of your code."},
    {"slug": "encoding", "category": "Encoding", "description": "Encoding and/or decoding data from one format to another."},
    {"slug": "network-programming", "category": "Network programming", "description": "Crates dealing with higher-level network protocols."},
    {"slug": "parsing", "category": "Parser tooling", "description": "Crates to help create parsers of binary and text formats."},
    {"slug": "web-programming", "category": "Web programming", "description": "Crates to create applications for the web."},
    {"slug": "web-programming::http-client", "category": "HTTP client", "description": "Crates to make HTTP network requests."},
    {"slug": "web-programming::http-server", "category": "HTTP server", "description": "Crates to serve data over HTTP."},
]

DEV_ACCOUNT = {"login": "registry-dev", "name": "Registry Developer", "api_token": "registry-dev-token"}


def _env_flag(name: str, default: str | None = None) -> bool:
    value = os.getenv(name, default)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def seed_reserved_names() -> None:
    with SessionLocal() as session:
        existing = set(session.execute(select(ReservedCrateName.name)).scalars().all())
        for name in RESERVED_CRATE_NAMES:
            if name not in existing:
                session.add(ReservedCrateName(name=name))
        session.commit()


def seed_categories() -> None:
    with SessionLocal() as session:
        existing = set(session.execute(select(Category.slug)).scalars().all())
        for entry in DEFAULT_CATEGORIES:
            if entry["slug"] in existing:
                continue
            session.add(
                Category(
                    slug=entry["slug"],
                    category=entry["category"],
                    description=entry["description"],
                )
            )
        session.commit()


def seed_dev_account() -> None:
    if not _env_flag("CRATES_REGISTRY_SEED_DEV_ACCOUNT", "false"):
        return
    with SessionLocal() as session:
        existing = session.execute(
            select(User).where(User.login == DEV_ACCOUNT["login"])
        ).scalar_one_or_none()
        if existing:
            return
        session.add(
            User(
                login=DEV_ACCOUNT["login"],
                name=DEV_ACCOUNT["name"],
                api_token=DEV_ACCOUNT["api_token"],
            )
        )
        session.commit()
