import pytest
from sqlalchemy import update

from crates_api.db.models import Category, Crate
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryAuthorizationError, RegistryNotFoundError, RegistryValidationError
from crates_api.service.follows import FollowService
from crates_api.service.listing import CrateQuery, ListingService, paginate
from crates_api.service.ownership import OwnershipService


def _set_downloads(name, downloads):
    run_in_session(
        lambda session: session.execute(update(Crate).where(Crate.name == name).values(downloads=downloads))
    )


def _seed_categories(*slugs):
    def _seed(session):
        for slug in slugs:
            session.add(Category(slug=slug, category=slug.title(), description=""))

    run_in_session(_seed)


def _names(result):
    return [crate.name for crate in result.crates]


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def listing():
    return ListingService()


def test_default_listing_is_alphabetical(alice, publisher, listing, body):
    for name in ("zeta", "Alpha", "mid"):
        publisher.publish(body(name), actor_id=alice.id)

    result = listing.search(CrateQuery())

    assert _names(result) == ["Alpha", "mid", "zeta"]
    assert result.meta.total == 3
    assert result.crates[0].max_version == "1.0.0"


def test_exact_match_wins_even_when_sorting_by_downloads(alice, publisher, listing, body):
    publisher.publish(body("serde"), actor_id=alice.id)
    publisher.publish(body("serde-json"), actor_id=alice.id)
    publisher.publish(body("unrelated"), actor_id=alice.id)
    _set_downloads("serde-json", 1000)
    _set_downloads("serde", 5)

    result = listing.search(CrateQuery(q="Serde", sort="downloads"))

    assert _names(result) == ["serde", "serde-json"]
    assert result.meta.total == 2


def test_search_requires_every_term(alice, publisher, listing, body):
    publisher.publish(body("toml", description="A TOML parser"), actor_id=alice.id)
    publisher.publish(body("json", description="A JSON parser"), actor_id=alice.id)
    publisher.publish(body("json-writer", description="Writes JSON"), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(q="json parser"))) == ["json"]


def test_search_treats_like_wildcards_literally(alice, publisher, listing, body):
    publisher.publish(body("foo_bar"), actor_id=alice.id)
    publisher.publish(body("fooxbar"), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(q="foo_"))) == ["foo_bar"]


def test_letter_filter_uses_first_letter(alice, publisher, listing, body):
    for name in ("apple", "Banana", "blueberry"):
        publisher.publish(body(name), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(letter="B"))) == ["Banana", "blueberry"]


def test_keyword_filter(alice, publisher, listing, body):
    publisher.publish(body("toml", keywords=["config"]), actor_id=alice.id)
    publisher.publish(body("json"), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(keyword="CONFIG"))) == ["toml"]


def test_category_filter_includes_subcategories(alice, publisher, listing, body):
    _seed_categories("parsing", "parsing::json", "science")
    publisher.publish(body("serde-json", categories=["parsing::json"]), actor_id=alice.id)
    publisher.publish(body("nom", categories=["parsing"]), actor_id=alice.id)
    publisher.publish(body("ndarray", categories=["science"]), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(category="parsing"))) == ["nom", "serde-json"]
    assert _names(listing.search(CrateQuery(category="parsing::json"))) == ["serde-json"]


def test_category_filter_treats_wildcards_literally(alice, publisher, listing, body):
    _seed_categories("web-programming", "web-programming::http", "web_programming")
    publisher.publish(body("hyper", categories=["web-programming::http"]), actor_id=alice.id)
    publisher.publish(body("actix", categories=["web_programming"]), actor_id=alice.id)

    assert _names(listing.search(CrateQuery(category="web_programming"))) == ["actix"]
    assert _names(listing.search(CrateQuery(category="web%"))) == []


def test_user_filter_ignores_removed_owners(alice, make_user, publisher, listing, body):
    bob = make_user("bob")
    publisher.publish(body("mine"), actor_id=alice.id)
    publisher.publish(body("theirs"), actor_id=bob.id)
    publisher.publish(body("shared"), actor_id=bob.id)
    services = OwnershipService()
    services.add_owners("shared", ["alice"], actor_id=bob.id)

    assert _names(listing.search(CrateQuery(user_id=alice.id))) == ["mine", "shared"]

    services.remove_owners("shared", ["alice"], actor_id=bob.id)

    assert _names(listing.search(CrateQuery(user_id=alice.id))) == ["mine"]


def test_following_filter_requires_login(alice, publisher, listing, body):
    publisher.publish(body("foo"), actor_id=alice.id)
    publisher.publish(body("bar"), actor_id=alice.id)
    FollowService().follow("foo", actor_id=alice.id)

    assert _names(listing.search(CrateQuery(following=True), actor_id=alice.id)) == ["foo"]
    with pytest.raises(RegistryAuthorizationError, match="must be logged in"):
        listing.search(CrateQuery(following=True))


def test_pagination_reports_full_total(alice, publisher, listing, body):
    for name in ("a1", "a2", "a3"):
        publisher.publish(body(name), actor_id=alice.id)

    second = listing.search(CrateQuery(page=2, per_page=2))
    beyond = listing.search(CrateQuery(page=5, per_page=2))

    assert _names(second) == ["a3"]
    assert second.meta.total == 3
    assert beyond.crates == []
    assert beyond.meta.total == 3


@pytest.mark.parametrize(
    "page,per_page,message",
    [
        (0, 10, "page indexing starts from 1"),
        (1, 0, "per_page must be at least 1"),
        (1, 101, "cannot request more than 100 items"),
    ],
)
def test_invalid_pagination(page, per_page, message):
    with pytest.raises(RegistryValidationError, match=message):
        paginate(page, per_page)


def test_paginate_defaults():
    assert paginate(1, None) == (0, 10)
    assert paginate(3, 20) == (40, 20)


def test_summary(alice, publisher, listing, body):
    publisher.publish(body("first", keywords=["cli"]), actor_id=alice.id)
    publisher.publish(body("second", keywords=["cli", "fs"]), actor_id=alice.id)
    publisher.publish(body("first", "1.1.0", keywords=["cli"]), actor_id=alice.id)
    _set_downloads("second", 7)

    summary = listing.summary()

    assert summary.num_crates == 2
    assert summary.num_downloads == 7
    assert [crate.name for crate in summary.new_crates] == ["second", "first"]
    assert [crate.name for crate in summary.most_downloaded] == ["second", "first"]
    assert [crate.name for crate in summary.just_updated] == ["first"]
    assert [keyword.keyword for keyword in summary.popular_keywords][0] == "cli"


def test_show_includes_versions_keywords_and_categories(alice, publisher, listing, body):
    _seed_categories("parsing")
    publisher.publish(body("foo", "1.0.0", keywords=["text"], categories=["parsing"]), actor_id=alice.id)
    publisher.publish(body("foo", "1.10.0", keywords=["text"], categories=["parsing"]), actor_id=alice.id)
    publisher.publish(body("foo", "1.2.0", keywords=["text"], categories=["parsing"]), actor_id=alice.id)

    detail = listing.show("FOO")
    payload = detail.to_dict()

    assert [version.num for version in detail.versions] == ["1.10.0", "1.2.0", "1.0.0"]
    assert payload["crate"]["max_version"] == "1.10.0"
    assert payload["crate"]["keywords"] == ["text"]
    assert payload["crate"]["categories"] == ["parsing"]
    assert payload["crate"]["versions"] == [version.id for version in detail.versions]
    assert payload["crate"]["links"]["versions"] is None
    assert detail.versions[0].dl_path == "/api/v1/crates/foo/1.10.0/download"


def test_show_unknown_crate():
    with pytest.raises(RegistryNotFoundError, match="crate `missing` does not exist"):
        ListingService().show("missing")


def test_versions_are_newest_first(alice, publisher, listing, body):
    publisher.publish(body("foo", "0.9.0"), actor_id=alice.id)
    publisher.publish(body("foo", "0.10.0"), actor_id=alice.id)

    assert [version.num for version in listing.versions("foo").versions] == ["0.10.0", "0.9.0"]


def test_reverse_dependencies_use_latest_version_of_each_dependent(alice, publisher, listing, body):
    dep = [{"name": "log", "version_req": "^1"}]
    publisher.publish(body("log"), actor_id=alice.id)
    publisher.publish(body("app", deps=dep), actor_id=alice.id)
    publisher.publish(body("tool", "1.0.0", deps=dep), actor_id=alice.id)
    publisher.publish(body("tool", "2.0.0"), actor_id=alice.id)
    publisher.publish(body("server", deps=dep), actor_id=alice.id)
    _set_downloads("server", 50)

    result = listing.reverse_dependencies("log")

    assert [dependency.crate_id for dependency in result.dependencies] == ["server", "app"]
    assert result.dependencies[0].downloads == 50
    assert result.dependencies[0].req == "^1"
    assert result.meta.total == 2
