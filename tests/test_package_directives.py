import pytest

from honeymoon_ai.interfaces.package_store import PackageStore
from honeymoon_ai.llm.package_directives import (
    CURATED_CITY_PACKAGES,
    PackageDirectiveParser,
    find_directives,
    strip_directives,
)
from honeymoon_ai.schemas.ai_schemas import HoneymoonPackage, PackageCategory


class BrokenStore:
    def query_featured(self, limit=20):
        raise ConnectionError("store offline")

    query_by_category = query_by_location = query_featured


@pytest.fixture
def parser(package_store):
    return PackageDirectiveParser(store=package_store, max_packages=6)


def test_find_directives_is_case_insensitive():
    text = "Look! **show_packages:Luxury** and **SHOW_PACKAGES: Bali **"

    assert find_directives(text) == ["Luxury", "Bali"]


def test_no_directives_gives_no_packages(parser):
    assert parser.parse("Just a friendly answer") == []


def test_featured_is_capped(parser):
    packages = parser.parse("**SHOW_PACKAGES:featured**")

    assert len(packages) == 6
    assert packages[0].featured


def test_cities_returns_curated_list(parser):
    packages = parser.parse("**SHOW_PACKAGES:cities**")

    assert [p.id for p in packages] == [p.id for p in CURATED_CITY_PACKAGES]


def test_category_and_location_are_deduplicated(parser):
    packages = parser.parse("**SHOW_PACKAGES:luxury**\n**SHOW_PACKAGES:Maldives**")

    assert [p.id for p in packages] == ["pkg-maldives-overwater", "pkg-venice-gondola"]


def test_results_across_markers_are_capped(parser):
    packages = parser.parse("**SHOW_PACKAGES:cities** **SHOW_PACKAGES:beach**")

    assert len(packages) == 6
    assert len({p.id for p in packages}) == 6


def test_unknown_location_gives_nothing(parser):
    assert parser.parse("**SHOW_PACKAGES:Atlantis**") == []


def test_store_failure_gives_empty_list():
    parser = PackageDirectiveParser(store=BrokenStore())

    assert parser.parse("**SHOW_PACKAGES:featured**") == []


def test_custom_store_overlap_is_removed():
    store = PackageStore(packages=PackageStore(mongo_uri="").query_by_category("romantic"))
    parser = PackageDirectiveParser(store=store)

    packages = parser.parse("**SHOW_PACKAGES:romantic** **SHOW_PACKAGES:Paris** **SHOW_PACKAGES:featured**")

    assert sorted(p.id for p in packages) == ["pkg-paris-romance", "pkg-santorini-sunset"]


def test_strip_directives():
    text = "Here are some ideas:\n\n**SHOW_PACKAGES:beach**\n\n\nEnjoy!"

    assert strip_directives(text) == "Here are some ideas:\n\nEnjoy!"


def test_location_matches_turkish_dotted_capitals():
    bosphorus = HoneymoonPackage(
        id="pkg-istanbul-bosphorus",
        title="Boğaz'da Balayı",
        location="İstanbul",
        country="Türkiye",
        price=1800,
        category=PackageCategory.CITY,
    )
    store = PackageStore(packages=[bosphorus])

    assert [p.id for p in store.query_by_location("istanbul")] == ["pkg-istanbul-bosphorus"]
    assert [p.id for p in store.query_by_location("İstanbul")] == ["pkg-istanbul-bosphorus"]
    assert [p.id for p in PackageDirectiveParser(store=store).parse("**SHOW_PACKAGES:İSTANBUL**")] == [
        "pkg-istanbul-bosphorus"
    ]
