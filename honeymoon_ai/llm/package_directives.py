"""
Package Directive Parser
Resolves **SHOW_PACKAGES:<token>** markers in assistant text to packages

Token resolution (case-insensitive):
- featured  -> package store's top packages
- cities    -> curated destination list
- category  -> luxury/adventure/romantic/cultural/beach/city query
- otherwise -> free-text location query

Results from all markers are de-duplicated by id in first-seen order and
capped. Any store failure yields an empty list.
"""

import re
from typing import List, Optional

from loguru import logger

from ..config import settings
from ..interfaces.package_store import PackageStore, get_package_store
from ..schemas.ai_schemas import HoneymoonPackage, PackageCategory
from ..utils.ai_helpers import dedupe_packages

DIRECTIVE_PATTERN = re.compile(r"\*\*SHOW_PACKAGES:([^*]+)\*\*", re.IGNORECASE)

FEATURED_TOKEN = "featured"
CITIES_TOKEN = "cities"
CATEGORY_TOKENS = {c.value for c in PackageCategory}

# Curated "popular destinations" shown for **SHOW_PACKAGES:cities**
CURATED_CITY_PACKAGES: List[HoneymoonPackage] = [
    HoneymoonPackage(
        id="city-kapadokya", title="Kapadokya", location="Kapadokya", country="Türkiye",
        description="Fairy chimneys, cave suites and sunrise balloon flights.",
        duration=4, price=1400, category=PackageCategory.ADVENTURE, rating=4.8, reviews=421,
    ),
    HoneymoonPackage(
        id="city-antalya", title="Antalya", location="Antalya", country="Türkiye",
        description="Turquoise coast beaches and adults-only resorts.",
        duration=7, price=1600, category=PackageCategory.BEACH, rating=4.6, reviews=512,
    ),
    HoneymoonPackage(
        id="city-istanbul", title="İstanbul", location="Istanbul", country="Türkiye",
        description="Bosphorus sunsets and a thousand years of history.",
        duration=4, price=1200, category=PackageCategory.CULTURAL, rating=4.7, reviews=298,
    ),
    HoneymoonPackage(
        id="city-sri-lanka", title="Sri Lanka", location="Sri Lanka", country="Sri Lanka",
        description="Tea country trains, safaris and palm-lined beaches.",
        duration=10, price=2600, category=PackageCategory.ADVENTURE, rating=4.6, reviews=97,
    ),
    HoneymoonPackage(
        id="city-phuket", title="Phuket", location="Phuket", country="Thailand",
        description="Pool villas and island hopping in the Andaman Sea.",
        duration=8, price=2400, category=PackageCategory.BEACH, rating=4.5, reviews=176,
    ),
    HoneymoonPackage(
        id="city-bali", title="Bali", location="Bali", country="Indonesia",
        description="Jungle villas in Ubud and beach clubs in Seminyak.",
        duration=10, price=3200, category=PackageCategory.BEACH, rating=4.7, reviews=188,
    ),
]


def find_directives(text: str) -> List[str]:
    """All directive tokens in order of appearance"""
    return [match.group(1).strip() for match in DIRECTIVE_PATTERN.finditer(text or "")]


def strip_directives(text: str) -> str:
    """Remove directive markers for display, collapsing leftover blank lines"""
    cleaned = DIRECTIVE_PATTERN.sub("", text or "")
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


class PackageDirectiveParser:
    """Resolve directive markers against a package store"""

    def __init__(self, store: Optional[PackageStore] = None, max_packages: Optional[int] = None):
        self._store = store
        self.max_packages = max_packages or settings.MAX_DIRECTIVE_PACKAGES

    @property
    def store(self) -> PackageStore:
        if self._store is None:
            self._store = get_package_store()
        return self._store

    def resolve(self, token: str) -> List[HoneymoonPackage]:
        """Resolve a single token; store errors propagate"""
        key = token.strip().lower()
        if key == FEATURED_TOKEN:
            return self.store.query_featured(self.max_packages)
        if key == CITIES_TOKEN:
            return list(CURATED_CITY_PACKAGES)
        if key in CATEGORY_TOKENS:
            return self.store.query_by_category(key)
        return self.store.query_by_location(token.strip())

    def parse(self, assistant_text: str) -> List[HoneymoonPackage]:
        """
        Extract packages for every directive in the text

        Args:
            assistant_text: Generated assistant reply

        Returns:
            List[HoneymoonPackage]: Unique packages, first-seen order, capped
        """
        tokens = find_directives(assistant_text)
        if not tokens:
            return []

        try:
            candidates: List[HoneymoonPackage] = []
            for token in tokens:
                candidates.extend(self.resolve(token))
        except Exception as e:
            logger.error(f"Package directive resolution failed for {tokens}: {e}")
            return []

        packages = dedupe_packages(candidates, limit=self.max_packages)
        logger.debug(f"Resolved directives {tokens} to {len(packages)} packages")
        return packages


# Global parser instance
package_directive_parser = PackageDirectiveParser()


def parse_package_directives(assistant_text: str) -> List[HoneymoonPackage]:
    """Convenience function using the global package store"""
    return package_directive_parser.parse(assistant_text)
