# interfaces/package_store.py
"""
Package Store for honeymoon package retrieval.
Loads the catalog from MongoDB into in-memory indexes, falling back to a
built-in sample catalog when MongoDB is disabled or unreachable.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError
from pymongo import MongoClient

from ..algorithms.keyword_tables import normalize_text
from ..config import settings
from ..schemas.ai_schemas import HoneymoonPackage, PackageCategory


SAMPLE_PACKAGES: List[Dict[str, Any]] = [
    {
        "id": "pkg-paris-romance", "title": "Romantic Paris Getaway",
        "description": "Five days in the City of Love with a Seine cruise and candlelit dinners.",
        "location": "Paris", "country": "France", "duration": 5, "price": 2800, "currency": "EUR",
        "category": "romantic", "features": ["Boutique Hotel", "River Cruise", "Fine Dining"],
        "inclusions": ["5-star accommodation", "Breakfast", "Private transfers"],
        "rating": 4.8, "reviews": 156, "seasonality": ["spring", "autumn"], "featured": True,
    },
    {
        "id": "pkg-santorini-sunset", "title": "Santorini Sunset Romance",
        "description": "Caldera-view infinity pool suite with private sunset dinners.",
        "location": "Santorini", "country": "Greece", "duration": 7, "price": 3500, "currency": "EUR",
        "category": "romantic", "features": ["Infinity Pool Suite", "Wine Tasting", "Sunset Dinners"],
        "inclusions": ["Luxury suite", "Breakfast", "Airport transfers"],
        "rating": 4.9, "reviews": 203, "seasonality": ["spring", "summer"], "featured": True,
    },
    {
        "id": "pkg-maldives-overwater", "title": "Maldives Overwater Villa",
        "description": "All-inclusive overwater villa with a private deck and couples spa.",
        "location": "Maldives", "country": "Maldives", "duration": 7, "price": 8900, "currency": "EUR",
        "category": "luxury", "features": ["Overwater Villa", "Couples Spa", "Snorkeling"],
        "inclusions": ["All inclusive", "Seaplane transfer"],
        "rating": 4.9, "reviews": 312, "seasonality": ["winter", "spring"], "featured": True,
    },
    {
        "id": "pkg-bali-jungle", "title": "Bali Jungle & Beach Escape",
        "description": "Ubud jungle villa followed by Seminyak beach days.",
        "location": "Bali", "country": "Indonesia", "duration": 10, "price": 3200, "currency": "EUR",
        "category": "beach", "features": ["Private Pool Villa", "Rice Terrace Tour", "Beach Club"],
        "inclusions": ["Breakfast", "Private driver"],
        "rating": 4.7, "reviews": 188, "seasonality": ["summer", "autumn"], "featured": True,
    },
    {
        "id": "pkg-kapadokya-balloon", "title": "Cappadocia Balloon & Cave Suite",
        "description": "Sunrise balloon flight over fairy chimneys and a cave hotel suite.",
        "location": "Kapadokya", "country": "Türkiye", "duration": 4, "price": 1400, "currency": "EUR",
        "category": "adventure", "features": ["Hot Air Balloon", "Cave Suite", "ATV Tour"],
        "inclusions": ["Balloon flight", "Breakfast", "Transfers"],
        "rating": 4.8, "reviews": 421, "seasonality": ["spring", "summer", "autumn"], "featured": True,
    },
    {
        "id": "pkg-antalya-resort", "title": "Antalya Riviera Resort",
        "description": "Adults-only beachfront resort on the Turquoise Coast.",
        "location": "Antalya", "country": "Türkiye", "duration": 7, "price": 1600, "currency": "EUR",
        "category": "beach", "features": ["Private Beach", "Adults Only", "Spa"],
        "inclusions": ["All inclusive", "Airport transfers"],
        "rating": 4.6, "reviews": 512, "seasonality": ["summer"], "featured": False,
    },
    {
        "id": "pkg-istanbul-bosphorus", "title": "Istanbul Bosphorus Nights",
        "description": "Historic peninsula tours and a private Bosphorus dinner cruise.",
        "location": "Istanbul", "country": "Türkiye", "duration": 4, "price": 1200, "currency": "EUR",
        "category": "cultural", "features": ["Bosphorus Cruise", "Old City Tour", "Turkish Bath"],
        "inclusions": ["Boutique hotel", "Breakfast", "Guided tours"],
        "rating": 4.7, "reviews": 298, "seasonality": ["spring", "autumn"], "featured": False,
    },
    {
        "id": "pkg-sri-lanka-explorer", "title": "Sri Lanka Tea Country Explorer",
        "description": "Train rides through tea hills, safari and a south coast finale.",
        "location": "Sri Lanka", "country": "Sri Lanka", "duration": 10, "price": 2600, "currency": "EUR",
        "category": "adventure", "features": ["Safari", "Scenic Train", "Tea Estate Stay"],
        "inclusions": ["Half board", "Private driver"],
        "rating": 4.6, "reviews": 97, "seasonality": ["winter", "spring"], "featured": False,
    },
    {
        "id": "pkg-phuket-island", "title": "Phuket Island Hopping",
        "description": "Pool villa base with Phi Phi and Phang Nga bay boat trips.",
        "location": "Phuket", "country": "Thailand", "duration": 8, "price": 2400, "currency": "EUR",
        "category": "beach", "features": ["Pool Villa", "Island Hopping", "Thai Massage"],
        "inclusions": ["Breakfast", "Boat tours", "Transfers"],
        "rating": 4.5, "reviews": 176, "seasonality": ["winter", "spring"], "featured": False,
    },
    {
        "id": "pkg-rome-classic", "title": "Roman Holiday for Two",
        "description": "Colosseum after dark, Vatican early entry and trattoria dinners.",
        "location": "Roma", "country": "Italy", "duration": 5, "price": 2200, "currency": "EUR",
        "category": "cultural", "features": ["Skip-the-line Tours", "Cooking Class", "Wine Bar"],
        "inclusions": ["Boutique hotel", "Breakfast"],
        "rating": 4.7, "reviews": 143, "seasonality": ["spring", "autumn"], "featured": False,
    },
    {
        "id": "pkg-tokyo-lights", "title": "Tokyo Lights & Kyoto Temples",
        "description": "Neon Tokyo nights followed by a ryokan stay in Kyoto.",
        "location": "Tokyo", "country": "Japan", "duration": 9, "price": 4200, "currency": "EUR",
        "category": "city", "features": ["Ryokan Stay", "Bullet Train", "Sushi Class"],
        "inclusions": ["Rail pass", "Breakfast"],
        "rating": 4.8, "reviews": 88, "seasonality": ["spring", "autumn"], "featured": False,
    },
    {
        "id": "pkg-venice-gondola", "title": "Venice Gondola Serenade",
        "description": "Grand Canal palazzo stay with a private gondola serenade.",
        "location": "Venice", "country": "Italy", "duration": 4, "price": 2900, "currency": "EUR",
        "category": "luxury", "features": ["Palazzo Suite", "Private Gondola", "Murano Tour"],
        "inclusions": ["Breakfast", "Water taxi transfers"],
        "rating": 4.7, "reviews": 121, "seasonality": ["spring", "summer", "autumn"], "featured": False,
    },
]


class PackageStore:
    """
    In-memory package catalog with category and location indexes.
    Loaded from MongoDB when available.
    """

    def __init__(
        self,
        mongo_uri: Optional[str] = None,
        mongo_db: Optional[str] = None,
        packages: Optional[Iterable[HoneymoonPackage]] = None
    ):
        self._packages: Dict[str, HoneymoonPackage] = {}
        self._by_category: Dict[str, List[str]] = defaultdict(list)
        self.mongo_client = None

        if packages is not None:
            for package in packages:
                self.add_package(package)
            logger.info(f"PackageStore initialized with {len(self._packages)} packages")
            return

        if mongo_uri is None:
            mongo_uri = settings.MONGO_URI if settings.MONGO_ENABLED else ""

        if mongo_uri:
            try:
                self.mongo_client = MongoClient(mongo_uri, serverSelectionTimeoutMS=2000)
                self.mongo_client.admin.command("ping")
                self.db = self.mongo_client[mongo_db or settings.MONGO_DB]
                logger.info(f"PackageStore connected to MongoDB: {mongo_uri}")
            except Exception as e:
                logger.warning(f"PackageStore MongoDB connection failed: {e}")
                self.mongo_client = None

        self._load_packages()

    def _load_packages(self):
        """Load packages from MongoDB, or the sample catalog"""
        if not self.mongo_client:
            logger.warning("MongoDB not available, using sample packages")
            self._init_sample_packages()
            return

        try:
            collection = self.db[settings.MONGO_PACKAGES_COLLECTION]
            for doc in collection.find({"availability": {"$ne": False}}):
                package = self._doc_to_package(doc)
                if package:
                    self.add_package(package)
            logger.info(f"Loaded {len(self._packages)} packages from MongoDB")
        except Exception as e:
            logger.error(f"Error loading packages from MongoDB: {e}")

        if not self._packages:
            self._init_sample_packages()

    def _doc_to_package(self, doc: Dict[str, Any]) -> Optional[HoneymoonPackage]:
        """Convert MongoDB package document to HoneymoonPackage"""
        data = dict(doc)
        data["id"] = str(data.pop("_id", data.get("id", "")))
        try:
            return HoneymoonPackage.model_validate(data)
        except ValidationError as e:
            logger.error(f"Error converting package {data['id']}: {e}")
            return None

    def _init_sample_packages(self):
        for data in SAMPLE_PACKAGES:
            self.add_package(HoneymoonPackage.model_validate(data))
        logger.info(f"Initialized PackageStore with {len(SAMPLE_PACKAGES)} sample packages")

    def add_package(self, package: HoneymoonPackage):
        """Add or replace a package and update indexes"""
        existing = self._packages.get(package.id)
        if existing:
            self._by_category[existing.category.value].remove(package.id)

        self._packages[package.id] = package
        self._by_category[package.category.value].append(package.id)

    def _ranked(self, packages: Iterable[HoneymoonPackage]) -> List[HoneymoonPackage]:
        return sorted(packages, key=lambda p: (p.rating, p.reviews), reverse=True)

    def query_by_category(self, name: str, limit: int = 10) -> List[HoneymoonPackage]:
        """
        Get packages in a category, best rated first

        Args:
            name: Category name (luxury, adventure, romantic, cultural, beach, city)
            limit: Maximum results
        """
        try:
            category = PackageCategory(name.strip().lower())
        except ValueError:
            logger.warning(f"Unknown package category: {name}")
            return []

        ids = self._by_category.get(category.value, [])
        return self._ranked(self._packages[i] for i in ids)[:limit]

    def query_by_location(self, text: str, limit: int = 10) -> List[HoneymoonPackage]:
        """
        Get packages whose location, country or title mentions `text`

        Args:
            text: Free-text location
            limit: Maximum results
        """
        needle = normalize_text(text.strip())
        if not needle:
            return []

        matches = [
            p for p in self._packages.values()
            if any(needle in normalize_text(field) for field in (p.location, p.country, p.title))
        ]
        return self._ranked(matches)[:limit]

    def query_featured(self, limit: int = 20) -> List[HoneymoonPackage]:
        """Top packages: featured first, then by rating"""
        return sorted(
            self._packages.values(),
            key=lambda p: (p.featured, p.rating, p.reviews),
            reverse=True
        )[:limit]

    def query_by_id(self, package_id: str) -> Optional[HoneymoonPackage]:
        return self._packages.get(package_id)

    def get_stats(self) -> Dict[str, Any]:
        """Get catalog statistics"""
        return {
            "total_packages": len(self._packages),
            "by_category": {k: len(v) for k, v in self._by_category.items() if v},
            "mongo_connected": self.mongo_client is not None
        }


# Global instance (lazy initialization)
_package_store: Optional[PackageStore] = None


def get_package_store() -> PackageStore:
    """Get or create the global package store"""
    global _package_store
    if _package_store is None:
        _package_store = PackageStore()
    return _package_store
