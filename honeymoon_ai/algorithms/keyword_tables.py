"""
Keyword Tables
Language-specific pattern sets consumed by the text heuristics

Every heuristic (preference extraction, relevance scoring, phase
classification, topic detection) reads its vocabulary from a KeywordTable,
so the algorithms stay language-agnostic. Tables for English and Turkish are
provided and merged into DEFAULT_KEYWORDS.

Terms are regex fragments matched case-insensitively against lower-cased text.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from ..schemas.ai_schemas import TravelStyle


# Travel style families are always tested in this order
STYLE_PRIORITY: Tuple[TravelStyle, ...] = (
    TravelStyle.LUXURY,
    TravelStyle.ADVENTURE,
    TravelStyle.ROMANTIC,
    TravelStyle.CULTURAL,
    TravelStyle.BEACH,
)

_NEVER = re.compile(r"(?!x)x")


def compile_terms(terms: Sequence[str]) -> Pattern:
    """Compile regex fragments into one alternation; empty input never matches"""
    if not terms:
        return _NEVER
    return re.compile("|".join(f"(?:{t})" for t in terms), re.IGNORECASE)


def place(name: str, pattern: Optional[str] = None) -> Tuple[str, str]:
    """Gazetteer entry matching a place name at a word start"""
    return name, pattern or rf"\b{re.escape(name)}"


def _merge_terms(*groups: Sequence[str]) -> Tuple[str, ...]:
    seen = []
    for group in groups:
        for term in group:
            if term not in seen:
                seen.append(term)
    return tuple(seen)


def _merge_pairs(*groups: Sequence[Tuple[str, Sequence[str]]]) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    merged: Dict[str, List[str]] = {}
    for group in groups:
        for label, terms in group:
            bucket = merged.setdefault(label, [])
            bucket.extend(t for t in terms if t not in bucket)
    return tuple((label, tuple(terms)) for label, terms in merged.items())


@dataclass
class KeywordTable:
    """Pattern sets for one language (or a merge of several)"""
    language: str
    currencies: Tuple[str, ...] = ()
    destinations: Tuple[Tuple[str, str], ...] = ()
    couple_phrases: Tuple[str, ...] = ()
    solo_phrases: Tuple[str, ...] = ()
    travel_styles: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    preference_terms: Tuple[str, ...] = ()
    question_terms: Tuple[str, ...] = ()
    package_terms: Tuple[str, ...] = ()
    greeting_terms: Tuple[str, ...] = ()
    booking_terms: Tuple[str, ...] = ()
    planning_terms: Tuple[str, ...] = ()
    key_topics: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    special_requests: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    
    budget_pattern: Pattern = field(init=False, repr=False)
    destination_patterns: List[Tuple[str, Pattern]] = field(init=False, repr=False)
    couple_pattern: Pattern = field(init=False, repr=False)
    solo_pattern: Pattern = field(init=False, repr=False)
    style_patterns: List[Tuple[TravelStyle, Pattern]] = field(init=False, repr=False)
    preference_pattern: Pattern = field(init=False, repr=False)
    question_pattern: Pattern = field(init=False, repr=False)
    package_pattern: Pattern = field(init=False, repr=False)
    greeting_pattern: Pattern = field(init=False, repr=False)
    booking_pattern: Pattern = field(init=False, repr=False)
    planning_pattern: Pattern = field(init=False, repr=False)
    topic_patterns: List[Tuple[str, Pattern]] = field(init=False, repr=False)
    request_patterns: List[Tuple[str, Pattern]] = field(init=False, repr=False)
    
    def __post_init__(self):
        if self.currencies:
            self.budget_pattern = re.compile(
                rf"(\d+(?:[.,]\d{{3}})*k?)\s*({'|'.join(self.currencies)})",
                re.IGNORECASE,
            )
        else:
            self.budget_pattern = _NEVER
        
        self.destination_patterns = [
            (name, re.compile(pattern, re.IGNORECASE)) for name, pattern in self.destinations
        ]
        self.couple_pattern = compile_terms(self.couple_phrases)
        self.solo_pattern = compile_terms(self.solo_phrases)
        
        styles = dict(self.travel_styles)
        self.style_patterns = [
            (style, compile_terms(styles[style.value]))
            for style in STYLE_PRIORITY
            if styles.get(style.value)
        ]
        
        self.preference_pattern = compile_terms(self.preference_terms)
        self.question_pattern = compile_terms(self.question_terms)
        self.package_pattern = compile_terms(self.package_terms)
        self.greeting_pattern = compile_terms(self.greeting_terms)
        self.booking_pattern = compile_terms(self.booking_terms)
        self.planning_pattern = compile_terms(self.planning_terms)
        self.topic_patterns = [(label, compile_terms(terms)) for label, terms in self.key_topics]
        self.request_patterns = [(label, compile_terms(terms)) for label, terms in self.special_requests]
    
    def merge(self, other: "KeywordTable", language: Optional[str] = None) -> "KeywordTable":
        """Union of two tables; order of first appearance is kept"""
        destinations: Dict[str, str] = dict(self.destinations)
        for name, pattern in other.destinations:
            destinations.setdefault(name, pattern)
        
        return KeywordTable(
            language=language or f"{self.language}+{other.language}",
            currencies=_merge_terms(self.currencies, other.currencies),
            destinations=tuple(destinations.items()),
            couple_phrases=_merge_terms(self.couple_phrases, other.couple_phrases),
            solo_phrases=_merge_terms(self.solo_phrases, other.solo_phrases),
            travel_styles=_merge_pairs(self.travel_styles, other.travel_styles),
            preference_terms=_merge_terms(self.preference_terms, other.preference_terms),
            question_terms=_merge_terms(self.question_terms, other.question_terms),
            package_terms=_merge_terms(self.package_terms, other.package_terms),
            greeting_terms=_merge_terms(self.greeting_terms, other.greeting_terms),
            booking_terms=_merge_terms(self.booking_terms, other.booking_terms),
            planning_terms=_merge_terms(self.planning_terms, other.planning_terms),
            key_topics=_merge_pairs(self.key_topics, other.key_topics),
            special_requests=_merge_pairs(self.special_requests, other.special_requests),
        )


# ============================================
# English
# ============================================

ENGLISH = KeywordTable(
    language="en",
    currencies=(r"euros?", r"eur\b", r"dollars?", r"usd\b", r"\$", r"€"),
    destinations=(
        place("paris"),
        place("rome", r"\brome\b"),
        place("istanbul"),
        place("antalya"),
        place("cappadocia"),
        place("santorini"),
        place("bali"),
        place("maldives"),
        place("phuket"),
        place("sri lanka"),
        place("tokyo"),
        place("new york"),
        place("london"),
        place("venice"),
        place("amsterdam"),
        place("barcelona"),
    ),
    couple_phrases=(r"\bcouple\b", r"two of us", r"\b2\s*people\b", r"\btwo people\b", r"\bboth of us\b"),
    solo_phrases=(r"\balone\b", r"\bsolo\b", r"\bsingle\b"),
    travel_styles=(
        ("luxury", (r"luxury", r"5\s*star", r"five\s*star", r"premium", r"\bvip\b")),
        ("adventure", (r"adventure", r"\bactive\b", r"hiking", r"trekking")),
        ("romantic", (r"romantic", r"honeymoon", r"\blove\b")),
        ("cultural", (r"culture", r"cultural", r"history", r"museum")),
        ("beach", (r"beach", r"\bsea\b", r"\bsand")),
    ),
    preference_terms=(r"budget", r"price", r"destination", r"\bdate", r"people"),
    question_terms=(r"\?", r"\bwhere\b", r"\bhow\b", r"\bwhen\b", r"\bwhich\b", r"\bwhy\b"),
    package_terms=(r"show_packages", r"package", r"recommend", r"suggest"),
    greeting_terms=(r"\bhello\b", r"\bhi\b", r"\bhey\b", r"\bstart\b"),
    booking_terms=(r"\bbook", r"\bbuy\b", r"\breserv", r"\bpurchase"),
    planning_terms=(r"\bplan", r"itinerary", r"\bday\b", r"\bdays\b", r"schedule"),
    key_topics=(
        ("honeymoon", (r"honeymoon",)),
        ("romantic", (r"romantic",)),
        ("luxury", (r"luxury",)),
        ("budget", (r"budget",)),
        ("adventure", (r"adventure",)),
        ("beach", (r"beach",)),
        ("cultural", (r"cultur",)),
        ("food", (r"\bfood", r"restaurant", r"cuisine")),
        ("spa", (r"\bspa\b", r"massage")),
        ("shopping", (r"shopping",)),
        ("nightlife", (r"nightlife", r"\bbar\b", r"\bclub")),
    ),
    special_requests=(
        ("private_pool", (r"private pool",)),
        ("spa", (r"\bspa\b", r"massage")),
        ("vegetarian", (r"vegetarian", r"vegan")),
        ("surprise", (r"surprise",)),
        ("photo_shoot", (r"photo\s*shoot", r"photographer")),
        ("all_inclusive", (r"all[\s-]*inclusive",)),
    ),
)


# ============================================
# Turkish
# ============================================

TURKISH = KeywordTable(
    language="tr",
    currencies=(r"euro", r"dolar", r"tl\b", r"lira", r"₺"),
    destinations=(
        place("paris"),
        place("roma", r"\broma(?!nt)"),
        place("istanbul"),
        place("antalya"),
        place("kapadokya"),
        place("santorini"),
        place("bali"),
        place("maldivler"),
        place("phuket"),
        place("sri lanka"),
        place("tokyo"),
        place("new york"),
        place("londra"),
        place("venedik"),
        place("amsterdam"),
        place("barselona"),
    ),
    couple_phrases=(r"ikimiz", r"çift", r"\b2\s*kişi", r"iki kişi"),
    solo_phrases=(r"\btek\b", r"yalnız", r"tek başıma"),
    travel_styles=(
        ("luxury", (r"lüks", r"5\s*yıldız", r"beş\s*yıldız")),
        ("adventure", (r"macera", r"\baktif\b", r"doğa yürüyüşü")),
        ("romantic", (r"romantik", r"balayı", r"\başk")),
        ("cultural", (r"kültür", r"\btarih", r"müze")),
        ("beach", (r"plaj", r"\bdeniz", r"kumsal")),
    ),
    preference_terms=(r"bütçe", r"\bpara\b", r"fiyat", r"destinasyon", r"\btarih", r"kişi"),
    question_terms=(r"nerede", r"nasıl", r"ne zaman", r"hangi", r"neden", r"\bmi\b", r"\bmı\b"),
    package_terms=(r"paket", r"öner"),
    greeting_terms=(r"merhaba", r"selam", r"\bbaşla"),
    booking_terms=(r"rezervasyon", r"rezerve", r"satın al"),
    planning_terms=(r"\bplan", r"program", r"\bgün"),
    key_topics=(
        ("honeymoon", (r"balayı",)),
        ("romantic", (r"romantik",)),
        ("luxury", (r"lüks",)),
        ("budget", (r"bütçe",)),
        ("adventure", (r"macera",)),
        ("beach", (r"plaj", r"\bdeniz")),
        ("cultural", (r"kültür",)),
        ("food", (r"yemek", r"restoran", r"mutfak")),
        ("spa", (r"masaj",)),
        ("shopping", (r"alışveriş",)),
        ("nightlife", (r"gece hayatı",)),
    ),
    special_requests=(
        ("private_pool", (r"özel havuz",)),
        ("spa", (r"masaj",)),
        ("vegetarian", (r"vejetaryen", r"vegan")),
        ("surprise", (r"sürpriz",)),
        ("photo_shoot", (r"fotoğraf çekimi", r"fotoğrafçı")),
        ("all_inclusive", (r"her şey dahil",)),
    ),
)


DEFAULT_KEYWORDS = TURKISH.merge(ENGLISH, language="tr+en")


def normalize_text(text: str) -> str:
    """Lower-case text so Turkish dotted capitals match their plain forms"""
    return text.replace("İ", "i").lower()
