from honeymoon_ai.algorithms.keyword_tables import (
    DEFAULT_KEYWORDS,
    ENGLISH,
    TURKISH,
    KeywordTable,
    normalize_text,
    place,
)
from honeymoon_ai.schemas.ai_schemas import TravelStyle


def test_merge_keeps_first_seen_order():
    merged = TURKISH.merge(ENGLISH)
    names = [name for name, _ in merged.destinations]

    assert merged.language == "tr+en"
    assert names[:2] == ["paris", "roma"]
    assert "cappadocia" in names and "kapadokya" in names
    assert names.count("paris") == 1


def test_merged_styles_follow_priority():
    assert [style for style, _ in DEFAULT_KEYWORDS.style_patterns] == [
        TravelStyle.LUXURY,
        TravelStyle.ADVENTURE,
        TravelStyle.ROMANTIC,
        TravelStyle.CULTURAL,
        TravelStyle.BEACH,
    ]


def test_place_matches_at_word_start():
    _, pattern = place("bali")
    table = KeywordTable(language="xx", destinations=(place("bali"),))

    assert pattern == r"\bbali"
    assert table.destination_patterns[0][1].search("bali'ye gidelim")
    assert not table.destination_patterns[0][1].search("kabali")


def test_normalize_turkish_capitals():
    assert normalize_text("İSTANBUL") == "istanbul"


def test_short_english_greeting_needs_word_boundary():
    assert DEFAULT_KEYWORDS.greeting_pattern.search("hi there")
    assert not DEFAULT_KEYWORDS.greeting_pattern.search("this is nice")
