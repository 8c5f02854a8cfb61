from honeymoon_ai.algorithms.keyword_tables import KeywordTable, place
from honeymoon_ai.algorithms.preference_extractor import PreferenceExtractor
from honeymoon_ai.schemas.ai_schemas import TravelStyle, UserPreferences


def extract(make_message, *texts, role="user"):
    return PreferenceExtractor().extract([make_message(role, t, i) for i, t in enumerate(texts)])


def test_latest_budget_wins(make_message):
    preferences = extract(make_message, "Bütçemiz 20k euro civarı", "Aslında 30k euro da olur")

    assert preferences.budget == "30k euro"


def test_budget_with_thousands_separator(make_message):
    assert extract(make_message, "We have 4,500 dollars").budget == "4,500 dollars"


def test_budget_with_attached_lira_suffix(make_message):
    assert extract(make_message, "bütçemiz 50000tl").budget == "50000tl"
    assert extract(make_message, "en fazla 30ktl").budget == "30ktl"
    assert extract(make_message, "toplam 75000₺ ayırdık").budget == "75000₺"
    assert extract(make_message, "50000 tl yeterli").budget == "50000 tl"


def test_destinations_in_gazetteer_order_without_duplicates(make_message):
    preferences = extract(make_message, "Santorini or Paris?", "Paris again, maybe Santorini")

    assert preferences.destinations == ["paris", "santorini"]


def test_romantic_does_not_match_rome(make_message):
    preferences = extract(make_message, "Romantik bir tatil istiyoruz")

    assert preferences.destinations == []
    assert preferences.travel_style == TravelStyle.ROMANTIC


def test_luxury_outranks_romantic(make_message):
    preferences = extract(make_message, "A romantic honeymoon in a luxury villa")

    assert preferences.travel_style == TravelStyle.LUXURY


def test_group_size_last_mention_wins(make_message):
    assert extract(make_message, "İkimiz için bir plan").group_size == 2
    assert extract(make_message, "We are a couple", "actually I'm travelling solo").group_size == 1
    assert extract(make_message, "Paris please").group_size is None


def test_special_requests(make_message):
    preferences = extract(make_message, "A private pool and a couples massage please")

    assert preferences.special_requests == ["private_pool", "spa"]


def test_assistant_text_is_ignored(make_message):
    preferences = extract(make_message, "Paris has a 5000 euro luxury package", role="assistant")

    assert preferences == UserPreferences()


def test_empty_history(make_message):
    assert PreferenceExtractor().extract([]) == UserPreferences()


def test_synthetic_keyword_table(make_message):
    table = KeywordTable(
        language="xx",
        currencies=("zorkmid",),
        destinations=(place("atlantis"),),
        couple_phrases=(r"\bduo\b",),
        travel_styles=(("beach", ("sandy",)),),
    )

    preferences = PreferenceExtractor(table).extract([
        make_message("user", "A sandy duo trip to Atlantis for 5000 zorkmid, not paris")
    ])

    assert preferences.budget == "5000 zorkmid"
    assert preferences.destinations == ["atlantis"]
    assert preferences.group_size == 2
    assert preferences.travel_style == TravelStyle.BEACH
    assert preferences.special_requests == []
