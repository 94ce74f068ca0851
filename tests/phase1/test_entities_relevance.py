# tests/phase1/test_entities_relevance.py
from common.schemas import Relevance
from normalize_enrich.entities import extract_entities
from normalize_enrich.relevance import band_for, is_relevant, passes_relevance_gate, score_relevance


def test_entities_countries_aliases_and_dedupe():
    bag = extract_entities("U.S. and China trade talks", "The USA and China met in Geneva.")
    assert bag.countries == ["China", "United States"]


def test_companies_are_case_sensitive():
    bag = extract_entities("Shell cuts output", "Prices in a shell company scheme")
    assert bag.companies == ["Shell"]
    assert extract_entities("apple harvest falls").companies == []


def test_commodities_and_people():
    bag = extract_entities(
        "Copper and iron ore exports slow",
        "Prime Minister Anthony Albanese met CEO Jane Smith to discuss lithium.",
    )
    assert set(bag.commodities) >= {"copper", "iron ore", "lithium"}
    assert bag.people == ["Anthony Albanese", "Jane Smith"]


def test_relevance_direct_partner_and_exports():
    rel = score_relevance("Australia and China sign iron ore deal")
    assert rel.score == 60
    assert rel.band == "high"
    assert rel.reasons == [
        "Directly mentions Australia",
        "Involves key trade partners: china",
        "Affects Australian exports: iron ore",
    ]


def test_relevance_group_caps_and_clamp():
    text = (
        "Australia Sydney China Japan India Indonesia USA coal wheat gold lithium "
        "shipping freight port steel copper south china sea fiji pacific tariff sanctions "
        "recession mining energy solar tourism"
    )
    rel = score_relevance(text)
    assert rel.score == 100
    assert rel.band == "critical"


def test_relevance_empty_text():
    rel = score_relevance("", "")
    assert rel == Relevance(score=0, band="low", reasons=[])


def test_band_boundaries():
    assert band_for(70) == "critical"
    assert band_for(69) == "high"
    assert band_for(50) == "high"
    assert band_for(30) == "medium"
    assert band_for(29) == "low"


def test_gate_threshold_and_jurisdiction_bypass():
    low = Relevance(score=10)
    assert not passes_relevance_gate(low, "world")
    assert passes_relevance_gate(low, "australian_news")
    assert passes_relevance_gate(Relevance(score=25), None)


def test_allow_list():
    assert is_relevant("Earthquakes strike coastal towns")
    assert is_relevant("", "new tariff schedule")
    assert not is_relevant("Local bakery wins award", "")
