import pytest
from sqlalchemy.exc import OperationalError

from klutterbox.errors import SearchFailed
from klutterbox.schemas.item import ItemCreate
from klutterbox.services import inventory, search
from klutterbox.services.search import search_items


def _add(db, name, description=None, box_code=None):
    return inventory.create_item(
        db, ItemCreate(name=name, description=description, box_code=box_code)
    )


def _names(hits):
    return [hit.item.name for hit in hits]


def test_empty_query_without_box_returns_nothing(db):
    _add(db, "Winter Boots")

    assert search_items(db, "") == []
    assert search_items(db, "   ", box_code="  ") == []


def test_prefix_of_name_matches(db):
    boots = _add(db, "Winter Boots")
    _add(db, "Garden Hose")

    hits = search_items(db, "wint")

    assert [hit.item.id for hit in hits] == [boots.id]
    assert hits[0].tier == search.TIER_OR
    assert hits[0].score == pytest.approx(-1.0)


def test_query_is_case_insensitive_and_ignores_punctuation(db):
    _add(db, "Hex Wrench Set", "6-piece")

    assert _names(search_items(db, "HEX!")) == ["Hex Wrench Set"]


def test_any_term_is_enough_in_first_tier(db):
    _add(db, "Red Hat")
    _add(db, "Blue Scarf")

    hits = search_items(db, "red shoe")

    assert _names(hits) == ["Red Hat"]
    assert hits[0].tier == search.TIER_OR


def test_name_matches_rank_above_description_matches(db):
    _add(db, "Desk Lamp")
    _add(db, "Shade", description="for the lamp in the hall")

    hits = search_items(db, "lamp")

    # The description match is newer but scores worse
    assert _names(hits) == ["Desk Lamp", "Shade"]
    assert hits[0].score < hits[1].score


def test_more_matching_tokens_rank_higher(db):
    _add(db, "Lamp Shade")
    _add(db, "Lamp")

    hits = search_items(db, "lamp shade")

    assert _names(hits) == ["Lamp Shade", "Lamp"]


def test_equal_scores_are_ordered_newest_first(db):
    _add(db, "Camping Stove")
    _add(db, "Camping Chair")

    assert _names(search_items(db, "camping")) == ["Camping Chair", "Camping Stove"]


def test_box_code_tokens_are_searchable(db):
    inventory.create_box(db, "attic", "Attic shelf")
    _add(db, "Photo Album", box_code="attic")

    hits = search_items(db, "attic")

    assert _names(hits) == ["Photo Album"]
    assert hits[0].score == pytest.approx(-0.3)


def test_box_filter_restricts_index_results(db):
    inventory.create_box(db, "box2", "Garage")
    _add(db, "Hex Wrench Set", box_code="box2")
    _add(db, "Hex Key")

    assert _names(search_items(db, "hex", box_code="box2")) == ["Hex Wrench Set"]


def test_substring_fallback_finds_infix_match(db):
    _add(db, "Hex Wrench Set")

    hits = search_items(db, "rench")

    assert _names(hits) == ["Hex Wrench Set"]
    assert hits[0].tier == search.TIER_SUBSTRING
    assert hits[0].score is None


def test_substring_fallback_requires_every_term(db):
    _add(db, "Hex Wrench Set")
    _add(db, "Wrench Holder")

    assert _names(search_items(db, "rench ex")) == ["Hex Wrench Set"]
    assert search_items(db, "rench zzz") == []


def test_substring_fallback_checks_description(db):
    _add(db, "Cable", description="USB-C to lightning")

    hits = search_items(db, "ghtn")

    assert _names(hits) == ["Cable"]


def test_like_wildcards_in_query_are_not_wild(db):
    _add(db, "Plain Cable")

    assert search_items(db, "%") == []
    assert search_items(db, "pl%n") == []
    assert _names(search_items(db, "lai")) == ["Plain Cable"]


def test_substring_fallback_folds_non_ascii_case(db):
    _add(db, "GROSSE TÜRE")

    hits = search_items(db, "ÜRE")

    assert _names(hits) == ["GROSSE TÜRE"]
    assert hits[0].tier == search.TIER_SUBSTRING
    assert _names(search_items(db, "türe")) == ["GROSSE TÜRE"]


def test_and_tier_requires_every_term(db):
    _add(db, "Red Hat")
    _add(db, "Red Shoe")

    hits = search._run_index_query(db, ["red", "sh"], None, require_all=True, limit=200)

    assert _names(hits) == ["Red Shoe"]
    assert hits[0].tier == search.TIER_AND


def test_and_tier_runs_when_or_tier_is_empty(db, monkeypatch):
    _add(db, "Red Hat")
    tiers = []
    original = search._run_index_query

    def recording(session, terms, box_code, require_all, limit):
        tiers.append(require_all)
        if not require_all:
            return []
        return original(session, terms, box_code, require_all, limit)

    monkeypatch.setattr(search, "_run_index_query", recording)

    hits = search_items(db, "red")

    assert tiers == [False, True]
    assert hits[0].tier == search.TIER_AND


def test_box_only_lists_box_newest_first(db):
    inventory.create_box(db, "box2", "Garage")
    _add(db, "Drill", box_code="box2")
    _add(db, "Saw", box_code="box2")
    _add(db, "Sock")

    hits = search_items(db, "", box_code="box2")

    assert _names(hits) == ["Saw", "Drill"]
    assert {hit.tier for hit in hits} == {search.TIER_BOX}


def test_punctuation_only_query_with_box_lists_box(db):
    inventory.create_box(db, "box2", "Garage")
    _add(db, "Drill", box_code="box2")

    assert _names(search_items(db, "!!", box_code="box2")) == ["Drill"]


def test_results_are_capped(db):
    for n in range(5):
        _add(db, f"Marker {n}")

    assert len(search_items(db, "marker", limit=3)) == 3


def test_storage_failure_raises_search_failed(db, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(search, "_run_index_query", broken)

    with pytest.raises(SearchFailed):
        search_items(db, "anything")
