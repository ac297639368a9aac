from models.entry import Entry
from services.filter_service import filter_entries, matches

ENTRIES = [
    Entry(name="Arizona Sunshine", tags=("Шутер", "Зомби")),
    Entry(name="Beat Saber", tags=("Ритм",)),
    Entry(name="SUPERHOT VR", tags=("Шутер",)),
    Entry(name="Moss", tags=("Головоломка", "Детские")),
    Entry(name="Raw Data", tags=("Шутер", "Зомби", "Командная")),
]


def _is_subsequence(sub, seq):
    it = iter(seq)
    return all(any(x is y for y in it) for x in sub)


def test_empty_filters_return_everything_in_order():
    assert filter_entries(ENTRIES) == ENTRIES


def test_search_is_case_insensitive_substring():
    for query in ("sa", "SA", "Sa", "o", "vr", "w d"):
        result = filter_entries(ENTRIES, query)
        assert _is_subsequence(result, ENTRIES)
        needle = query.lower()
        assert all(needle in e.name.lower() for e in result)
        assert len(result) == sum(needle in e.name.lower() for e in ENTRIES)


def test_tags_use_and_semantics():
    result = filter_entries(ENTRIES, "", {"Шутер", "Зомби"})
    assert [e.name for e in result] == ["Arizona Sunshine", "Raw Data"]


def test_tag_filter_returns_supersets_only():
    wanted = {"Шутер"}
    result = filter_entries(ENTRIES, "", wanted)
    assert result == [e for e in ENTRIES if wanted <= set(e.tags)]


def test_search_and_tags_intersect():
    result = filter_entries(ENTRIES, "raw", {"Шутер"})
    assert [e.name for e in result] == ["Raw Data"]
    assert filter_entries(ENTRIES, "beat", {"Шутер"}) == []


def test_unknown_tag_matches_nothing():
    assert filter_entries(ENTRIES, "", {"Нет такого"}) == []


def test_result_is_deterministic_and_new_list():
    first = filter_entries(ENTRIES, "a", ["Шутер"])
    second = filter_entries(ENTRIES, "a", ["Шутер"])
    assert first == second
    assert first is not ENTRIES


def test_matches_single_entry():
    assert matches(ENTRIES[0], "sun", ["Зомби"])
    assert not matches(ENTRIES[0], "sun", ["Ритм"])


def test_whitespace_query_is_matched_literally():
    result = filter_entries(ENTRIES, " ")
    assert [e.name for e in result] == ["Arizona Sunshine", "Beat Saber", "SUPERHOT VR", "Raw Data"]
    assert filter_entries(ENTRIES, " moss ") == []
