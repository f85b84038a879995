"""
tests/test_hierarchy.py
~~~~~~~~~~~~~~~~~~~~~~~
Grouping rules of :func:`trip_places.hierarchy.build_groups`:

1. explicit parent link → child of that location;
2. subtitle == location title (any case) → child of the earliest match;
3. otherwise standalone, appended after every location group;
4. popular locations only in the popular strip.
"""

from __future__ import annotations

import random

from trip_places.hierarchy import build_groups
from trip_places.models import Place
from trip_places.normalizer import normalize_all


def _loc(pid: str, title: str, popular: bool = False) -> Place:
    return Place(id=pid, kind="location", title=title, popular=popular)


def _sub(pid: str, title: str, parent: str | None = None, subtitle: str | None = None) -> Place:
    return Place(
        id=pid,
        kind="sublocation",
        title=title,
        subtitle=subtitle,
        parent_location_id=parent,
    )


def _layout(groups) -> list[tuple[str, str | None]]:
    return [(e.place.id, e.indent_under_id) for e in groups.grouped]


def _check_invariants(places: list[Place]) -> None:
    groups = build_groups(places)
    popular_ids = [p.id for p in groups.popular]
    grouped_ids = [e.place.id for e in groups.grouped]

    # every distinct place shows up exactly once
    seen = popular_ids + grouped_ids
    assert len(seen) == len(set(seen))
    expected = {p.id for p in places}
    assert set(seen) == expected

    # indentation only ever points back at an earlier location
    shown: set[str] = set()
    for entry in groups.grouped:
        if entry.indent_under_id is not None:
            assert entry.indent_under_id in shown
        if entry.place.kind == "location":
            shown.add(entry.place.id)

    # popular locations never appear as top-level rows
    assert not any(e.place.popular and e.indent_under_id is None for e in groups.grouped)


def test_children_follow_their_parent() -> None:
    places = [
        _loc("1", "Pune"),
        _loc("2", "Mumbai"),
        _sub("10", "Dadar", parent="2"),
        _sub("11", "Wakad", parent="1"),
        _sub("12", "Hinjewadi", parent="1"),
    ]
    assert _layout(build_groups(places)) == [
        ("1", None),
        ("11", "1"),
        ("12", "1"),
        ("2", None),
        ("10", "2"),
    ]


def test_subtitle_title_match_attaches_child() -> None:
    places = [
        _loc("1", "Pune"),
        _sub("10", "Swargate", subtitle="PUNE"),
    ]
    assert _layout(build_groups(places)) == [("1", None), ("10", "1")]


def test_title_match_earliest_location_wins() -> None:
    places = [
        _loc("1", "Aurangabad"),
        _loc("2", "aurangabad"),
        _sub("10", "CIDCO", subtitle="Aurangabad"),
    ]
    assert _layout(build_groups(places)) == [("1", None), ("10", "1"), ("2", None)]


def test_unknown_parent_falls_back_to_title_match() -> None:
    places = [_loc("1", "Goa"), _sub("10", "Panaji", parent="99", subtitle="goa")]
    assert _layout(build_groups(places)) == [("1", None), ("10", "1")]


def test_standalone_sublocations_go_last_in_input_order() -> None:
    places = [
        _sub("20", "Orphan A"),
        _loc("1", "Nashik"),
        _sub("21", "Orphan B", subtitle="Somewhere else"),
        _sub("10", "CBS", parent="1"),
    ]
    assert _layout(build_groups(places)) == [
        ("1", None),
        ("10", "1"),
        ("20", None),
        ("21", None),
    ]


def test_popular_locations_only_in_popular_strip() -> None:
    places = [
        _loc("1", "Pune", popular=True),
        _loc("2", "Mumbai"),
        _loc("1", "Pune", popular=True),
        _loc("3", "Goa", popular=True),
    ]
    groups = build_groups(places)
    assert [p.id for p in groups.popular] == ["1", "3"]
    assert _layout(groups) == [("2", None)]


def test_children_of_popular_location_stay_visible() -> None:
    places = [
        _loc("1", "Pune", popular=True),
        _sub("10", "Wakad", parent="1"),
        _loc("2", "Mumbai"),
    ]
    groups = build_groups(places)
    assert [p.id for p in groups.popular] == ["1"]
    assert _layout(groups) == [("2", None), ("10", None)]


def test_repeated_location_id_is_emitted_once() -> None:
    places = [_loc("1", "Pune"), _sub("10", "Wakad", parent="1"), _loc("1", "Pune (dup)")]
    assert _layout(build_groups(places)) == [("1", None), ("10", "1")]


def test_numeric_parent_links_to_prefixed_location() -> None:
    """Server shape: location ``loc-12`` with ``meta.id``; child names ``12``."""
    records = [
        {"id": "loc-12", "type": "location", "title": "Bengaluru", "meta": {"id": 12}},
        {
            "id": "subloc-501",
            "type": "sublocation",
            "title": "Majestic",
            "subtitle": "Karnataka",
            "meta": {"id": 501, "location_id": 12},
        },
    ]
    groups = build_groups(normalize_all(records))
    assert _layout(groups) == [("loc-12", None), ("subloc-501", "loc-12")]


def test_numeric_parent_matches_prefix_without_meta() -> None:
    places = [_loc("loc-7", "Nagpur"), _sub("subloc-70", "Sitabuldi", parent="7")]
    assert _layout(build_groups(places)) == [("loc-7", None), ("subloc-70", "loc-7")]


def test_exact_id_beats_numeric_alias() -> None:
    places = [
        _loc("loc-5", "Thane"),
        _loc("5", "Solapur"),
        _sub("50", "Navi Peth", parent="5"),
    ]
    assert _layout(build_groups(places)) == [("loc-5", None), ("5", None), ("50", "5")]


def test_normalized_server_batch() -> None:
    records = [
        {"id": "loc-1", "title": "Pune", "popular": "1"},
        {"id": "loc-2", "title": "Mumbai"},
        {"id": "subloc-5", "title": "Dadar", "location_title": "Mumbai"},
        {"id": "subloc-6", "title": "Wakad", "meta": {"location_id": "loc-1"}},
    ]
    groups = build_groups(normalize_all(records))
    assert [p.title for p in groups.popular] == ["Pune"]
    assert _layout(groups) == [("loc-2", None), ("subloc-5", "loc-2"), ("subloc-6", None)]


def test_empty_batch() -> None:
    groups = build_groups([])
    assert groups.popular == []
    assert groups.grouped == []


def test_invariants_on_random_batches() -> None:
    rng = random.Random(1234)
    titles = ["Pune", "Mumbai", "Goa", "Nashik"]
    for _ in range(200):
        places: list[Place] = []
        for i in range(rng.randint(0, 12)):
            if rng.random() < 0.4:
                places.append(_loc(f"loc-{i}", rng.choice(titles), popular=rng.random() < 0.3))
            else:
                places.append(
                    _sub(
                        f"subloc-{i}",
                        f"Point {i}",
                        parent=rng.choice([None, f"loc-{rng.randint(0, 12)}"]),
                        subtitle=rng.choice([None, *titles, "pune"]),
                    )
                )
        _check_invariants(places)


def test_to_dict_carries_indent() -> None:
    groups = build_groups([_loc("1", "Pune"), _sub("10", "Wakad", parent="1")])
    data = groups.to_dict()
    assert data["popular"] == []
    assert data["grouped"][1]["indent_under_id"] == "1"
    assert data["grouped"][1]["kind"] == "sublocation"
