# tests/test_awards.py

from ladder.awards import Award, compute_awards
from ladder.models import normalize_snapshot
from tests.helpers import load_fixture, make_match, make_snapshot


def _by_title(awards):
    return {a.title: a for a in awards}


def test_empty_ladder_has_no_awards():
    assert compute_awards(normalize_snapshot([], [])) == []


def test_fixture_awards():
    payload = load_fixture("ladder_state.json")
    awards = _by_title(compute_awards(normalize_snapshot(payload["players"], payload["matches"])))

    assert awards["Ladder Champion"] == Award("Ladder Champion", "Alex", "Rank #1")
    assert awards["Most Successful Challenger"].value == "Casey"
    assert awards["Most Successful Challenger"].detail == "1 challenge wins"
    assert awards["Giant Killer"].value == "Casey"


def test_giant_killer_needs_distance():
    snapshot = make_snapshot(
        ["A", "B", "C"],
        [make_match("C", "B", day=1, distance=0), make_match("C", "B", day=2, distance=0)],
    )
    awards = _by_title(compute_awards(snapshot))
    assert awards["Most Successful Challenger"].value == "C"
    assert awards["Giant Killer"] == Award("Giant Killer")


def test_ties_go_to_the_name_seen_first():
    snapshot = make_snapshot(
        ["A", "B", "C", "D"],
        [
            make_match("A", "B", day=1),
            make_match("B", "C", day=2),
            make_match("B", "D", day=3),
            make_match("A", "C", day=4),
        ],
    )
    awards = _by_title(compute_awards(snapshot))
    assert awards["Most Successful Challenger"].value == "A"
    assert awards["Most Successful Challenger"].detail == "2 challenge wins"


def test_defender_wins_do_not_count():
    snapshot = make_snapshot(["A", "B"], [make_match("B", "A", winner="A")])
    awards = _by_title(compute_awards(snapshot))
    assert awards["Most Successful Challenger"].value == ""
    assert awards["Ladder Champion"].value == "A"
