from datetime import date

import pytest

from app.domains.rfi.repository.daily_work_repository import DailyWorkRepository
from app.domains.rfi.service import suggestion_service


@pytest.fixture
def rfis(db):
    repo = DailyWorkRepository(db)
    rows = [
        ("RFI-001", "K35+897", "Embankment", "Subgrade compaction"),
        ("RFI-002", "K35+560-K36+120", "Embankment", "Embankment layer 3"),
        ("RFI-003", "K36+750", "Structure", "Box culvert base"),
        ("RFI-004", "K40+000", "Pavement", "Prime coat"),
        ("RFI-005", "SCK0+260", "Structure", "Service road culvert"),
        ("RFI-006", "", "Pavement", "Office paperwork"),
    ]
    return {
        number: repo.create(
            number=number,
            location=location,
            type=type_,
            description=description,
            date=date(2026, 5, 1),
            status="new",
        )
        for number, location, type_, description in rows
    }


def _numbers(res):
    return [r["number"] for r in res.json()["rfis"]]


def test_requires_session(client, rfis):
    res = client.get("/suggest-rfis", params={"chainage_from": "K35+897"})
    assert res.status_code == 401


def test_specific_chainages(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K35+897"})

    assert res.status_code == 200
    body = res.json()
    assert body["match_type"] == "specific"
    # the point itself and the range containing it, ordered by location
    assert _numbers(res) == ["RFI-002", "RFI-001"]
    assert body["count"] == body["total_found"] == 2
    assert body["parsed_chainages"]["specific_count"] == 1


def test_several_specific_chainages(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K36+750, K40+000-RHS, junk"})

    assert _numbers(res) == ["RFI-003", "RFI-004"]
    assert res.json()["parsed_chainages"]["specific_count"] == 2


def test_range(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K36+500", "chainage_to": "K37+000"})

    body = res.json()
    assert body["match_type"] == "range"
    assert _numbers(res) == ["RFI-003"]
    assert body["parsed_chainages"]["range_start"] == 36500
    assert body["parsed_chainages"]["range_end"] == 37000


def test_range_overlapping_rfi_range(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K36+000", "chainage_to": "K35+950"})

    # reversed ends are swapped; the stored K35+560-K36+120 range overlaps
    assert _numbers(res) == ["RFI-002"]
    assert res.json()["parsed_chainages"]["range_start"] == 35950


def test_text_range_in_chainage_from(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K37+000 to K36+500"})

    body = res.json()
    assert body["match_type"] == "range"
    assert _numbers(res) == ["RFI-003"]
    assert body["parsed_chainages"]["range_start"] == 36500
    assert body["parsed_chainages"]["range_end"] == 37000
    assert body["parsed_chainages"]["specific_count"] == 0


def test_unexpected_failure_returns_empty_result(logged_in, monkeypatch):
    def fail(*args, **kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(suggestion_service, "suggest_rfis", fail)

    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K35+897"})

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to suggest RFIs.", "count": 0, "match_type": "none", "rfis": []}
    assert "connection lost" not in res.text


def test_prefixed_chainages_are_matched_by_value(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"chainage_from": "K0+260"})
    assert _numbers(res) == ["RFI-005"]


def test_type_filter(logged_in, rfis):
    res = logged_in.get(
        "/suggest-rfis",
        params={"chainage_from": "K35+000", "chainage_to": "K41+000", "type": "Structure"},
    )
    assert _numbers(res) == ["RFI-003"]


def test_search_wins_over_chainages(logged_in, rfis):
    res = logged_in.get("/suggest-rfis", params={"search": "culvert", "chainage_from": "K40+000"})

    body = res.json()
    assert body["match_type"] == "search"
    assert sorted(_numbers(res)) == ["RFI-003", "RFI-005"]
    assert "parsed_chainages" not in body


def test_no_valid_chainages(logged_in, rfis):
    for params in ({}, {"chainage_from": "somewhere"}, {"chainage_from": "K35+000", "chainage_to": "??"}):
        res = logged_in.get("/suggest-rfis", params=params)
        assert res.status_code == 200
        body = res.json()
        assert body["match_type"] == "none"
        assert body["rfis"] == []
        assert body["message"] == "No valid chainages provided"


# -------------------------------------------------
# Daily works
# -------------------------------------------------
def test_create_daily_work_exposes_parsed_location(logged_in):
    res = logged_in.post(
        "/api/v1/daily-works",
        json={"number": "RFI-100", "location": "K23+066-K23+300", "type": "Embankment", "date": "2026-05-02"},
    )

    assert res.status_code == 201
    work = res.json()["daily_work"]
    assert work["location_start"] == 23066
    assert work["location_end"] == 23300
    assert work["status"] == "new"

    dup = logged_in.post("/api/v1/daily-works", json={"number": "RFI-100"})
    assert dup.status_code == 409
    assert dup.json()["code"] == "RFI_409_1"


def test_list_and_get_daily_works(logged_in, rfis):
    res = logged_in.get("/api/v1/daily-works", params={"type": "Pavement"})
    assert res.status_code == 200
    assert sorted(w["number"] for w in res.json()["daily_works"]) == ["RFI-004", "RFI-006"]

    one = logged_in.get(f"/api/v1/daily-works/{rfis['RFI-001'].daily_work_id}")
    assert one.json()["daily_work"]["location_start"] == 35897

    missing = logged_in.get("/api/v1/daily-works/99999")
    assert missing.status_code == 404
    assert missing.json()["code"] == "RFI_404_1"


# -------------------------------------------------
# Objection scenarios
# -------------------------------------------------
@pytest.mark.parametrize("locations, params, expected, match_type", [
    (
        ["K35+897", "K36+987", "K40+000"],
        {"chainage_from": "K35+897, K36+987"},
        ["K35+897", "K36+987"],
        "specific",
    ),
    (
        ["K36+700", "K37+200", "K40+000"],
        {"chainage_from": "K36+500", "chainage_to": "K37+500"},
        ["K36+700", "K37+200"],
        "range",
    ),
    (
        ["K36+700", "K37+200", "K40+000"],
        {"chainage_from": "K36+500 to K37+500"},
        ["K36+700", "K37+200"],
        "range",
    ),
])
def test_objection_chainage_scenarios(logged_in, db, locations, params, expected, match_type):
    repo = DailyWorkRepository(db)
    for i, location in enumerate(locations):
        repo.create(number=f"SC-{i}", location=location, status="new")

    body = logged_in.get("/suggest-rfis", params=params).json()

    assert body["match_type"] == match_type
    assert [r["location"] for r in body["rfis"]] == expected
