from datetime import date

import pytest

from app.domains.rfi.repository.daily_work_repository import DailyWorkRepository
from app.domains.rfi.repository.objection_repository import ObjectionRepository

BASE = "/api/v1/objections"


@pytest.fixture
def rfis(db):
    repo = DailyWorkRepository(db)
    rows = [
        ("RFI-001", "K35+897"),
        ("RFI-002", "K35+560-K36+120"),
        ("RFI-003", "K36+750"),
        ("RFI-004", "K40+000"),
    ]
    return {
        number: repo.create(number=number, location=location, type="Embankment",
                            date=date(2026, 5, 1), status="new").daily_work_id
        for number, location in rows
    }


def _create(client, **fields):
    payload = {
        "title": "Compaction below target density",
        "category": "site_mismatch",
        "description": "Field density under 95%",
        "reason": "Layer must be reworked",
        **fields,
    }
    return client.post(BASE, json=payload)


# -------------------------------------------------
# Create
# -------------------------------------------------
def test_create_with_specific_and_range_chainages(logged_in, rfis):
    res = _create(
        logged_in,
        specific_chainages="K35+897-RHS, K36+987",
        chainage_range_from="K37+000",
        chainage_range_to="K36+500",
        rfi_ids=[rfis["RFI-001"]],
    )

    assert res.status_code == 201
    objection = res.json()["objection"]
    assert objection["status"] == "draft"
    assert objection["is_active"] is True
    assert objection["category_label"] == "Site Condition Mismatch"

    chainages = [(c["chainage_meters"], c["entry_type"]) for c in objection["chainages"]]
    assert chainages == [
        (35897, "specific"),
        (36987, "specific"),
        (36500, "range_start"),
        (37000, "range_end"),
    ]
    assert objection["chainages"][0]["side"] == "RHS"
    assert objection["chainages"][0]["normalized"] == "K35+897"
    assert objection["chainage_summary"] == {
        "specific": ["K35+897-RHS", "K36+987"],
        "range": "K36+500 - K37+000",
    }
    assert [r["number"] for r in objection["rfis"]] == ["RFI-001"]


def test_duplicate_specific_chainages_are_stored_once(logged_in):
    res = _create(logged_in, specific_chainages=["K35+897", "K35+897-LHS", "K36+000"])
    assert [c["chainage_meters"] for c in res.json()["objection"]["chainages"]] == [35897, 36000]


def test_legacy_free_text_chainages(logged_in):
    res = _create(logged_in, chainage_from="K35+560-K36+120")

    objection = res.json()["objection"]
    assert objection["chainage_from"] == "K35+560-K36+120"
    assert [c["entry_type"] for c in objection["chainages"]] == ["range_start", "range_end"]


def test_create_rejects_unreadable_chainages(logged_in):
    res = _create(logged_in, specific_chainages=["K35+897", "near bridge"])

    assert res.status_code == 422
    body = res.json()
    assert body["code"] == "OBJ_422_1"
    assert body["errors"] == [
        {"field": "specific_chainages", "value": "near bridge", "message": "Unrecognised chainage format"},
    ]
    assert logged_in.get(BASE).json()["count"] == 0


def test_create_rejects_chainage_too_large_to_store(logged_in):
    res = _create(logged_in, specific_chainages=["K99999999999999999999+000"])

    assert res.status_code == 422
    body = res.json()
    assert body["code"] == "OBJ_422_1"
    assert body["errors"][0]["value"] == "K99999999999999999999+000"
    assert logged_in.get(BASE).json()["count"] == 0


def test_create_storage_failure_is_rolled_back(logged_in, monkeypatch):
    def fail(self, objection, entries):
        raise RuntimeError("disk full")

    monkeypatch.setattr(ObjectionRepository, "replace_chainages", fail)

    res = _create(logged_in, specific_chainages=["K35+897"])

    assert res.status_code == 500
    assert res.json()["code"] == "OBJ_500_1"
    assert "disk full" not in res.text
    # the half-written objection is gone and the session still works
    assert logged_in.get(BASE).json()["count"] == 0


def test_create_rejects_one_ended_range(logged_in):
    res = _create(logged_in, chainage_range_from="K36+500")

    assert res.status_code == 422
    assert res.json()["errors"][0]["field"] == "chainage_range_to"


def test_create_rejects_unknown_rfis(logged_in, rfis):
    res = _create(logged_in, rfi_ids=[rfis["RFI-001"], 99999])

    assert res.status_code == 404
    assert res.json()["code"] == "OBJ_404_2"
    assert res.json()["errors"] == [{"rfi_id": 99999}]


def test_create_requires_session(client):
    assert _create(client).status_code == 401


# -------------------------------------------------
# Status workflow
# -------------------------------------------------
def test_full_workflow_and_status_log(logged_in):
    objection_id = _create(logged_in).json()["objection"]["id"]

    assert logged_in.post(f"{BASE}/{objection_id}/submit").json()["objection"]["status"] == "submitted"
    assert logged_in.post(f"{BASE}/{objection_id}/review").json()["objection"]["status"] == "under_review"

    res = logged_in.post(f"{BASE}/{objection_id}/resolve", json={"notes": "Reworked and retested"})
    assert res.status_code == 200
    objection = res.json()["objection"]
    assert objection["status"] == "resolved"
    assert objection["is_active"] is False
    assert objection["resolution_notes"] == "Reworked and retested"
    assert objection["resolved_by"] == logged_in.user.user_id
    assert objection["resolved_at"] is not None

    logs = logged_in.get(f"{BASE}/{objection_id}/status-logs").json()["logs"]
    assert [(log["from_status"], log["to_status"]) for log in logs] == [
        ("under_review", "resolved"),
        ("submitted", "under_review"),
        ("draft", "submitted"),
        (None, "draft"),
    ]


def test_invalid_transition_is_conflict(logged_in):
    objection_id = _create(logged_in).json()["objection"]["id"]

    res = logged_in.post(f"{BASE}/{objection_id}/review")

    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "OBJ_409_1"
    assert body["errors"][0]["status"] == "draft"
    assert body["errors"][0]["action"] == "review"


def test_submitted_objection_can_be_rejected_directly(logged_in):
    objection_id = _create(logged_in, status="submitted").json()["objection"]["id"]

    res = logged_in.post(f"{BASE}/{objection_id}/reject", json={"notes": "Density within tolerance"})

    assert res.json()["objection"]["status"] == "rejected"
    # closed objections cannot move again
    assert logged_in.post(f"{BASE}/{objection_id}/submit").status_code == 409


def test_reject_requires_notes(logged_in):
    objection_id = _create(logged_in, status="submitted").json()["objection"]["id"]

    assert logged_in.post(f"{BASE}/{objection_id}/reject", json={"notes": ""}).status_code == 422
    assert logged_in.post(f"{BASE}/{objection_id}/reject").status_code == 422


def test_transition_unknown_objection(logged_in):
    res = logged_in.post(f"{BASE}/99999/submit")
    assert res.status_code == 404
    assert res.json()["code"] == "OBJ_404_1"


# -------------------------------------------------
# Update / delete
# -------------------------------------------------
def test_update_resyncs_chainages(logged_in):
    objection_id = _create(logged_in, specific_chainages=["K35+897"]).json()["objection"]["id"]

    res = logged_in.patch(
        f"{BASE}/{objection_id}",
        json={"chainage_range_from": "K40+000", "chainage_range_to": "K41+000", "title": "Rework"},
    )

    assert res.status_code == 200
    objection = res.json()["objection"]
    assert objection["title"] == "Rework"
    assert [c["chainage_meters"] for c in objection["chainages"]] == [40000, 41000]
    assert objection["chainage_from"] == "K40+000"
    assert objection["chainage_to"] == "K41+000"


def test_update_without_chainage_fields_keeps_them(logged_in):
    objection_id = _create(logged_in, specific_chainages=["K35+897"]).json()["objection"]["id"]

    res = logged_in.patch(f"{BASE}/{objection_id}", json={"reason": "Updated reason"})

    assert res.json()["objection"]["reason"] == "Updated reason"
    assert [c["chainage_meters"] for c in res.json()["objection"]["chainages"]] == [35897]


def test_update_rejects_unreadable_chainage(logged_in):
    objection_id = _create(logged_in).json()["objection"]["id"]
    res = logged_in.patch(f"{BASE}/{objection_id}", json={"specific_chainages": "K1+000, ???"})
    assert res.status_code == 422


def test_closed_objection_cannot_be_edited(logged_in):
    objection_id = _create(logged_in, status="submitted").json()["objection"]["id"]
    logged_in.post(f"{BASE}/{objection_id}/resolve", json={"notes": "done"})

    res = logged_in.patch(f"{BASE}/{objection_id}", json={"title": "Too late"})

    assert res.status_code == 409
    assert res.json()["code"] == "OBJ_409_2"


def test_delete(logged_in, rfis):
    objection_id = _create(logged_in, rfi_ids=[rfis["RFI-001"]]).json()["objection"]["id"]

    assert logged_in.delete(f"{BASE}/{objection_id}").status_code == 200
    assert logged_in.get(f"{BASE}/{objection_id}").status_code == 404


# -------------------------------------------------
# RFIs
# -------------------------------------------------
def test_attach_and_detach_rfis(logged_in, rfis):
    objection_id = _create(logged_in).json()["objection"]["id"]

    res = logged_in.post(
        f"{BASE}/{objection_id}/rfis",
        json={"rfi_ids": [rfis["RFI-001"], rfis["RFI-002"], rfis["RFI-001"]]},
    )
    assert res.status_code == 200
    assert res.json()["message"] == "2 RFI(s) attached."

    # attaching again is a no-op
    again = logged_in.post(f"{BASE}/{objection_id}/rfis", json={"rfi_ids": [rfis["RFI-001"]]})
    assert again.json()["message"] == "0 RFI(s) attached."

    res = logged_in.delete(f"{BASE}/{objection_id}/rfis/{rfis['RFI-001']}")
    assert [r["number"] for r in res.json()["objection"]["rfis"]] == ["RFI-002"]

    missing = logged_in.delete(f"{BASE}/{objection_id}/rfis/{rfis['RFI-001']}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "OBJ_404_3"

    unknown = logged_in.post(f"{BASE}/{objection_id}/rfis", json={"rfi_ids": [99999]})
    assert unknown.json()["code"] == "OBJ_404_2"


def test_suggested_rfis_for_objection(logged_in, rfis):
    objection_id = _create(
        logged_in,
        specific_chainages=["K35+897"],
        rfi_ids=[rfis["RFI-001"]],
    ).json()["objection"]["id"]

    body = logged_in.get(f"{BASE}/{objection_id}/suggested-rfis").json()

    assert body["match_type"] == "specific"
    assert [r["number"] for r in body["rfis"]] == ["RFI-002", "RFI-001"]
    assert body["attached_ids"] == [rfis["RFI-001"]]

    limited = logged_in.get(f"{BASE}/{objection_id}/suggested-rfis", params={"limit": 1}).json()
    assert limited["count"] == 1


def test_suggested_rfis_without_chainages(logged_in, rfis):
    objection_id = _create(logged_in).json()["objection"]["id"]

    body = logged_in.get(f"{BASE}/{objection_id}/suggested-rfis").json()

    assert body["match_type"] == "none"
    assert body["rfis"] == []


# -------------------------------------------------
# Listing
# -------------------------------------------------
def test_list_filters(logged_in):
    _create(logged_in, title="Point", specific_chainages=["K35+897"])
    _create(logged_in, title="Span", chainage_range_from="K36+500", chainage_range_to="K37+000",
            status="submitted", category="safety_concern")
    _create(logged_in, title="Elsewhere", specific_chainages=["K50+000"])

    def titles(**params):
        return sorted(o["title"] for o in logged_in.get(BASE, params=params).json()["objections"])

    assert titles() == ["Elsewhere", "Point", "Span"]
    assert titles(status="submitted") == ["Span"]
    assert titles(category="safety_concern") == ["Span"]
    assert titles(chainage="K36+750") == ["Span"]
    assert titles(chainage="K35+000-K37+000") == ["Point", "Span"]
    assert titles(search="Elsewhere") == ["Elsewhere"]


def test_metadata(logged_in):
    body = logged_in.get(f"{BASE}/metadata").json()

    assert {"value": "site_mismatch", "label": "Site Condition Mismatch"} in body["categories"]
    assert [s["value"] for s in body["statuses"]] == [
        "draft", "submitted", "under_review", "resolved", "rejected",
    ]
    assert body["active_statuses"] == ["draft", "submitted", "under_review"]
