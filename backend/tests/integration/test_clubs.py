"""
tests/integration/test_clubs.py — Club lifecycle and membership workflow.

Membership path under test:
    join → PENDING → approve → MEMBER → out → NONE → join again
                   → reject  → REJECTED (no further requests)

Also covered:
  - capacity is checked on join and again on approve (CLUB_FULL)
  - approve writes the ClubJoin row and the APPROVED status together
  - the lead can never leave; lead hand-over to members only
  - leaving cascades over the leaver's club events
  - deleting a club removes memberships and upcoming events only
"""

from __future__ import annotations

import pytest

from backend.app.repositories import club_repository

from .conftest import (
    add_club_member,
    auth_headers,
    decide,
    event_payload,
    insert_event,
    make_club,
    make_event,
    register,
)


@pytest.fixture
def lead(client):
    return register(client, "lead")


@pytest.fixture
def club(client, lead):
    return make_club(client, lead["access_token"])


def _club(client, club_id: int) -> dict:
    return client.get(f"/api/v1/clubs/{club_id}").get_json()["data"]


def _waiting(client, token: str, club_id: int):
    return client.get(f"/api/v1/clubs/{club_id}/waiting", headers=auth_headers(token))


def _join(client, token: str, club_id: int):
    return client.post(f"/api/v1/clubs/{club_id}/join", headers=auth_headers(token))


def _out(client, token: str, club_id: int):
    return client.post(f"/api/v1/clubs/{club_id}/out", headers=auth_headers(token))


def _my_event_ids(client, token: str) -> set[int]:
    resp = client.get("/api/v1/events/me", headers=auth_headers(token))
    return {e["id"] for e in resp.get_json()["data"]}


# ═══════════════════════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateAndRead:

    def test_create_club_makes_caller_lead_and_first_member(self, club, lead):
        assert club["lead_id"] == lead["user"]["id"]
        assert club["member_count"] == 1
        assert club["max_people"] == 10

    def test_create_club_rejects_zero_capacity(self, client, lead):
        resp = client.post(
            "/api/v1/clubs",
            json={"name": "Tiny", "description": "x", "max_people": 0},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "max_people"

    def test_create_club_rejects_blank_name(self, client, lead):
        resp = client.post(
            "/api/v1/clubs",
            json={"name": "   ", "description": "x", "max_people": 3},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 400

    def test_list_clubs_filters_by_lead(self, client, lead, club):
        other = register(client, "other")
        make_club(client, other["access_token"], name="Chess Club")

        all_clubs = client.get("/api/v1/clubs").get_json()["data"]
        assert {c["name"] for c in all_clubs} == {"Hiking Club", "Chess Club"}

        mine = client.get(f"/api/v1/clubs?lead_id={lead['user']['id']}").get_json()["data"]
        assert [c["id"] for c in mine] == [club["id"]]

    def test_get_unknown_club_returns_404(self, client):
        resp = client.get("/api/v1/clubs/99999")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "CLUB_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════════════
# Join request workflow
# ═══════════════════════════════════════════════════════════════════════════

class TestJoinWorkflow:

    def test_join_approve_leave_rejoin(self, client, lead, club):
        bob = register(client, "bob")
        club_id = club["id"]

        assert _join(client, bob["access_token"], club_id).status_code == 204

        waiting = _waiting(client, lead["access_token"], club_id).get_json()["data"]
        assert [w["user_id"] for w in waiting] == [bob["user"]["id"]]
        assert waiting[0]["status"] == "pending"
        assert waiting[0]["name"] == "bob"
        # a request alone does not grant membership
        assert _club(client, club_id)["member_count"] == 1

        assert decide(client, lead["access_token"], club_id, bob["user"]["id"]).status_code == 204
        assert _club(client, club_id)["member_count"] == 2
        assert _waiting(client, lead["access_token"], club_id).get_json()["data"] == []

        assert _out(client, bob["access_token"], club_id).status_code == 204
        assert _club(client, club_id)["member_count"] == 1

        # leaving resets the state, so a fresh request is allowed
        assert _join(client, bob["access_token"], club_id).status_code == 204
        waiting = _waiting(client, lead["access_token"], club_id).get_json()["data"]
        assert [w["user_id"] for w in waiting] == [bob["user"]["id"]]

    def test_rejected_user_can_never_request_again(self, client, lead, club):
        bob = register(client, "bob")
        club_id = club["id"]

        _join(client, bob["access_token"], club_id)
        resp = decide(client, lead["access_token"], club_id, bob["user"]["id"], "reject")
        assert resp.status_code == 204
        assert _club(client, club_id)["member_count"] == 1

        resp = _join(client, bob["access_token"], club_id)
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "JOIN_REJECTED"

    def test_duplicate_request_returns_already_waiting(self, client, club):
        bob = register(client, "bob")
        _join(client, bob["access_token"], club["id"])

        resp = _join(client, bob["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "ALREADY_WAITING"

    def test_member_joining_again_returns_already_member(self, client, lead, club):
        resp = _join(client, lead["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "ALREADY_MEMBER"

    def test_join_unknown_club_returns_404(self, client, lead):
        resp = _join(client, lead["access_token"], 99999)
        assert resp.status_code == 404

    def test_approve_without_pending_request_returns_not_waiting(self, client, lead, club):
        bob = register(client, "bob")
        resp = decide(client, lead["access_token"], club["id"], bob["user"]["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_WAITING"

    def test_invalid_decision_returns_400(self, client, lead, club):
        bob = register(client, "bob")
        _join(client, bob["access_token"], club["id"])

        resp = decide(client, lead["access_token"], club["id"], bob["user"]["id"], "maybe")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_DECISION"
        assert resp.get_json()["error"]["field"] == "decision"

    def test_pending_request_of_deleted_user_cannot_be_approved(self, client, lead, club):
        bob = register(client, "bob")
        _join(client, bob["access_token"], club["id"])
        client.delete(f"/api/v1/users/{bob['user']['id']}", headers=auth_headers(bob["access_token"]))

        resp = decide(client, lead["access_token"], club["id"], bob["user"]["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_WAITING"
        assert _club(client, club["id"])["member_count"] == 1

    def test_only_lead_may_decide_or_see_waiting(self, client, club):
        bob = register(client, "bob")
        carol = register(client, "carol")
        _join(client, bob["access_token"], club["id"])

        resp = decide(client, carol["access_token"], club["id"], bob["user"]["id"])
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"

        resp = _waiting(client, carol["access_token"], club["id"])
        assert resp.status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# Capacity
# ═══════════════════════════════════════════════════════════════════════════

class TestCapacity:

    def test_full_club_refuses_join_request(self, client, lead):
        club = make_club(client, lead["access_token"], max_people=1)
        bob = register(client, "bob")

        resp = _join(client, bob["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "CLUB_FULL"
        assert _waiting(client, lead["access_token"], club["id"]).get_json()["data"] == []

    def test_club_filled_after_request_refuses_approval(self, client, lead):
        club = make_club(client, lead["access_token"], max_people=2)
        bob = register(client, "bob")
        carol = register(client, "carol")

        assert _join(client, bob["access_token"], club["id"]).status_code == 204
        assert _join(client, carol["access_token"], club["id"]).status_code == 204

        assert decide(client, lead["access_token"], club["id"], bob["user"]["id"]).status_code == 204

        dave = register(client, "dave")
        resp = _join(client, dave["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "CLUB_FULL"

        resp = decide(client, lead["access_token"], club["id"], carol["user"]["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "CLUB_FULL"
        assert _club(client, club["id"])["member_count"] == 2

        # carol's request stays pending; rejecting it still works
        resp = decide(client, lead["access_token"], club["id"], carol["user"]["id"], "reject")
        assert resp.status_code == 204


# ═══════════════════════════════════════════════════════════════════════════
# Approval atomicity
# ═══════════════════════════════════════════════════════════════════════════

class TestApprovalAtomicity:

    def test_failed_status_update_leaves_no_membership(self, client, lead, club, monkeypatch):
        bob = register(client, "bob")
        _join(client, bob["access_token"], club["id"])

        def _boom(*args, **kwargs):
            raise RuntimeError("status write failed")

        monkeypatch.setattr(club_repository, "set_waiting_status", _boom)

        resp = decide(client, lead["access_token"], club["id"], bob["user"]["id"])
        assert resp.status_code == 500
        assert resp.get_json()["error"]["code"] == "INTERNAL_ERROR"

        monkeypatch.undo()

        # neither half of the approval was kept
        assert _club(client, club["id"])["member_count"] == 1
        waiting = _waiting(client, lead["access_token"], club["id"]).get_json()["data"]
        assert [w["user_id"] for w in waiting] == [bob["user"]["id"]]

        # and the request can still be approved normally afterwards
        assert decide(client, lead["access_token"], club["id"], bob["user"]["id"]).status_code == 204
        assert _club(client, club["id"])["member_count"] == 2


# ═══════════════════════════════════════════════════════════════════════════
# Leaving
# ═══════════════════════════════════════════════════════════════════════════

class TestOut:

    def test_lead_cannot_leave(self, client, lead, club):
        resp = _out(client, lead["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "LEAD_CANNOT_LEAVE"

    def test_non_member_cannot_leave(self, client, club):
        bob = register(client, "bob")
        resp = _out(client, bob["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_MEMBER"

    def test_pending_user_cannot_leave(self, client, club):
        bob = register(client, "bob")
        _join(client, bob["access_token"], club["id"])
        resp = _out(client, bob["access_token"], club["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_MEMBER"

    def test_leaving_cascades_over_started_club_events(self, app, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])
        bob_id, lead_id = bob["user"]["id"], lead["user"]["id"]

        # bob joined an ongoing event hosted by the lead, and hosts one himself
        joined_started = insert_event(app, lead_id, (bob_id,), club_id=club["id"], ended=False)
        hosted_started = insert_event(app, bob_id, (lead_id,), club_id=club["id"], ended=False)
        # and joined an upcoming one
        resp = client.post(
            f"/api/v1/clubs/{club['id']}/events",
            json=event_payload(client),
            headers=auth_headers(lead["access_token"]),
        )
        upcoming = resp.get_json()["data"]["id"]
        client.post(f"/api/v1/events/{upcoming}/join", headers=auth_headers(bob["access_token"]))

        assert _out(client, bob["access_token"], club["id"]).status_code == 204

        # started events: participation dropped, hosted event deleted
        assert _my_event_ids(client, bob["access_token"]) == {upcoming}
        assert client.get(f"/api/v1/events/{hosted_started}").status_code == 404
        detail = client.get(f"/api/v1/events/{joined_started}").get_json()["data"]
        assert [u["id"] for u in detail["joined_users"]] == [lead_id]

    def test_leaving_leaves_other_clubs_and_independent_events_alone(self, app, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])
        other_club = make_club(client, lead["access_token"], name="Chess Club")
        add_club_member(client, lead["access_token"], bob, other_club["id"])
        bob_id, lead_id = bob["user"]["id"], lead["user"]["id"]

        # started events outside the club bob is leaving
        independent_joined = insert_event(app, lead_id, (bob_id,), ended=False)
        independent_hosted = insert_event(app, bob_id, (lead_id,), ended=False)
        other_joined = insert_event(app, lead_id, (bob_id,), club_id=other_club["id"], ended=False)
        other_hosted = insert_event(app, bob_id, (lead_id,), club_id=other_club["id"], ended=False)
        # and one started event of the club itself
        insert_event(app, bob_id, club_id=club["id"], ended=False)

        assert _out(client, bob["access_token"], club["id"]).status_code == 204

        untouched = {independent_joined, independent_hosted, other_joined, other_hosted}
        assert _my_event_ids(client, bob["access_token"]) == untouched
        for event_id in untouched:
            detail = client.get(f"/api/v1/events/{event_id}").get_json()["data"]
            assert {u["id"] for u in detail["joined_users"]} == {bob_id, lead_id}

        assert _club(client, other_club["id"])["member_count"] == 2

    def test_leaving_with_all_scope_also_drops_upcoming_events(
            self, app, client, lead, club, monkeypatch,
    ):
        monkeypatch.setitem(app.config, "CLUB_EXIT_CASCADE_SCOPE", "all")
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])

        resp = client.post(
            f"/api/v1/clubs/{club['id']}/events",
            json=event_payload(client),
            headers=auth_headers(lead["access_token"]),
        )
        upcoming = resp.get_json()["data"]["id"]
        client.post(f"/api/v1/events/{upcoming}/join", headers=auth_headers(bob["access_token"]))

        assert _out(client, bob["access_token"], club["id"]).status_code == 204
        assert _my_event_ids(client, bob["access_token"]) == set()


# ═══════════════════════════════════════════════════════════════════════════
# Lead hand-over
# ═══════════════════════════════════════════════════════════════════════════

class TestChangeLead:

    def test_new_lead_must_be_member(self, client, lead, club):
        bob = register(client, "bob")
        resp = client.put(
            f"/api/v1/clubs/{club['id']}/lead",
            json={"lead_id": bob["user"]["id"]},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_MEMBER"

    def test_hand_over_then_former_lead_can_leave(self, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])

        resp = client.put(
            f"/api/v1/clubs/{club['id']}/lead",
            json={"lead_id": bob["user"]["id"]},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 204
        assert _club(client, club["id"])["lead_id"] == bob["user"]["id"]

        assert _out(client, lead["access_token"], club["id"]).status_code == 204
        assert _club(client, club["id"])["member_count"] == 1

    def test_only_lead_may_hand_over(self, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])
        resp = client.put(
            f"/api/v1/clubs/{club['id']}/lead",
            json={"lead_id": bob["user"]["id"]},
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════════════════════

class TestPatch:

    def test_patch_updates_only_sent_fields(self, client, lead, club):
        resp = client.patch(
            f"/api/v1/clubs/{club['id']}",
            json={"name": "Mountain Club"},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["name"] == "Mountain Club"
        assert data["description"] == club["description"]
        assert data["max_people"] == club["max_people"]

    def test_explicit_null_returns_null_field(self, client, lead, club):
        resp = client.patch(
            f"/api/v1/clubs/{club['id']}",
            json={"max_people": None},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "NULL_FIELD"
        assert error["field"] == "max_people"

    def test_capacity_below_member_count_returns_409(self, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])

        resp = client.patch(
            f"/api/v1/clubs/{club['id']}",
            json={"max_people": 1},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "CAPACITY_BELOW_MEMBERS"

    def test_capacity_equal_to_member_count_is_allowed(self, client, lead, club):
        resp = client.patch(
            f"/api/v1/clubs/{club['id']}",
            json={"max_people": 1},
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 200

    def test_non_lead_cannot_patch(self, client, club):
        bob = register(client, "bob")
        resp = client.patch(
            f"/api/v1/clubs/{club['id']}",
            json={"name": "Hijacked"},
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════════════════════

class TestDelete:

    def test_non_lead_cannot_delete(self, client, club):
        bob = register(client, "bob")
        resp = client.delete(f"/api/v1/clubs/{club['id']}", headers=auth_headers(bob["access_token"]))
        assert resp.status_code == 403

    def test_delete_removes_club_members_and_upcoming_events(self, app, client, lead, club):
        bob = register(client, "bob")
        add_club_member(client, lead["access_token"], bob, club["id"])

        resp = client.post(
            f"/api/v1/clubs/{club['id']}/events",
            json=event_payload(client),
            headers=auth_headers(lead["access_token"]),
        )
        upcoming = resp.get_json()["data"]["id"]
        finished = insert_event(app, lead["user"]["id"], (bob["user"]["id"],), club_id=club["id"])

        resp = client.delete(f"/api/v1/clubs/{club['id']}", headers=auth_headers(lead["access_token"]))
        assert resp.status_code == 204

        assert client.get(f"/api/v1/clubs/{club['id']}").status_code == 404
        assert client.get("/api/v1/clubs").get_json()["data"] == []
        assert client.get(f"/api/v1/events/{upcoming}").status_code == 404
        # events that already happened keep their history
        assert client.get(f"/api/v1/events/{finished}").status_code == 200

        resp = _join(client, bob["access_token"], club["id"])
        assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Club events
# ═══════════════════════════════════════════════════════════════════════════

class TestClubEvents:

    def test_member_creates_club_event(self, client, lead, club):
        resp = client.post(
            f"/api/v1/clubs/{club['id']}/events",
            json=event_payload(client),
            headers=auth_headers(lead["access_token"]),
        )
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["club_id"] == club["id"]
        assert data["host_id"] == lead["user"]["id"]

    def test_non_member_cannot_create_club_event(self, client, club):
        bob = register(client, "bob")
        resp = client.post(
            f"/api/v1/clubs/{club['id']}/events",
            json=event_payload(client),
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 403

    def test_non_member_cannot_join_club_event(self, client, lead, club):
        bob = register(client, "bob")
        resp = make_event(client, lead["access_token"], club_id=club["id"])
        event_id = resp.get_json()["data"]["id"]

        resp = client.post(f"/api/v1/events/{event_id}/join", headers=auth_headers(bob["access_token"]))
        assert resp.status_code == 403
