'''
A test suite for testing `assigner/service/routes.py`

Verifies that status codes are responding to requests as intended.
'''

import pytest

import assigner.service
from assigner.core import AssignerStatus
from assigner.models import ReviewStatus

from conftest import CONFERENCE_ID, StatusStoreDown

CHAIR = {"X-User-Id": "~Chair_A1"}


@pytest.fixture
def test_client(tmp_path, small_conference):
    app = assigner.service.create_app(
        config={
            "LOG_FILE": str(tmp_path / "pytest.log"),
            "ENV": "testing",
            "DATASOURCE": small_conference,
        }
    )
    return app.test_client()


def as_user(user_id):
    return {"X-User-Id": user_id}


def test_test_endpoint(test_client):
    response = test_client.get("/assign/test")
    assert response.status_code == 200


def test_missing_user_header(test_client):
    response = test_client.post(
        "/assignments", json={"paperId": "paper3", "reviewerId": "~Rev_C1"}
    )
    assert response.status_code == 401


def test_reviewer_may_not_create_assignments(test_client):
    response = test_client.post(
        "/assignments",
        json={"paperId": "paper3", "reviewerId": "~Rev_C1"},
        headers=as_user("~Rev_A1"),
    )
    assert response.status_code == 403
    assert response.json["name"] == "AuthorizationException"


def test_create_assignment(test_client, small_conference):
    response = test_client.post(
        "/assignments",
        json={"paperId": "paper3", "reviewerId": "~Rev_C1"},
        headers=CHAIR,
    )
    assert response.status_code == 201
    assert response.json["paperId"] == "paper3"
    assert response.json["reviewerId"] == "~Rev_C1"
    assert response.json["status"] == "NOT_STARTED"
    assert response.json["dueDate"]

    duplicate = test_client.post(
        "/assignments",
        json={"paperId": "paper3", "reviewerId": "~Rev_C1"},
        headers=CHAIR,
    )
    assert duplicate.status_code == 409
    assert duplicate.json["name"] == "DuplicateAssignment"


def test_create_assignment_with_due_date(test_client):
    response = test_client.post(
        "/assignments",
        json={
            "paperId": "paper3",
            "reviewerId": "~Rev_C1",
            "dueDate": "2025-06-01T00:00:00+00:00",
        },
        headers=CHAIR,
    )
    assert response.status_code == 201
    assert response.json["dueDate"] == "2025-06-01T00:00:00+00:00"


@pytest.mark.parametrize(
    "body, status_code",
    [
        ({"paperId": "paper1", "reviewerId": "~Rev_C1"}, 400),
        ({"paperId": "paper2", "reviewerId": "~Rev_D1"}, 400),
        ({"paperId": "paper1"}, 400),
        ({"paperId": "paper1", "reviewerId": "~Rev_A1", "dueDate": "soon"}, 400),
        ({"paperId": "missing", "reviewerId": "~Rev_A1"}, 404),
    ],
)
def test_create_assignment_errors(test_client, body, status_code):
    response = test_client.post("/assignments", json=body, headers=CHAIR)
    assert response.status_code == status_code


def test_delete_assignment(test_client, small_conference):
    assignment = small_conference.create_assignment("paper1", "~Rev_A1")

    forbidden = test_client.delete(
        "/assignments/{}".format(assignment.id), headers=as_user("~Rev_A1")
    )
    assert forbidden.status_code == 403

    response = test_client.delete("/assignments/{}".format(assignment.id), headers=CHAIR)
    assert response.status_code == 200

    missing = test_client.delete("/assignments/{}".format(assignment.id), headers=CHAIR)
    assert missing.status_code == 404


def test_delete_submitted_assignment(test_client, small_conference):
    assignment = small_conference.create_assignment("paper1", "~Rev_A1")
    small_conference.update_assignment_status(assignment.id, ReviewStatus.SUBMITTED)

    response = test_client.delete("/assignments/{}".format(assignment.id), headers=CHAIR)
    assert response.status_code == 400
    assert response.json["name"] == "AssignmentLocked"


def test_update_status(test_client, small_conference):
    assignment = small_conference.create_assignment("paper1", "~Rev_A1")
    url = "/assignments/{}/status".format(assignment.id)

    response = test_client.patch(url, json={"status": "DRAFT"}, headers=as_user("~Rev_A1"))
    assert response.status_code == 200
    assert response.json["status"] == "DRAFT"

    other = test_client.patch(url, json={"status": "SUBMITTED"}, headers=as_user("~Rev_B1"))
    assert other.status_code == 403

    invalid = test_client.patch(url, json={"status": "DONE"}, headers=CHAIR)
    assert invalid.status_code == 400

    by_chair = test_client.patch(url, json={"status": "SUBMITTED"}, headers=CHAIR)
    assert by_chair.status_code == 200
    assert by_chair.json["status"] == "SUBMITTED"


def test_paper_and_reviewer_listings(test_client, small_conference):
    small_conference.create_assignment("paper1", "~Rev_A1")
    small_conference.create_assignment("paper2", "~Rev_A1")
    small_conference.create_assignment("paper1", "~Rev_B1")

    paper = test_client.get("/assignments/papers/paper1", headers=CHAIR)
    assert paper.status_code == 200
    assert [a["reviewerId"] for a in paper.json] == ["~Rev_A1", "~Rev_B1"]

    mine = test_client.get("/assignments/my", headers=as_user("~Rev_A1"))
    assert mine.status_code == 200
    assert sorted(a["paperId"] for a in mine.json) == ["paper1", "paper2"]


def test_auto_assign_in_request(test_client, small_conference):
    response = test_client.post(
        "/assign/auto", json={"conferenceId": CONFERENCE_ID, "wait": True}, headers=CHAIR
    )
    assert response.status_code == 200
    assert response.json["totalAssigned"] == 6
    assert response.json["unsatisfiedPapers"] == []

    status = test_client.get(
        "/assign/auto/{}/status".format(CONFERENCE_ID), headers=CHAIR
    )
    assert status.status_code == 200
    assert status.json["status"] == AssignerStatus.COMPLETE.value


def test_auto_assign_requires_chair(test_client):
    response = test_client.post(
        "/assign/auto",
        json={"conferenceId": CONFERENCE_ID, "wait": True},
        headers=as_user("~Rev_A1"),
    )
    assert response.status_code == 403


def test_auto_assign_already_running(test_client, small_conference):
    small_conference.set_status(CONFERENCE_ID, AssignerStatus.RUNNING)

    response = test_client.post(
        "/assign/auto", json={"conferenceId": CONFERENCE_ID, "wait": True}, headers=CHAIR
    )
    assert response.status_code == 400
    assert response.json["name"] == "AssignerStatusException"


def test_auto_assign_missing_conference(test_client):
    response = test_client.post("/assign/auto", json={}, headers=CHAIR)
    assert response.status_code == 400


def test_assignment_stats(test_client, small_conference):
    small_conference.create_assignment("paper1", "~Rev_A1")

    response = test_client.get(
        "/conferences/{}/assignment-stats".format(CONFERENCE_ID), headers=CHAIR
    )
    assert response.status_code == 200
    assert response.json["summary"]["totalAssignments"] == 1
    assert response.json["summary"]["papersWithoutAssignments"] == 2


def test_auto_assign_with_unreachable_status_store(tmp_path, small_conference):
    app = assigner.service.create_app(
        config={
            "LOG_FILE": str(tmp_path / "pytest.log"),
            "ENV": "testing",
            "DATASOURCE": StatusStoreDown(small_conference, list(AssignerStatus)),
        }
    )

    response = app.test_client().post(
        "/assign/auto", json={"conferenceId": CONFERENCE_ID, "wait": True}, headers=CHAIR
    )
    assert response.status_code == 503
    assert response.json["name"] == "AssignerError"
