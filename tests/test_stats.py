from assigner import AutoAssigner
from assigner.models import ReviewStatus
from assigner.stats import assignment_stats

from conftest import CONFERENCE_ID, build_datasource


def test_stats_for_empty_conference():
    stats = assignment_stats(build_datasource(reviewers=[], papers={}), CONFERENCE_ID)

    assert stats["papers"] == []
    assert stats["reviewers"] == []
    assert stats["summary"] == {
        "totalPapers": 0,
        "papersWithAssignments": 0,
        "papersWithoutAssignments": 0,
        "totalAssignments": 0,
        "averageReviewersPerPaper": 0.0,
    }


def test_stats_summary_and_reviewer_progress():
    datasource = build_datasource(
        reviewers=["R1", "R2"],
        papers={"P1": [], "P2": [], "P3": []},
        assignments=[("P1", "R1"), ("P1", "R2"), ("P2", "R1")],
    )
    assigner = AutoAssigner(datasource)
    by_pair = {
        (a.paper_id, a.reviewer_id): a for a in datasource.get_assignments(CONFERENCE_ID)
    }
    assigner.update_assignment_status(by_pair[("P1", "R1")].id, ReviewStatus.SUBMITTED)
    assigner.update_assignment_status(by_pair[("P2", "R1")].id, ReviewStatus.DRAFT)

    stats = assignment_stats(datasource, CONFERENCE_ID)

    assert stats["summary"] == {
        "totalPapers": 3,
        "papersWithAssignments": 2,
        "papersWithoutAssignments": 1,
        "totalAssignments": 3,
        "averageReviewersPerPaper": 1.0,
    }
    assert [p["assignedReviewers"] for p in stats["papers"]] == [2, 1, 0]
    assert stats["reviewers"] == [
        {
            "reviewerId": "R1",
            "totalAssigned": 2,
            "notStarted": 0,
            "inProgress": 1,
            "completed": 1,
        },
        {
            "reviewerId": "R2",
            "totalAssigned": 1,
            "notStarted": 1,
            "inProgress": 0,
            "completed": 0,
        },
    ]


def test_stats_average_is_rounded():
    datasource = build_datasource(
        reviewers=["R1", "R2"],
        papers={"P1": [], "P2": [], "P3": []},
        assignments=[("P1", "R1"), ("P1", "R2"), ("P2", "R1"), ("P2", "R2")],
    )

    stats = assignment_stats(datasource, CONFERENCE_ID)

    assert stats["summary"]["averageReviewersPerPaper"] == 1.3
