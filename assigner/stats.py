"""Assignment statistics for a conference, as shown on the chair's dashboard."""

import numpy as np

from .eligibility import can_review
from .models import ReviewStatus


def assignment_stats(datasource, conference_id):
    papers = datasource.get_papers_needing_review(conference_id)
    members = datasource.get_conference_members(conference_id)
    assignments = datasource.get_assignments(conference_id)

    by_paper = {paper.id: [] for paper in papers}
    by_reviewer = {m.user_id: [] for m in members if can_review(m)}

    for assignment in assignments:
        if assignment.paper_id in by_paper:
            by_paper[assignment.paper_id].append(assignment)
        if assignment.reviewer_id in by_reviewer:
            by_reviewer[assignment.reviewer_id].append(assignment)

    counts = np.array([len(a) for a in by_paper.values()], dtype=int)

    paper_stats = [
        {
            "paperId": paper_id,
            "assignedReviewers": len(paper_assignments),
            "assignments": [
                {
                    "assignmentId": a.id,
                    "reviewerId": a.reviewer_id,
                    "status": a.status.value,
                }
                for a in paper_assignments
            ],
        }
        for paper_id, paper_assignments in by_paper.items()
    ]

    reviewer_stats = []
    for reviewer_id, reviewer_assignments in sorted(by_reviewer.items()):
        statuses = [a.status for a in reviewer_assignments]
        reviewer_stats.append(
            {
                "reviewerId": reviewer_id,
                "totalAssigned": len(reviewer_assignments),
                "notStarted": statuses.count(ReviewStatus.NOT_STARTED),
                "inProgress": statuses.count(ReviewStatus.DRAFT),
                "completed": statuses.count(ReviewStatus.SUBMITTED),
            }
        )

    return {
        "papers": paper_stats,
        "reviewers": reviewer_stats,
        "summary": {
            "totalPapers": len(counts),
            "papersWithAssignments": int(np.count_nonzero(counts)),
            "papersWithoutAssignments": int(np.sum(counts == 0)),
            "totalAssignments": int(np.sum(counts)),
            "averageReviewersPerPaper": round(float(np.mean(counts)), 1)
            if len(counts)
            else 0.0,
        },
    }
