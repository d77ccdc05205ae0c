"""
Records exchanged between the datasources and the assignment engine.
"""

from collections import namedtuple
from enum import Enum


class Capability(Enum):
    REVIEWER = "REVIEWER"
    CHAIR = "CHAIR"
    ADMIN = "ADMIN"


class BidValue(Enum):
    YES = "YES"
    MAYBE = "MAYBE"
    NO = "NO"
    CONFLICT = "CONFLICT"


class ReviewStatus(Enum):
    NOT_STARTED = "NOT_STARTED"
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"


# members holding any of these may be assigned papers
REVIEWING_CAPABILITIES = frozenset([Capability.REVIEWER, Capability.CHAIR])

# members holding any of these may manage assignments
MANAGING_CAPABILITIES = frozenset([Capability.CHAIR, Capability.ADMIN])

REVIEWABLE_STATUSES = ("submitted", "under_review")

Member = namedtuple("Member", ["user_id", "conference_id", "capabilities"])

Paper = namedtuple(
    "Paper",
    ["id", "conference_id", "status", "author_ids", "assignment_count"],
    defaults=[0],
)

Bid = namedtuple("Bid", ["paper_id", "reviewer_id", "value"])

Conflict = namedtuple("Conflict", ["paper_id", "user_id"])

Assignment = namedtuple(
    "Assignment",
    ["id", "paper_id", "reviewer_id", "status", "due_date", "created_at"],
)

Shortfall = namedtuple("Shortfall", ["paper_id", "shortfall"])


class ConferenceSettings(
    namedtuple(
        "ConferenceSettings",
        ["max_reviewers_per_paper", "assignment_timeout_days"],
        defaults=[3, 3],
    )
):
    """Per-conference inputs that stay fixed for the duration of a run."""

    __slots__ = ()

    def __new__(cls, max_reviewers_per_paper=3, assignment_timeout_days=3):
        for name, value in (
            ("max_reviewers_per_paper", max_reviewers_per_paper),
            ("assignment_timeout_days", assignment_timeout_days),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(
                    "{} must be an integer >= 1, got {!r}".format(name, value)
                )
        return super().__new__(
            cls, max_reviewers_per_paper, assignment_timeout_days
        )


def make_member(user_id, conference_id, capabilities):
    """Build a Member, accepting capability names or Capability values."""
    return Member(
        user_id,
        conference_id,
        frozenset(
            c if isinstance(c, Capability) else Capability(c.upper())
            for c in capabilities
        ),
    )


def assignment_to_json(assignment):
    return {
        "id": assignment.id,
        "paperId": assignment.paper_id,
        "reviewerId": assignment.reviewer_id,
        "status": assignment.status.value,
        "dueDate": assignment.due_date.isoformat()
        if assignment.due_date
        else None,
        "createdAt": assignment.created_at.isoformat(),
    }
