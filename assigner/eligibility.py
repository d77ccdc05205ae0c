"""
Determines which conference members may legally review a given paper.

A member is a candidate when they hold a reviewing capability (REVIEWER or
CHAIR), are not an author of the paper, have not declared a conflict with it,
and have not bid CONFLICT on it. A NO bid does not exclude anyone.
"""

from .errors import NotEligible
from .models import BidValue, REVIEWING_CAPABILITIES


def _conflicted_users(paper_id, bids, conflicts):
    conflicted = {
        conflict.user_id for conflict in conflicts if conflict.paper_id == paper_id
    }
    conflicted.update(
        bid.reviewer_id
        for bid in bids
        if bid.paper_id == paper_id and bid.value == BidValue.CONFLICT
    )
    return conflicted


def can_review(member):
    return bool(member.capabilities & REVIEWING_CAPABILITIES)


def eligible_reviewers(paper, members, bids, conflicts):
    """
    Return the set of user ids that may be assigned to `paper`.

    An empty set is a valid result; the caller decides what a paper without
    candidates means.
    """
    excluded = set(paper.author_ids) | _conflicted_users(paper.id, bids, conflicts)

    return {
        member.user_id
        for member in members
        if can_review(member) and member.user_id not in excluded
    }


def check_eligibility(paper, reviewer_id, members, bids, conflicts):
    """
    Raise NotEligible, with the reason, unless `reviewer_id` may review `paper`.
    """
    member = next((m for m in members if m.user_id == reviewer_id), None)

    if member is None:
        raise NotEligible(
            "Reviewer {} is not a member of conference {}".format(
                reviewer_id, paper.conference_id
            )
        )

    if not can_review(member):
        raise NotEligible(
            "Member {} does not hold a reviewer or chair role".format(reviewer_id)
        )

    if reviewer_id in paper.author_ids:
        raise NotEligible(
            "Cannot assign paper {} to its own author {}".format(
                paper.id, reviewer_id
            )
        )

    if any(
        c.paper_id == paper.id and c.user_id == reviewer_id for c in conflicts
    ):
        raise NotEligible(
            "Reviewer {} declared a conflict of interest with paper {}".format(
                reviewer_id, paper.id
            )
        )

    if any(
        b.paper_id == paper.id
        and b.reviewer_id == reviewer_id
        and b.value == BidValue.CONFLICT
        for b in bids
    ):
        raise NotEligible(
            "Reviewer {} marked a conflict in bidding for paper {}".format(
                reviewer_id, paper.id
            )
        )

    return member
