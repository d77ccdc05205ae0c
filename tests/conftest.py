"""
Defines pytest fixtures and helpers that build small conferences in memory.
"""

import logging

import pytest
import redis

from assigner import InMemoryDatasource
from assigner.models import (
    Bid,
    BidValue,
    ConferenceSettings,
    Conflict,
    Paper,
    make_member,
)
from assigner.store import InMemoryAssignmentStore

CONFERENCE_ID = "ICLR.cc/2025/Conference"


def build_datasource(
    reviewers,
    papers,
    bids=None,
    conflicts=None,
    max_reviewers_per_paper=3,
    chairs=(),
    others=(),
    assignments=(),
    conference_id=CONFERENCE_ID,
):
    """
    Build an InMemoryDatasource for one conference.

    :param reviewers: user ids holding the REVIEWER capability.
    :param papers: dict of paper id to the list of its author ids.
    :param bids: dict of (paper id, reviewer id) to a bid value name.
    :param conflicts: list of (paper id, user id) pairs.
    :param chairs: user ids holding the CHAIR capability.
    :param others: dict of user id to capability names, for any other member.
    :param assignments: list of (paper id, reviewer id) pairs that already exist.
    """
    members = [make_member(r, conference_id, ["REVIEWER"]) for r in reviewers]
    members += [make_member(c, conference_id, ["CHAIR"]) for c in chairs]
    members += [
        make_member(user_id, conference_id, capabilities)
        for user_id, capabilities in dict(others).items()
    ]

    datasource = InMemoryDatasource(
        members=members,
        papers=[
            Paper(paper_id, conference_id, "submitted", frozenset(authors))
            for paper_id, authors in papers.items()
        ],
        bids=[
            Bid(paper_id, reviewer_id, BidValue(value))
            for (paper_id, reviewer_id), value in (bids or {}).items()
        ],
        conflicts=[Conflict(p, u) for p, u in (conflicts or [])],
        settings={
            conference_id: ConferenceSettings(
                max_reviewers_per_paper=max_reviewers_per_paper
            )
        },
        store=InMemoryAssignmentStore(),
    )

    for paper_id, reviewer_id in assignments:
        datasource.create_assignment(paper_id, reviewer_id)

    return datasource


def assigned_reviewers(datasource, paper_id):
    return {a.reviewer_id for a in datasource.get_assignments_for_paper(paper_id)}


class StatusStoreDown:
    """
    Wraps a datasource whose run status store refuses writes of the given
    statuses. Everything else is delegated.
    """

    def __init__(self, datasource, failing_statuses):
        self.datasource = datasource
        self.failing_statuses = failing_statuses

    def __getattr__(self, name):
        return getattr(self.datasource, name)

    def set_status(self, conference_id, status, message=None, additional_status_info={}):
        if status in self.failing_statuses:
            raise redis.ConnectionError("status store down")
        self.datasource.set_status(
            conference_id,
            status,
            message=message,
            additional_status_info=additional_status_info,
        )


@pytest.fixture
def logger():
    return logging.getLogger("assigner.tests")


@pytest.fixture
def small_conference():
    """Three papers, four reviewers, one chair, a handful of bids and conflicts."""
    return build_datasource(
        reviewers=["~Rev_A1", "~Rev_B1", "~Rev_C1", "~Rev_D1"],
        chairs=["~Chair_A1"],
        papers={
            "paper1": ["~Author_A1"],
            "paper2": ["~Author_B1", "~Rev_D1"],
            "paper3": ["~Author_C1"],
        },
        bids={
            ("paper1", "~Rev_A1"): "YES",
            ("paper1", "~Rev_B1"): "MAYBE",
            ("paper1", "~Rev_C1"): "CONFLICT",
            ("paper2", "~Rev_A1"): "YES",
            ("paper3", "~Rev_B1"): "NO",
        },
        conflicts=[("paper1", "~Rev_C1"), ("paper3", "~Rev_A1")],
        max_reviewers_per_paper=2,
    )
