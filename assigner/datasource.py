"""
In-memory implementation of the data interfaces the assignment engine consumes.

Used by the command line interface and the tests; the service uses
`assigner.service.redis_datasource.RedisDatasource` instead.
"""

import logging

from .errors import PaperNotFound
from .models import (
    Bid,
    ConferenceSettings,
    Conflict,
    REVIEWABLE_STATUSES,
    ReviewStatus,
)
from .store import InMemoryAssignmentStore


class InMemoryDatasource:
    def __init__(
        self,
        members=[],
        papers=[],
        bids=[],
        conflicts=[],
        settings=None,
        store=None,
        logger=logging.getLogger(__name__),
    ):
        """
        :param members: list of Member records, possibly spanning conferences.
        :param papers: list of Paper records. `assignment_count` is ignored;
            counts are always derived from the store.
        :param bids: list of Bid records.
        :param conflicts: list of Conflict records.
        :param settings: dict of conference id to ConferenceSettings. Missing
            conferences fall back to the default settings.
        :param store: an InMemoryAssignmentStore holding existing assignments.
        """
        self.logger = logger
        self.members = list(members)
        self.papers = {paper.id: paper for paper in papers}
        self.bids = {}
        self.conflicts = set()
        self.settings = dict(settings or {})
        self.store = store if store is not None else InMemoryAssignmentStore()
        self.statuses = {}

        for bid in bids:
            self.place_bid(bid.paper_id, bid.reviewer_id, bid.value)

        for conflict in conflicts:
            self.declare_conflict(conflict.paper_id, conflict.user_id)

    def _conference_paper_ids(self, conference_id):
        return {
            paper_id
            for paper_id, paper in self.papers.items()
            if paper.conference_id == conference_id
        }

    def place_bid(self, paper_id, reviewer_id, value):
        # bids are unique per pair; a new bid replaces the old one
        self.bids[(paper_id, reviewer_id)] = Bid(paper_id, reviewer_id, value)

    def declare_conflict(self, paper_id, user_id):
        self.conflicts.add(Conflict(paper_id, user_id))

    def get_conference_members(self, conference_id):
        return [m for m in self.members if m.conference_id == conference_id]

    def get_bids(self, conference_id):
        paper_ids = self._conference_paper_ids(conference_id)
        return [bid for bid in self.bids.values() if bid.paper_id in paper_ids]

    def get_conflicts(self, conference_id):
        paper_ids = self._conference_paper_ids(conference_id)
        return [c for c in self.conflicts if c.paper_id in paper_ids]

    def has_conflict(self, paper_id, user_id):
        return Conflict(paper_id, user_id) in self.conflicts

    def get_paper(self, paper_id):
        try:
            paper = self.papers[paper_id]
        except KeyError:
            raise PaperNotFound("Paper {} not found".format(paper_id))
        return paper._replace(assignment_count=len(self.store.for_paper(paper_id)))

    def get_papers_needing_review(self, conference_id):
        return [
            self.get_paper(paper_id)
            for paper_id in sorted(self._conference_paper_ids(conference_id))
            if self.papers[paper_id].status in REVIEWABLE_STATUSES
        ]

    def get_conference_settings(self, conference_id):
        return self.settings.get(conference_id, ConferenceSettings())

    def get_assignments(self, conference_id):
        paper_ids = self._conference_paper_ids(conference_id)
        return [a for a in self.store.all() if a.paper_id in paper_ids]

    def get_assignment(self, assignment_id):
        return self.store.get(assignment_id)

    def get_assignments_for_paper(self, paper_id):
        return sorted(self.store.for_paper(paper_id), key=lambda a: a.created_at)

    def get_assignments_for_reviewer(self, reviewer_id):
        return sorted(
            self.store.for_reviewer(reviewer_id),
            key=lambda a: a.created_at,
            reverse=True,
        )

    def create_assignment(
        self,
        paper_id,
        reviewer_id,
        status=ReviewStatus.NOT_STARTED,
        due_date=None,
        max_assignments=None,
    ):
        assignment = self.store.create(
            paper_id,
            reviewer_id,
            status=status,
            due_date=due_date,
            max_assignments=max_assignments,
        )

        paper = self.papers.get(paper_id)
        if paper is not None and paper.status == "submitted":
            self.papers[paper_id] = paper._replace(status="under_review")

        return assignment

    def delete_assignment(self, assignment_id):
        return self.store.delete(assignment_id)

    def update_assignment_status(self, assignment_id, status):
        return self.store.update_status(assignment_id, status)

    def set_status(
        self, conference_id, status, message=None, additional_status_info={}
    ):
        self.logger.info(
            "conference={0}, status={1}, message={2}, additional_status_info={3}".format(
                conference_id, status.value, message, additional_status_info
            )
        )
        self.statuses[conference_id] = {
            "status": status.value,
            "message": message,
            **additional_status_info,
        }

    def get_status(self, conference_id):
        return self.statuses.get(conference_id, {"status": "Initialized"})
