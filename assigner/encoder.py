"""
Responsible for:
1) encoding a conference snapshot into index maps and matrices for the solver.
2) decoding the assignments created by a run into JSON-friendly dicts.
"""

from collections import defaultdict
import logging

import numpy as np

from .eligibility import can_review, eligible_reviewers
from .models import BidValue
from .preferences import NO_BID_TIER, preference_tier


class EncoderError(Exception):
    """Exception wrapper class for errors related to Encoder"""

    pass


class Encoder:
    """
    Responsible for keeping track of paper and reviewer indexes.

    Arguments:
    - `papers`:
        a list of Paper records needing review. They are indexed in visiting
        order: ascending current assignment count, then paper id.

    - `members`:
        a list of Member records of the conference. Only members holding a
        reviewing capability become reviewer columns, sorted by user id.

    - `bids`:
        a list of Bid records.

    - `conflicts`:
        a list of Conflict records.

    - `assignments`:
        a list of the Assignment records that already exist.

    Matrices have shape (number of papers, number of reviewers):
    - `constraint_matrix`: -1 where the pair is excluded (author, conflict
      record, CONFLICT bid), 0 otherwise.
    - `preference_matrix`: the bid tier of each pair (see preferences.py).
    - `assignment_matrix`: True where the pair is already assigned.
    """

    def __init__(
        self,
        papers,
        members,
        bids,
        conflicts,
        assignments=[],
        logger=logging.getLogger(__name__),
    ):
        self.logger = logger

        self.logger.debug("Init encoding")

        self.papers = sorted(papers, key=lambda p: (p.assignment_count, p.id))
        self.members = [m for m in members if can_review(m)]
        self.reviewers = sorted({m.user_id for m in self.members})

        self.paper_by_id = {p.id: p for p in self.papers}
        self.index_by_paper = {p.id: i for i, p in enumerate(self.papers)}
        self.index_by_reviewer = {r: i for i, r in enumerate(self.reviewers)}

        self.matrix_shape = (len(self.papers), len(self.reviewers))

        self.bids_by_paper = defaultdict(dict)
        for bid in bids:
            self.bids_by_paper[bid.paper_id][bid.reviewer_id] = bid.value

        self.assigned_by_paper = defaultdict(set)
        for assignment in assignments:
            self.assigned_by_paper[assignment.paper_id].add(assignment.reviewer_id)

        self.logger.debug("Init conflicts")
        self.constraint_matrix = self._encode_constraints(bids, conflicts)

        self.logger.debug("Init preference matrix")
        self.preference_matrix = self._encode_preferences()

        self.assignment_matrix = self._encode_assignments()

        self.logger.debug(
            "Encoded {} papers and {} reviewers, {} excluded pairs".format(
                self.matrix_shape[0],
                self.matrix_shape[1],
                int(np.sum(self.constraint_matrix == -1)),
            )
        )

    def _encode_constraints(self, bids, conflicts):
        """
        return a matrix containing -1 for each excluded pair.
        """
        constraint_matrix = np.full(self.matrix_shape, -1, dtype=int)
        for paper in self.papers:
            for reviewer in eligible_reviewers(paper, self.members, bids, conflicts):
                coordinates = (
                    self.index_by_paper[paper.id],
                    self.index_by_reviewer[reviewer],
                )
                constraint_matrix[coordinates] = 0

        return constraint_matrix

    def _encode_preferences(self):
        """return a matrix containing the preference tier of every pair."""
        preference_matrix = np.full(self.matrix_shape, NO_BID_TIER, dtype=int)
        for paper_id, bids in self.bids_by_paper.items():
            if paper_id not in self.index_by_paper:
                continue
            for reviewer, value in bids.items():
                if reviewer not in self.index_by_reviewer or value == BidValue.CONFLICT:
                    continue
                coordinates = (
                    self.index_by_paper[paper_id],
                    self.index_by_reviewer[reviewer],
                )
                preference_matrix[coordinates] = preference_tier(value)

        return preference_matrix

    def _encode_assignments(self):
        assignment_matrix = np.full(self.matrix_shape, False, dtype=bool)
        for paper_id, reviewers in self.assigned_by_paper.items():
            if paper_id not in self.index_by_paper:
                continue
            for reviewer in reviewers:
                if reviewer in self.index_by_reviewer:
                    assignment_matrix[
                        self.index_by_paper[paper_id], self.index_by_reviewer[reviewer]
                    ] = True

        return assignment_matrix

    def candidates(self, paper_id):
        """
        Return the ids of eligible reviewers not yet assigned to `paper_id`.
        """
        if paper_id not in self.index_by_paper:
            raise EncoderError("Paper {} is not part of this encoding".format(paper_id))

        paper_index = self.index_by_paper[paper_id]
        open_pairs = (self.constraint_matrix[paper_index] == 0) & ~self.assignment_matrix[
            paper_index
        ]
        return [self.reviewers[i] for i in np.flatnonzero(open_pairs)]

    def bids_for(self, paper_id):
        return self.bids_by_paper.get(paper_id, {})

    def decode_assignments(self, assignments):
        """
        Return a dictionary, keyed on paper IDs, with lists containing dicts
        representing assigned users.
        """
        assignments_by_paper = defaultdict(list)

        for assignment in assignments:
            value = self.bids_for(assignment.paper_id).get(assignment.reviewer_id)
            entry = {
                "user": assignment.reviewer_id,
                "assignmentId": assignment.id,
                "bid": value.value if value else None,
            }
            if (
                assignment.paper_id in self.index_by_paper
                and assignment.reviewer_id in self.index_by_reviewer
            ):
                coordinates = (
                    self.index_by_paper[assignment.paper_id],
                    self.index_by_reviewer[assignment.reviewer_id],
                )
                entry["preference"] = int(self.preference_matrix[coordinates])
            assignments_by_paper[assignment.paper_id].append(entry)

        return dict(assignments_by_paper)
