"""
In-process assignment storage.

Check-and-insert runs under a single lock so a manual assignment and an
auto-assign run racing on the same (paper, reviewer) pair cannot both win.
"""

import datetime
import logging
import threading
import uuid
from collections import OrderedDict

from .errors import (
    AssignmentNotFound,
    CapacityExceeded,
    DuplicateAssignment,
)
from .models import Assignment, ReviewStatus


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class InMemoryAssignmentStore:
    def __init__(self, assignments=None, logger=logging.getLogger(__name__)):
        self.logger = logger
        self._lock = threading.Lock()
        self._by_id = OrderedDict()
        self._id_by_pair = {}

        for assignment in assignments or []:
            self._insert(assignment)

    def _insert(self, assignment):
        self._by_id[assignment.id] = assignment
        self._id_by_pair[(assignment.paper_id, assignment.reviewer_id)] = assignment.id

    def _count_for_paper(self, paper_id):
        return sum(1 for a in self._by_id.values() if a.paper_id == paper_id)

    def create(
        self,
        paper_id,
        reviewer_id,
        status=ReviewStatus.NOT_STARTED,
        due_date=None,
        max_assignments=None,
    ):
        """
        Atomically insert a new assignment.

        Raises DuplicateAssignment if the pair exists, and CapacityExceeded if
        `max_assignments` is given and the paper already holds that many.
        """
        with self._lock:
            if (paper_id, reviewer_id) in self._id_by_pair:
                raise DuplicateAssignment(
                    "Assignment already exists for paper {} and reviewer {}".format(
                        paper_id, reviewer_id
                    )
                )

            if max_assignments is not None:
                current = self._count_for_paper(paper_id)
                if current >= max_assignments:
                    raise CapacityExceeded(
                        "Paper {} already has {} of {} reviewers".format(
                            paper_id, current, max_assignments
                        )
                    )

            assignment = Assignment(
                id=uuid.uuid4().hex,
                paper_id=paper_id,
                reviewer_id=reviewer_id,
                status=status,
                due_date=due_date,
                created_at=_utcnow(),
            )
            self._insert(assignment)

        self.logger.debug(
            "Stored assignment {} (paper={}, reviewer={})".format(
                assignment.id, paper_id, reviewer_id
            )
        )
        return assignment

    def get(self, assignment_id):
        try:
            return self._by_id[assignment_id]
        except KeyError:
            raise AssignmentNotFound("Assignment {} not found".format(assignment_id))

    def delete(self, assignment_id):
        with self._lock:
            assignment = self.get(assignment_id)
            del self._by_id[assignment_id]
            del self._id_by_pair[(assignment.paper_id, assignment.reviewer_id)]
        return assignment

    def update_status(self, assignment_id, status):
        with self._lock:
            assignment = self.get(assignment_id)._replace(status=status)
            self._by_id[assignment_id] = assignment
        return assignment

    def all(self):
        with self._lock:
            return list(self._by_id.values())

    def for_paper(self, paper_id):
        return [a for a in self.all() if a.paper_id == paper_id]

    def for_reviewer(self, reviewer_id):
        return [a for a in self.all() if a.reviewer_id == reviewer_id]
