import logging
from collections import Counter


class LoadTracker:
    """
    Run-scoped count of assignments held by each reviewer.

    Seeded with the assignments that exist when a run starts and bumped after
    every successful commit, so papers visited later in the run see the
    reviewers picked earlier as more loaded. Counts never go down during a run.
    """

    def __init__(self, initial_loads=None, logger=logging.getLogger(__name__)):
        self.logger = logger
        self._loads = Counter(initial_loads or {})

    @classmethod
    def from_assignments(cls, assignments, logger=logging.getLogger(__name__)):
        loads = Counter(assignment.reviewer_id for assignment in assignments)
        logger.debug(
            "Seeded load tracker with {} assignments across {} reviewers".format(
                sum(loads.values()), len(loads)
            )
        )
        return cls(loads, logger=logger)

    def current_load(self, reviewer_id):
        return self._loads[reviewer_id]

    def record(self, reviewer_id):
        self._loads[reviewer_id] += 1
        return self._loads[reviewer_id]

    def as_dict(self, reviewers=None):
        if reviewers is None:
            reviewers = sorted(self._loads)
        return {reviewer: self._loads[reviewer] for reviewer in reviewers}
