from collections import namedtuple
import logging

from ..errors import AssignmentError, CapacityExceeded, DuplicateAssignment
from ..models import Shortfall
from ..preferences import rank
from .core import SolverException

SolverResult = namedtuple(
    "SolverResult", ["assignments", "unsatisfied", "skipped", "failures", "duplicates"]
)


class GreedySolver(object):
    """
    Assign reviewers to papers in a single greedy pass.

    Papers are visited most under-served first (ascending current assignment
    count, ties by paper id). Each paper asks for the reviewers it still needs,
    `max_reviewers_per_paper` minus its current count, and takes them from the
    top of its candidate ranking: eligible reviewers not yet on the paper,
    ordered by bid tier, then by current load, then by reviewer id.

    Every pick is committed immediately and recorded in the load tracker, so
    a reviewer picked for one paper ranks lower on the next paper of the same
    tier. Nothing already placed is ever revisited. This is a heuristic, not
    an optimal matching.

    Commit failures never abort the pass:
    - DuplicateAssignment: the pair appeared concurrently; reported in
      `duplicates` rather than `failures`; try the next candidate.
    - CapacityExceeded: the paper filled concurrently; move to the next paper.
    - PersistenceFailure, or any other assignment error: counted in
      `failures`; try the next candidate.

    Papers that end the pass with fewer reviewers than they needed are reported
    as shortfalls.
    """

    def __init__(
        self,
        encoder,
        max_reviewers_per_paper,
        load_tracker,
        committer,
        logger=logging.getLogger(__name__),
    ):
        self.logger = logger
        self.logger.debug("Init GreedySolver")

        if max_reviewers_per_paper < 1:
            raise SolverException(
                "max_reviewers_per_paper must be at least 1, got {}".format(
                    max_reviewers_per_paper
                )
            )

        self.encoder = encoder
        self.max_reviewers_per_paper = max_reviewers_per_paper
        self.load_tracker = load_tracker
        self.committer = committer

        self.solved = False
        self.logger.debug("End Init GreedySolver")

    def _fill_paper(self, paper, need, assignments, failures, duplicates):
        """
        Commit up to `need` of the paper's best candidates.

        Returns the shortfall, or 0 when the paper ended up at quota.
        """
        candidates = self.encoder.candidates(paper.id)
        ranked = rank(candidates, self.encoder.bids_for(paper.id), self.load_tracker)

        self.logger.debug(
            "Paper {} needs {} reviewers, {} candidates".format(
                paper.id, need, len(ranked)
            )
        )

        placed = 0
        for reviewer in ranked:
            if placed == need:
                break

            try:
                assignment = self.committer.commit(paper.id, reviewer)
            except DuplicateAssignment as error_handle:
                self.logger.info(
                    "Skipping reviewer {}: {}".format(reviewer, error_handle)
                )
                duplicates.append({"paperId": paper.id, "reviewerId": reviewer})
                continue
            except CapacityExceeded as error_handle:
                self.logger.info(
                    "Paper {} filled concurrently: {}".format(paper.id, error_handle)
                )
                return 0
            except AssignmentError as error_handle:
                self.logger.warning(
                    "Commit failed for paper {} reviewer {}: {}".format(
                        paper.id, reviewer, error_handle
                    )
                )
                failures.append(
                    {
                        "paperId": paper.id,
                        "reviewerId": reviewer,
                        "error": str(error_handle),
                    }
                )
                continue

            self.load_tracker.record(reviewer)
            assignments.append(assignment)
            placed += 1

        return need - placed

    def solve(self):
        """
        Run the greedy pass over every encoded paper.

        :return: a SolverResult with the created assignments, the shortfalls,
            the ids of papers skipped because they were already at quota, the
            commit failures, and the pairs skipped as duplicates.
        """
        assignments = []
        unsatisfied = []
        skipped = []
        failures = []
        duplicates = []

        for paper in self.encoder.papers:
            need = self.max_reviewers_per_paper - paper.assignment_count
            if need <= 0:
                skipped.append(paper.id)
                continue

            shortfall = self._fill_paper(
                paper, need, assignments, failures, duplicates
            )
            if shortfall > 0:
                self.logger.info(
                    "Paper {} is short of {} reviewers".format(paper.id, shortfall)
                )
                unsatisfied.append(Shortfall(paper.id, shortfall))

        self.solved = True
        self.logger.debug(
            "Greedy pass created {} assignments, {} papers unsatisfied, {} failures".format(
                len(assignments), len(unsatisfied), len(failures)
            )
        )
        return SolverResult(assignments, unsatisfied, skipped, failures, duplicates)
