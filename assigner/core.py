"""Contains core assigner functions and classes."""
import datetime
import logging
import time
from collections import namedtuple
from enum import Enum

from redis.exceptions import RedisError

from .committer import AssignmentCommitter
from .eligibility import check_eligibility
from .encoder import Encoder
from .errors import AssignmentLocked, NotEligible
from .load_tracker import LoadTracker
from .models import ReviewStatus, assignment_to_json
from .solvers import GreedySolver

SOLVER_MAP = {
    "Greedy": GreedySolver,
}

# failures to reach a datastore, reported as AssignerError
STORAGE_ERRORS = (RedisError, ConnectionError, TimeoutError)


class AssignerStatus(Enum):
    INITIALIZED = "Initialized"
    QUEUED = "Queued"
    RUNNING = "Running"
    COMPLETE = "Complete"
    ERROR = "Error"


class AssignerError(Exception):
    """The conference data or the run status could not be read or written."""

    pass


class AutoAssignResult(
    namedtuple(
        "AutoAssignResult",
        [
            "conference_id",
            "assignments",
            "unsatisfied_papers",
            "skipped_papers",
            "failures",
            "duplicates",
            "reviewer_loads",
            "assignments_by_paper",
        ],
    )
):
    __slots__ = ()

    @property
    def total_assigned(self):
        return len(self.assignments)

    def as_dict(self):
        return {
            "conferenceId": self.conference_id,
            "totalAssigned": self.total_assigned,
            "totalFailed": len(self.failures),
            "unsatisfiedPapers": [
                {"paperId": s.paper_id, "shortfall": s.shortfall}
                for s in self.unsatisfied_papers
            ],
            "skippedPapers": list(self.skipped_papers),
            "failures": list(self.failures),
            "duplicates": list(self.duplicates),
            "assignments": [assignment_to_json(a) for a in self.assignments],
            "assigned": self.assignments_by_paper,
            "reviewerLoads": [
                {"reviewerId": reviewer, "assignedPapers": load}
                for reviewer, load in self.reviewer_loads.items()
            ],
        }


class AutoAssigner:
    """
    Main class that coordinates a datasource, an Encoder and a Solver.

    The datasource supplies the conference snapshot and persists assignments
    (see InMemoryDatasource for the methods it must provide).
    """

    def __init__(
        self,
        datasource,
        solver_class="Greedy",
        logger=logging.getLogger(__name__),
    ):
        self.datasource = datasource
        self.logger = logger
        self.solver_class = SOLVER_MAP.get(solver_class, GreedySolver)

    def set_status(self, conference_id, status, message=None, additional_status_info={}):
        self.datasource.set_status(
            conference_id,
            status,
            message=message,
            additional_status_info=additional_status_info,
        )

    def _load_conference(self, conference_id):
        try:
            settings = self.datasource.get_conference_settings(conference_id)
            members = self.datasource.get_conference_members(conference_id)
            bids = self.datasource.get_bids(conference_id)
            conflicts = self.datasource.get_conflicts(conference_id)
            papers = self.datasource.get_papers_needing_review(conference_id)
            assignments = self.datasource.get_assignments(conference_id)
        except Exception as error_handle:
            raise AssignerError(
                "Could not load conference {}: {}".format(conference_id, error_handle)
            ) from error_handle

        self.logger.info(
            "Loaded conference {}: {} papers, {} members, {} bids, {} conflicts, {} assignments".format(
                conference_id,
                len(papers),
                len(members),
                len(bids),
                len(conflicts),
                len(assignments),
            )
        )
        return settings, members, bids, conflicts, papers, assignments

    def _set_error_status(self, conference_id, error_handle):
        self.logger.error(
            "Auto-assign for conference {} failed: {}".format(conference_id, error_handle)
        )
        try:
            self.set_status(conference_id, AssignerStatus.ERROR, message=str(error_handle))
        except Exception as status_error:
            self.logger.error(
                "Could not set Error status for conference {}: {}".format(
                    conference_id, status_error
                )
            )

    def run(self, conference_id):
        """
        Auto-assign reviewers to every under-served paper of the conference.

        Shortfalls, duplicates and individual commit failures are reported in
        the result. Failing to reach the datastore raises AssignerError; any
        other error is re-raised. Either way the run status is set to Error.
        Once assignments are committed the result is always returned, even
        when the Complete status cannot be written.
        """
        try:
            self.set_status(conference_id, AssignerStatus.RUNNING)

            settings, members, bids, conflicts, papers, assignments = self._load_conference(
                conference_id
            )

            self.logger.debug("Start encoding")
            encoder = Encoder(
                papers, members, bids, conflicts, assignments, logger=self.logger
            )

            load_tracker = LoadTracker.from_assignments(assignments, logger=self.logger)
            committer = AssignmentCommitter(self.datasource, settings, logger=self.logger)

            self.logger.debug("Preparing solver")
            solver = self.solver_class(
                encoder,
                settings.max_reviewers_per_paper,
                load_tracker,
                committer,
                logger=self.logger,
            )

            start_time = time.time()
            self.logger.debug("Solving solver")
            solution = solver.solve()
            self.logger.debug(
                "Complete solver run took {} seconds".format(time.time() - start_time)
            )

            result = AutoAssignResult(
                conference_id=conference_id,
                assignments=solution.assignments,
                unsatisfied_papers=solution.unsatisfied,
                skipped_papers=solution.skipped,
                failures=solution.failures,
                duplicates=solution.duplicates,
                reviewer_loads=load_tracker.as_dict(encoder.reviewers),
                assignments_by_paper=encoder.decode_assignments(solution.assignments),
            )

        except STORAGE_ERRORS as error_handle:
            error = AssignerError(
                "Could not reach the datastore for conference {}: {}".format(
                    conference_id, error_handle
                )
            )
            self._set_error_status(conference_id, error)
            raise error from error_handle
        except Exception as error_handle:
            self._set_error_status(conference_id, error_handle)
            raise

        try:
            self.set_status(
                conference_id,
                AssignerStatus.COMPLETE,
                message="",
                additional_status_info={
                    "totalAssigned": result.total_assigned,
                    "totalFailed": len(result.failures),
                    "unsatisfiedPapers": len(result.unsatisfied_papers),
                },
            )
        except Exception as error_handle:
            self.logger.error(
                "Could not set Complete status for conference {} after {} assignments: {}".format(
                    conference_id, result.total_assigned, error_handle
                )
            )

        return result

    def propose_assignment(self, paper_id, reviewer_id, due_date=None):
        """
        Validate and create a single assignment, as a chair would manually.

        Eligibility is checked against fresh data, then the pairing goes
        through the same committer as auto-assign runs, so the quota and
        uniqueness guarantees hold regardless of entry point. Without an
        explicit `due_date` the assignment is due `assignment_timeout_days`
        from now.
        """
        paper = self.datasource.get_paper(paper_id)
        conference_id = paper.conference_id

        members = self.datasource.get_conference_members(conference_id)
        bids = [
            bid
            for bid in self.datasource.get_bids(conference_id)
            if bid.paper_id == paper_id and bid.reviewer_id == reviewer_id
        ]
        check_eligibility(paper, reviewer_id, members, bids, [])

        if self.datasource.has_conflict(paper_id, reviewer_id):
            raise NotEligible(
                "Reviewer {} declared a conflict of interest with paper {}".format(
                    reviewer_id, paper_id
                )
            )

        settings = self.datasource.get_conference_settings(conference_id)
        if due_date is None:
            due_date = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
                days=settings.assignment_timeout_days
            )

        committer = AssignmentCommitter(self.datasource, settings, logger=self.logger)
        assignment = committer.commit(paper_id, reviewer_id, due_date=due_date)
        self.logger.info(
            "Manual assignment {} created for paper {} and reviewer {}".format(
                assignment.id, paper_id, reviewer_id
            )
        )
        return assignment

    def delete_assignment(self, assignment_id):
        assignment = self.datasource.get_assignment(assignment_id)

        if assignment.status == ReviewStatus.SUBMITTED:
            raise AssignmentLocked(
                "Cannot delete assignment {} with submitted review".format(assignment_id)
            )

        self.datasource.delete_assignment(assignment_id)
        self.logger.info("Deleted assignment {}".format(assignment_id))
        return assignment

    def update_assignment_status(self, assignment_id, status):
        if not isinstance(status, ReviewStatus):
            status = ReviewStatus(status)
        return self.datasource.update_assignment_status(assignment_id, status)
