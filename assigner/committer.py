import logging

from .errors import AssignmentError, PersistenceFailure
from .models import ReviewStatus


class AssignmentCommitter:
    """
    Persists one (paper, reviewer) pairing at a time.

    The duplicate and capacity checks are delegated to the datasource's
    `create_assignment`, which performs them in the same atomic operation as
    the insert. The quota is re-validated on every commit.

    The committer holds no run-scoped state; callers update their own load
    tracking after a successful commit.
    """

    def __init__(self, datasource, settings, logger=logging.getLogger(__name__)):
        self.datasource = datasource
        self.settings = settings
        self.logger = logger

    def commit(
        self, paper_id, reviewer_id, due_date=None, status=ReviewStatus.NOT_STARTED
    ):
        try:
            assignment = self.datasource.create_assignment(
                paper_id,
                reviewer_id,
                status=status,
                due_date=due_date,
                max_assignments=self.settings.max_reviewers_per_paper,
            )
        except AssignmentError:
            raise
        except Exception as error_handle:
            self.logger.error(
                "Failed to persist assignment paper={} reviewer={}: {}".format(
                    paper_id, reviewer_id, error_handle
                )
            )
            raise PersistenceFailure(str(error_handle)) from error_handle

        self.logger.debug(
            "Committed assignment paper={} reviewer={}".format(paper_id, reviewer_id)
        )
        return assignment
