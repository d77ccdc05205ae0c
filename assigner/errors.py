"""Failures that can be raised while validating or persisting an assignment."""


class AssignmentError(Exception):
    """Exception wrapper class for errors related to a single assignment."""

    pass


class NotEligible(AssignmentError):
    """The reviewer is an author, is conflicted, or cannot review."""

    pass


class DuplicateAssignment(AssignmentError):
    pass


class CapacityExceeded(AssignmentError):
    """The paper already holds its full quota of reviewers."""

    pass


class PersistenceFailure(AssignmentError):
    """The assignment store could not be reached or refused the write."""

    pass


class AssignmentNotFound(AssignmentError):
    pass


class AssignmentLocked(AssignmentError):
    """The assignment's review was already submitted."""

    pass


class PaperNotFound(AssignmentError):
    pass
