"""Reviewer to paper auto-assignment for peer-review conferences."""

from .core import AutoAssigner, AssignerError, AssignerStatus, AutoAssignResult
from .datasource import InMemoryDatasource
from .store import InMemoryAssignmentStore
