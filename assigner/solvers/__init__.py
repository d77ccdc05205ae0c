"""A module for paper-reviewer assignment solvers"""

from .core import SolverException
from .greedy import GreedySolver, SolverResult
