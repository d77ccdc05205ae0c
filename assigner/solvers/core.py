class SolverException(Exception):
    """Exception wrapper class for errors related to a Solver"""

    pass
