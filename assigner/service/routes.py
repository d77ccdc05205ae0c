"""
Implements the Flask API endpoints.

Callers are authenticated upstream; the verified user id arrives in the
X-User-Id header. Chair-only endpoints check the caller's capability set for
the paper's conference.
"""
import datetime

import flask
from flask_cors import CORS

from ..core import AssignerError, AssignerStatus, AutoAssigner
from ..errors import (
    AssignmentError,
    AssignmentLocked,
    AssignmentNotFound,
    CapacityExceeded,
    DuplicateAssignment,
    NotEligible,
    PaperNotFound,
)
from ..models import MANAGING_CAPABILITIES, ReviewStatus, assignment_to_json
from ..stats import assignment_stats
from .redis_datasource import RedisDatasource

BLUEPRINT = flask.Blueprint("assign", __name__)
CORS(BLUEPRINT, supports_credentials=True)

USER_HEADER = "X-User-Id"


class AssignerStatusException(Exception):
    """Exception wrapper class for errors related to the status of an auto-assign run"""

    pass


class AuthorizationException(Exception):
    def __init__(self, message, status=403):
        super().__init__(message)
        self.status = status


class BadRequestException(Exception):
    pass


ERROR_STATUS = [
    (AuthorizationException, None),
    (BadRequestException, 400),
    (AssignerStatusException, 400),
    (NotEligible, 400),
    (AssignmentLocked, 400),
    (PaperNotFound, 404),
    (AssignmentNotFound, 404),
    (DuplicateAssignment, 409),
    (CapacityExceeded, 409),
    (AssignmentError, 500),
    (AssignerError, 503),
]


def _error_response(error_handle):
    for error_class, status in ERROR_STATUS:
        if isinstance(error_handle, error_class):
            status = status or error_handle.status
            flask.current_app.logger.error(str(error_handle))
            return (
                flask.jsonify(
                    {"name": error_class.__name__, "error": str(error_handle)}
                ),
                status,
            )

    flask.current_app.logger.exception("Internal server error")
    return (
        flask.jsonify({"error": "Internal server error: {}".format(error_handle)}),
        500,
    )


def _get_datasource():
    datasource = flask.current_app.config.get("DATASOURCE")
    if datasource is None:
        datasource = RedisDatasource(
            url=flask.current_app.config["REDIS_URL"],
            connection_pool=flask.current_app.extensions.get("redis_pool"),
            logger=flask.current_app.logger,
        )
    return datasource


def _current_user():
    user_id = flask.request.headers.get(USER_HEADER)
    if not user_id:
        raise AuthorizationException("No {} in headers".format(USER_HEADER), status=401)
    return user_id


def _require_capability(datasource, conference_id, user_id, capabilities=MANAGING_CAPABILITIES):
    member = next(
        (
            m
            for m in datasource.get_conference_members(conference_id)
            if m.user_id == user_id
        ),
        None,
    )
    if member is None or not member.capabilities & capabilities:
        raise AuthorizationException(
            "User {} may not manage assignments of conference {}".format(
                user_id, conference_id
            )
        )
    return member


def _json_field(name):
    body = flask.request.get_json(silent=True) or {}
    value = body.get(name)
    if value is None:
        raise BadRequestException("{} is required".format(name))
    return value


@BLUEPRINT.route("/assign/test")
def test():
    """Test endpoint."""
    flask.current_app.logger.info("In test")
    return "Reviewer auto-assignment"


@BLUEPRINT.route("/assign/auto", methods=["POST"])
def auto_assign():
    """
    Starts an auto-assign run for a conference.

    Runs are queued by default; with "wait": true in the body the run happens
    inside the request and the result is returned.
    """
    flask.current_app.logger.debug("Auto-assign request received")
    try:
        user_id = _current_user()
        conference_id = _json_field("conferenceId")
        wait = bool((flask.request.get_json(silent=True) or {}).get("wait", False))

        datasource = _get_datasource()
        _require_capability(datasource, conference_id, user_id)

        status = datasource.get_status(conference_id)["status"]
        if status == AssignerStatus.RUNNING.value:
            raise AssignerStatusException(
                "Auto-assign for {} is already running".format(conference_id)
            )
        if status == AssignerStatus.QUEUED.value:
            raise AssignerStatusException(
                "Auto-assign for {} is already in queue".format(conference_id)
            )

        if wait:
            assigner = AutoAssigner(datasource, logger=flask.current_app.logger)
            result = assigner.run(conference_id)
            return flask.jsonify(result.as_dict()), 200

        datasource.set_status(conference_id, AssignerStatus.QUEUED)

        from .celery_tasks import run_auto_assign

        run_auto_assign.apply_async(
            kwargs={
                "datasource": datasource,
                "conference_id": conference_id,
                "logger": flask.current_app.logger,
            },
            queue="assignment",
            ignore_result=False,
        )

        flask.current_app.logger.debug(
            "Auto-assign for conference has been queued: {}".format(conference_id)
        )
        return flask.jsonify({"status": AssignerStatus.QUEUED.value}), 202

    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assign/auto/<path:conference_id>/status", methods=["GET"])
def auto_assign_status(conference_id):
    try:
        user_id = _current_user()
        datasource = _get_datasource()
        _require_capability(datasource, conference_id, user_id)
        return flask.jsonify(datasource.get_status(conference_id)), 200
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assignments", methods=["POST"])
def create_assignment():
    try:
        user_id = _current_user()
        paper_id = _json_field("paperId")
        reviewer_id = _json_field("reviewerId")

        due_date = (flask.request.get_json(silent=True) or {}).get("dueDate")
        if due_date:
            try:
                due_date = datetime.datetime.fromisoformat(due_date)
            except ValueError:
                raise BadRequestException("dueDate must be an ISO 8601 date")

        datasource = _get_datasource()
        paper = datasource.get_paper(paper_id)
        _require_capability(datasource, paper.conference_id, user_id)

        assigner = AutoAssigner(datasource, logger=flask.current_app.logger)
        assignment = assigner.propose_assignment(
            paper_id, reviewer_id, due_date=due_date or None
        )
        return flask.jsonify(assignment_to_json(assignment)), 201
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assignments/<assignment_id>", methods=["DELETE"])
def delete_assignment(assignment_id):
    try:
        user_id = _current_user()
        datasource = _get_datasource()
        assignment = datasource.get_assignment(assignment_id)
        paper = datasource.get_paper(assignment.paper_id)
        _require_capability(datasource, paper.conference_id, user_id)

        AutoAssigner(datasource, logger=flask.current_app.logger).delete_assignment(
            assignment_id
        )
        return flask.jsonify({"message": "Assignment deleted"}), 200
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assignments/<assignment_id>/status", methods=["PATCH"])
def update_assignment_status(assignment_id):
    try:
        user_id = _current_user()
        try:
            status = ReviewStatus(_json_field("status"))
        except ValueError:
            raise BadRequestException(
                "Invalid status. Must be one of: {}".format(
                    ", ".join(s.value for s in ReviewStatus)
                )
            )

        datasource = _get_datasource()
        assignment = datasource.get_assignment(assignment_id)
        if assignment.reviewer_id != user_id:
            paper = datasource.get_paper(assignment.paper_id)
            _require_capability(datasource, paper.conference_id, user_id)

        assignment = AutoAssigner(
            datasource, logger=flask.current_app.logger
        ).update_assignment_status(assignment_id, status)
        return flask.jsonify(assignment_to_json(assignment)), 200
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assignments/papers/<paper_id>", methods=["GET"])
def paper_assignments(paper_id):
    try:
        user_id = _current_user()
        datasource = _get_datasource()
        paper = datasource.get_paper(paper_id)
        _require_capability(datasource, paper.conference_id, user_id)

        assignments = datasource.get_assignments_for_paper(paper_id)
        return flask.jsonify([assignment_to_json(a) for a in assignments]), 200
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/assignments/my", methods=["GET"])
def my_assignments():
    try:
        user_id = _current_user()
        assignments = _get_datasource().get_assignments_for_reviewer(user_id)
        return flask.jsonify([assignment_to_json(a) for a in assignments]), 200
    except Exception as error_handle:
        return _error_response(error_handle)


@BLUEPRINT.route("/conferences/<path:conference_id>/assignment-stats", methods=["GET"])
def conference_assignment_stats(conference_id):
    try:
        user_id = _current_user()
        datasource = _get_datasource()
        _require_capability(datasource, conference_id, user_id)
        return flask.jsonify(assignment_stats(datasource, conference_id)), 200
    except Exception as error_handle:
        return _error_response(error_handle)
