import logging

from redis.exceptions import ConnectionError as RedisConnectionError

from assigner import AutoAssigner
from assigner.core import AssignerError, AssignerStatus
from assigner.service.server import celery_app as celery

RETRYABLE_ERRORS = (RedisConnectionError, ConnectionError)


def on_task_failure(self, exc, task_id, args, kwargs, einfo):
    if kwargs:
        logger = kwargs["logger"]
        logger.warning(
            "{} task for conference {} failed.".format(
                self.name, kwargs["conference_id"]
            )
        )
        set_error_status.apply_async(
            kwargs={
                "datasource": kwargs["datasource"],
                "conference_id": kwargs["conference_id"],
                "logger": logger,
                "exc": exc,
            },
            queue="failure",
            ignore_result=True,
        )


@celery.task(
    name="error_status",
    track_started=True,
    bind=True,
    time_limit=3600,
    autoretry_for=(Exception,),
    retry_backoff=10,
    max_retries=15,
    retry_jitter=True,
)
def set_error_status(self, datasource, conference_id, logger, exc):
    logger.info(
        "Setting auto-assign status for conference {} to Error.".format(conference_id)
    )
    datasource.set_status(conference_id, AssignerStatus.ERROR, message=str(type(exc)))


@celery.task(
    name="auto_assign",
    track_started=True,
    bind=True,
    time_limit=3600,
    on_failure=on_task_failure,
)
def run_auto_assign(self, datasource, conference_id, logger: logging.Logger):
    logger.debug(
        "{} task received for conference {}".format(self.name, conference_id)
    )
    assigner = AutoAssigner(datasource=datasource, logger=logger)
    try:
        result = assigner.run(conference_id)
        return result.as_dict()
    except AssignerError as exc:
        if isinstance(exc.__cause__, RETRYABLE_ERRORS):
            raise self.retry(
                exc=exc, countdown=300 * (self.request.retries + 1), max_retries=3
            )
        raise
