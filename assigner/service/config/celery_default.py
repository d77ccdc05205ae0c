from kombu import Queue
from kombu.serialization import registry

task_default_queue = "default"
task_queues = (
    Queue("assignment", routing_key="assigner.service.celery_tasks.run_auto_assign"),
    Queue(
        "failure", routing_key="assigner.service.celery_tasks.set_error_status"
    ),
)
task_ignore_result = False
broker_url = "redis://localhost:6379/0"
result_backend = "redis://localhost:6379/0"
# datasources and loggers travel with the task
task_serializer = "pickle"
result_serializer = "pickle"
accept_content = ["pickle", "application/x-python-serialize"]
result_accept_content = ["pickle", "application/x-python-serialize"]
task_create_missing_queues = True

registry.enable("pickle")
registry.enable("application/x-python-serialize")
