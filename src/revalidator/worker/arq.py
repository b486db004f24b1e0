from revalidator.worker.routes import worker as sub_worker
from revalidator.worker.worker import Worker

worker = Worker()
worker.include_subworker(sub_worker)


class WorkerSettings:
    functions = worker.functions
    cron_jobs = worker.cron_jobs
    redis_settings = worker.redis_settings
    on_startup = worker.on_startup
    on_shutdown = worker.on_shutdown
    retry_jobs = worker.retry_jobs
    job_timeout = worker.job_timeout
