from flask_sqlalchemy import SQLAlchemy
from redis import Redis
from rq import Queue
from flask import current_app

# RQ options that are not arguments of the job function itself
RQ_KEYS = {'job_timeout', 'timeout', 'at_front', 'depends_on', 'result_ttl', 'ttl', 'meta', 'description'}


class RQWrapper:
    def __init__(self):
        self.redis = None
        self.queue = None

    def init_app(self, app):
        try:
            self.redis = Redis.from_url(app.config.get("REDIS_URL"))
            self.redis.ping()
            self.queue = Queue(app.config.get("ANALYSIS_QUEUE", "default"), connection=self.redis)
        except Exception:
            # if Redis is not available (dev machine, no redis server),
            # leave queue as None and fall back to synchronous execution
            app.logger.warning('Redis/RQ init failed, falling back to sync execution')
            self.redis = None
            self.queue = None

    def _run_sync(self, args, kwargs):
        func = args[0] if args else None
        func_args = args[1:] if len(args) > 1 else ()
        safe_kwargs = {k: v for k, v in kwargs.items() if k not in RQ_KEYS}
        if func is None:
            return None
        return func(*func_args, **safe_kwargs)

    def enqueue(self, *args, **kwargs):
        """Enqueue to RQ when available, otherwise run the job inline.

        Returns the RQ job, or the job function's return value when it ran
        synchronously.
        """
        if not self.queue:
            return self._run_sync(args, kwargs)
        try:
            return self.queue.enqueue(*args, **kwargs)
        except Exception:
            # If enqueue fails due to Redis being down, fall back to sync execution.
            current_app.logger.exception('RQ enqueue failed, falling back to sync execution')
            return self._run_sync(args, kwargs)


db = SQLAlchemy()
rq = RQWrapper()
