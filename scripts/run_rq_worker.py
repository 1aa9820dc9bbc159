"""Run an RQ worker for analysis jobs inside the Flask app context.

Usage:
  source .venv/bin/activate
  export OBJC_DISABLE_INITIALIZE_FORK_SAFETY=YES   # macOS fork safety if needed
  python scripts/run_rq_worker.py [--burst]

The worker listens on the queue the API enqueues to (ANALYSIS_QUEUE) over the
connection the app already opened, so analysis jobs find `current_app` and the
Flask-SQLAlchemy session ready. Analysis jobs are never deferred, so no
scheduler runs alongside the worker.
"""

import sys
import os

# Ensure project root is on sys.path when running from scripts/ or other cwd
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from rq import Worker

from app import create_app
from app.extensions import rq


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    app = create_app()
    if rq.queue is None:
        app.logger.error('no redis at %s; analysis runs inline, nothing to work on', app.config.get('REDIS_URL'))
        return 1
    with app.app_context():
        worker = Worker([rq.queue], connection=rq.redis)
        app.logger.info('RQ worker on queue %r starting (pid %s)', rq.queue.name, os.getpid())
        try:
            worker.work(burst='--burst' in argv, logging_level='INFO')
        finally:
            app.logger.info('RQ worker exiting (pid %s)', os.getpid())
    return 0


if __name__ == '__main__':
    sys.exit(main())
