from flask import current_app, has_app_context

from ..errors import NotFound
from ..models import RecordingStatus
from ..services import repository
from ..services.analysis import analyze_recording


def _run_analyze(recording_id: int):
    # status bookkeeping around the pipeline; the pipeline itself only
    # writes COMPLETED, after the result is stored
    repository.set_recording_status(recording_id, RecordingStatus.ANALYZING)
    try:
        result = analyze_recording(recording_id)
    except Exception as e:
        if isinstance(e, NotFound):
            current_app.logger.warning('analysis of recording %s skipped: %s', recording_id, e)
        else:
            current_app.logger.exception('analysis of recording %s failed', recording_id)
        try:
            repository.set_recording_status(recording_id, RecordingStatus.FAILED)
        except Exception:
            current_app.logger.exception('failed to mark recording %s as FAILED', recording_id)
        # re-raise so RQ records the job failure
        raise
    return result.id


def analyze_recording_job(recording_id: int):
    """Public job entrypoint: ensures execution inside a Flask app context
    so RQ workers can call this function without requiring the caller to
    set up the app context.
    """
    if has_app_context():
        return _run_analyze(recording_id)
    # lazy import to avoid circular imports at module import time
    from app import create_app
    app = create_app()
    with app.app_context():
        return _run_analyze(recording_id)
