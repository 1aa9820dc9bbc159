"""Analysis orchestration: fan a transcript out to the four analyzers,
join them, aggregate confidence and store the combined result.

The analyzers run on a thread pool because each one may block on a
completion request. They never raise provider errors; the only failures that
escape a branch are cancellation and programming errors, and both are fatal
to the whole call. Nothing is written unless every branch finished.
"""

import threading
import time
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from ..errors import AnalysisCancelled, NotFound
from ..models import RecordingStatus
from . import repository
from .action_items import extract_action_items
from .completion import provider_from_config
from .confidence import aggregate_confidence
from .opportunities import detect_opportunities
from .process_adherence import score_process_adherence
from .results import AnalysisReport
from .sentiment import analyze_sentiment

# share of the analysis deadline a single completion call may spend
BRANCH_BUDGET_SHARE = 0.75
# how often the join re-checks the caller's cancellation event
JOIN_POLL_SEC = 0.1


def _in_app_context(app, func, *args):
    with app.app_context():
        return func(*args)


class AnalysisOrchestrator:
    """Runs one analysis per ``analyze`` call.

    ``provider`` is the completion capability; ``None`` runs every analyzer
    in heuristic-only mode. ``timeout`` is the default deadline in seconds
    for the whole fan-out (``None`` waits indefinitely).
    """

    def __init__(self, provider=None, timeout=None):
        self.provider = provider
        self.timeout = timeout

    def run_analyzers(self, transcript, template=None, timeout=None, cancel_event=None) -> AnalysisReport:
        app = current_app._get_current_object()
        deadline = timeout if timeout is not None else self.timeout
        cancel = cancel_event or threading.Event()
        branch_budget = deadline * BRANCH_BUDGET_SHARE if deadline is not None else None
        provider = self.provider.bound_to(cancel, budget=branch_budget) if self.provider is not None else None

        pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="analysis")
        try:
            f_sentiment = pool.submit(_in_app_context, app, analyze_sentiment, transcript, provider)
            f_opportunities = pool.submit(_in_app_context, app, detect_opportunities, transcript, provider)
            f_process = None
            if template is not None:
                f_process = pool.submit(_in_app_context, app, score_process_adherence, transcript, template, provider)
            f_actions = pool.submit(_in_app_context, app, extract_action_items, transcript, provider)

            pending = {f for f in (f_sentiment, f_opportunities, f_process, f_actions) if f is not None}
            started = time.monotonic()
            while pending:
                if cancel.is_set():
                    raise AnalysisCancelled("analysis cancelled by caller")
                wait_for = JOIN_POLL_SEC
                if deadline is not None:
                    remaining = deadline - (time.monotonic() - started)
                    if remaining <= 0:
                        cancel.set()
                        raise AnalysisCancelled(f"analysis exceeded its {deadline}s deadline")
                    wait_for = min(wait_for, remaining)
                _, pending = futures.wait(pending, timeout=wait_for)

            sentiment = f_sentiment.result()
            opportunities = f_opportunities.result()
            process_score = f_process.result() if f_process is not None else None
            action_items = f_actions.result()
        except BaseException:
            # stop in-flight provider retries; their results are discarded
            cancel.set()
            raise
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return AnalysisReport(
            sentiment=sentiment,
            opportunities=opportunities,
            process_score=process_score,
            action_items=action_items,
            confidence=aggregate_confidence(sentiment, opportunities, process_score),
        )

    def analyze(self, recording_id: int, timeout=None, cancel_event=None):
        logger = current_app.logger
        ctx = repository.get_recording_with_context(recording_id)
        if ctx is None:
            raise NotFound("Recording not found")
        if ctx.transcript is None:
            raise NotFound("Transcription not found for this recording")

        if ctx.template is None:
            logger.info("analysis of recording %s: no active process template", recording_id)
        else:
            logger.info("analysis of recording %s: scoring against template %r", recording_id, ctx.template.name)

        report = self.run_analyzers(ctx.transcript, ctx.template, timeout=timeout, cancel_event=cancel_event)

        result = repository.upsert_analysis_result(recording_id, report)
        repository.set_recording_status(recording_id, RecordingStatus.COMPLETED)
        logger.info("analysis of recording %s stored (confidence=%.3f)", recording_id, result.confidence)
        return result


def build_orchestrator(config=None) -> AnalysisOrchestrator:
    config = config if config is not None else current_app.config
    return AnalysisOrchestrator(
        provider=provider_from_config(config),
        timeout=config.get("ANALYSIS_TIMEOUT_SEC"),
    )


def analyze_recording(recording_id: int, timeout=None):
    """Service entry point: analyze a recording with the app's configured provider."""
    return build_orchestrator().analyze(recording_id, timeout=timeout)
