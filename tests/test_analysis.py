import json
import threading
import time

import pytest
from sqlalchemy import update
from conftest import ACTION_ITEMS, OPPORTUNITIES, SENTIMENT, FakeProvider

from app.errors import AnalysisCancelled, NotFound, PersistenceError, ProviderError
from app.extensions import db
from app.models import AnalysisResult, Recording, RecordingStatus
from app.services import analysis, completion, repository
from app.services.analysis import AnalysisOrchestrator, analyze_recording
from app.services.completion import CompletionProvider
from app.services.heuristics import DEGRADED_NOTE

SALES_STEPS = [
    {'name': 'Greeting', 'keywords': ['hello', 'welcome']},
    {'name': 'Pricing', 'keywords': ['price', 'plan', 'budget', 'discount']},
    {'name': 'Close', 'keywords': ['contract', 'sign']},
]


def _status(recording_id):
    return db.session.get(Recording, recording_id).status


def test_end_to_end_without_provider_or_template(seed):
    rid = seed("Let's talk about the price and I'll follow up next week")
    result = analyze_recording(rid)

    assert result.recording_id == rid
    assert result.sentiment['overall'] == 'neutral'
    assert sorted(o['type'] for o in result.sales_opportunities) == ['follow-up', 'upsell']
    assert result.process_score is None
    assert len(result.action_items) == 1
    assert result.action_items[0]['category'] == 'task'
    assert result.confidence == pytest.approx((0 + 0.65 + 0.5) / 3)
    assert _status(rid) == RecordingStatus.COMPLETED


def test_template_produces_process_score(seed):
    rid = seed('Hello and welcome. Our plan has a fair price.', templates=[{'steps': SALES_STEPS}])
    result = analyze_recording(rid)

    ps = result.process_score
    assert ps['totalSteps'] == 3
    assert [s['score'] for s in ps['stepScores']] == [100, 50, 0]
    assert ps['completedSteps'] == 2
    assert ps['overallScore'] == 50
    assert ps['missedSteps'] == ['Close']
    assert ps['recommendations'] == ["Ensure to cover the 'Close' step in future conversations."]
    assert result.confidence == pytest.approx((0 + 0.6 + 0.5) / 3)


def test_inactive_templates_are_ignored(seed):
    rid = seed('hello', templates=[{'steps': SALES_STEPS, 'is_active': False}])
    assert analyze_recording(rid).process_score is None


def test_any_active_template_is_acceptable(seed):
    rid = seed('hello and welcome', templates=[
        {'name': 'A', 'steps': SALES_STEPS},
        {'name': 'B', 'steps': [{'name': 'Greeting', 'keywords': ['hello']}]},
    ])
    result = analyze_recording(rid)
    assert result.process_score['totalSteps'] in (len(SALES_STEPS), 1)


def test_reanalysis_overwrites_single_row(seed):
    rid = seed('great, excellent, the cost works, next steps please', templates=[{'steps': SALES_STEPS}])
    first = analyze_recording(rid).to_dict()
    second = analyze_recording(rid).to_dict()
    third = analyze_recording(rid).to_dict()

    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True) == json.dumps(third, sort_keys=True)
    assert AnalysisResult.query.filter_by(recording_id=rid).count() == 1


def test_reanalysis_replaces_every_field(seed):
    rid = seed('the price is great and excellent', templates=[{'steps': SALES_STEPS}])
    analyze_recording(rid)

    provider = FakeProvider({
        SENTIMENT: {'overall': 'negative', 'score': -0.2},
        OPPORTUNITIES: {'opportunities': []},
        ACTION_ITEMS: {'actionItems': [{'title': 'Call back'}]},
    })
    db.session.execute(update(Recording).where(Recording.id == rid).values(status=RecordingStatus.ANALYZING))
    db.session.commit()
    result = AnalysisOrchestrator(provider=provider).analyze(rid)

    assert result.sentiment['overall'] == 'negative'
    assert result.sales_opportunities == []
    assert [a['title'] for a in result.action_items] == ['Call back']
    assert result.confidence == pytest.approx(max(0.0, (-0.2 + 0 + result.process_score['overallScore'] / 100) / 3))
    assert AnalysisResult.query.count() == 1
    assert _status(rid) == RecordingStatus.COMPLETED


def test_missing_recording(app):
    with pytest.raises(NotFound, match='Recording not found'):
        analyze_recording(999)


def test_missing_transcript(seed):
    rid = seed(with_transcript=False)
    with pytest.raises(NotFound, match='Transcription not found'):
        analyze_recording(rid)
    assert AnalysisResult.query.count() == 0
    assert _status(rid) == RecordingStatus.PENDING


def test_branches_run_concurrently(seed):
    # three provider-backed branches must all be inside complete() at once
    barrier = threading.Barrier(3, timeout=5)
    provider = FakeProvider({
        SENTIMENT: {'overall': 'positive', 'score': 0.9},
        OPPORTUNITIES: {'opportunities': [{'type': 'expansion', 'confidence': 0.6}]},
        ACTION_ITEMS: {'actionItems': [{'title': 'Send deck'}]},
    }, before_reply=lambda p: barrier.wait())
    rid = seed('plain transcript')
    result = AnalysisOrchestrator(provider=provider).analyze(rid)

    assert result.sentiment['overall'] == 'positive'
    assert result.sentiment['keyPhrases'] == []
    assert [o['type'] for o in result.sales_opportunities] == ['expansion']
    assert [a['title'] for a in result.action_items] == ['Send deck']
    assert result.confidence == pytest.approx((0.9 + 0.6 + 0.5) / 3)


def test_provider_failures_degrade_each_branch(seed):
    rid = seed('price talk', templates=[{'steps': SALES_STEPS}])
    result = AnalysisOrchestrator(provider=FakeProvider(error=ProviderError('HTTP 503'))).analyze(rid)

    assert result.sentiment['keyPhrases'] == [DEGRADED_NOTE]
    assert [o['type'] for o in result.sales_opportunities] == ['upsell']
    assert result.process_score['recommendations'][0].startswith('Ensure to cover')
    assert len(result.action_items) == 1
    assert _status(rid) == RecordingStatus.COMPLETED


def test_deadline_cancels_and_writes_nothing(seed):
    def stall(p):
        # behaves like a provider waiting on the network until cancelled
        if p.cancel_event.wait(5):
            raise AnalysisCancelled('cancelled mid-request')

    rid = seed('slow call')
    started = time.monotonic()
    with pytest.raises(AnalysisCancelled):
        AnalysisOrchestrator(provider=FakeProvider(before_reply=stall)).analyze(rid, timeout=0.2)
    assert time.monotonic() - started < 3
    assert AnalysisResult.query.count() == 0
    assert _status(rid) == RecordingStatus.PENDING


def test_caller_cancellation(seed):
    cancel = threading.Event()

    def stall(p):
        cancel.set()
        if p.cancel_event.wait(5):
            raise AnalysisCancelled('cancelled mid-request')

    rid = seed('slow call')
    with pytest.raises(AnalysisCancelled):
        AnalysisOrchestrator(provider=FakeProvider(before_reply=stall)).analyze(rid, cancel_event=cancel)
    assert AnalysisResult.query.count() == 0


def test_failed_upsert_leaves_status_unchanged(seed, monkeypatch):
    rid = seed('hello')
    status_calls = []

    def broken_upsert(recording_id, report):
        raise PersistenceError('disk full')

    monkeypatch.setattr(repository, 'upsert_analysis_result', broken_upsert)
    monkeypatch.setattr(repository, 'set_recording_status', lambda *a: status_calls.append(a))
    with pytest.raises(PersistenceError):
        analyze_recording(rid)
    assert status_calls == []
    assert _status(rid) == RecordingStatus.PENDING


def test_orchestrator_uses_configured_provider(app, monkeypatch):
    app.config['OPENAI_API_KEY'] = 'sk-test'
    app.config['ANALYSIS_TIMEOUT_SEC'] = 42
    orchestrator = analysis.build_orchestrator()
    assert orchestrator.provider is not None
    assert orchestrator.provider.api_key == 'sk-test'
    assert orchestrator.timeout == 42


def test_rate_limited_provider_falls_back_within_deadline(seed, monkeypatch):
    class RateLimited:
        status_code = 429
        text = 'rate limit reached'
        headers = {'Retry-After': '60'}

    timeouts = []

    def fake_post(url, headers=None, json=None, timeout=None):
        timeouts.append(timeout)
        return RateLimited()

    monkeypatch.setattr(completion.requests, 'post', fake_post)
    rid = seed('price talk')
    provider = CompletionProvider('sk-test', timeout=1, max_attempts=2)

    started = time.monotonic()
    result = AnalysisOrchestrator(provider=provider, timeout=2).analyze(rid)
    assert time.monotonic() - started < 2

    # one attempt per branch; a 60s Retry-After does not fit the branch budget
    assert len(timeouts) == 3
    assert all(t <= 1 for t in timeouts)
    assert result.sentiment['keyPhrases'] == [DEGRADED_NOTE]
    assert [o['type'] for o in result.sales_opportunities] == ['upsell']
    assert len(result.action_items) == 1
    assert _status(rid) == RecordingStatus.COMPLETED


def test_concurrent_analyses_of_one_recording_keep_one_row(app, seed):
    rid = seed('great call, the price works, follow up next week', templates=[{'steps': SALES_STEPS}])
    expected = analyze_recording(rid).to_dict()

    workers = 4
    barrier = threading.Barrier(workers, timeout=5)
    errors = []

    def run():
        with app.app_context():
            try:
                barrier.wait()
                analyze_recording(rid)
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=run) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert errors == []
    db.session.expire_all()
    rows = AnalysisResult.query.filter_by(recording_id=rid).all()
    assert len(rows) == 1
    assert json.dumps(rows[0].to_dict(), sort_keys=True) == json.dumps(expected, sort_keys=True)
    assert _status(rid) == RecordingStatus.COMPLETED
