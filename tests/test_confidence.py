import pytest

from app.services.confidence import aggregate_confidence
from app.services.results import Opportunity, ProcessScore, SentimentResult


def _opp(confidence):
    return Opportunity(type='upsell', description='', confidence=confidence, context='', priority='low')


def _process(overall):
    return ProcessScore(overall_score=overall, completed_steps=0, total_steps=0,
                        step_scores=[], missed_steps=[], recommendations=[])


def test_with_process_score():
    out = aggregate_confidence(SentimentResult(score=0.6), [_opp(0.8)], _process(90))
    assert out == pytest.approx((0.6 + 0.8 + 0.9) / 3)
    assert out == pytest.approx(0.7667, abs=1e-4)


def test_missing_process_score_counts_as_half():
    out = aggregate_confidence(SentimentResult(score=0.6), [_opp(0.8)], None)
    assert out == pytest.approx((0.6 + 0.8 + 0.5) / 3)


def test_opportunities_are_averaged_and_default_to_zero():
    assert aggregate_confidence(SentimentResult(score=0.3), [_opp(0.2), _opp(0.6)], _process(30)) == pytest.approx(
        (0.3 + 0.4 + 0.3) / 3)
    assert aggregate_confidence(SentimentResult(score=0.3), [], _process(30)) == pytest.approx((0.3 + 0 + 0.3) / 3)


def test_negative_sentiment_is_clamped_to_zero():
    assert aggregate_confidence(SentimentResult(score=-1.0), [], _process(0)) == 0.0
