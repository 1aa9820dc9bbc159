"""Deterministic keyword fallbacks used when no completion is available.

Every function here is pure: same transcript in, same result out.
"""

from typing import List

from .results import ActionItem, Emotions, Opportunity, SentimentResult

POSITIVE_WORDS = ('great', 'excellent', 'happy', 'pleased', 'love', 'perfect')
NEGATIVE_WORDS = ('bad', 'issue', 'problem', 'concern', 'unhappy', 'disappointed')

DEGRADED_NOTE = 'Heuristic analysis - completion provider not available'


def _count_present(text: str, words) -> int:
    return sum(1 for w in words if w in text)


def fallback_sentiment(transcript: str) -> SentimentResult:
    text = (transcript or '').lower()
    positive = _count_present(text, POSITIVE_WORDS)
    negative = _count_present(text, NEGATIVE_WORDS)

    overall, score = 'neutral', 0.0
    if positive > negative + 1:
        overall, score = 'positive', 0.6
    elif negative > positive + 1:
        overall, score = 'negative', -0.6
    elif positive > 0 and negative > 0:
        overall, score = 'mixed', 0.1

    emotions = Emotions(
        joy=0.7 if overall == 'positive' else 0.3,
        anger=0.6 if overall == 'negative' else 0.1,
        surprise=0.2,
        sadness=0.4 if overall == 'negative' else 0.1,
    )
    return SentimentResult(overall=overall, score=score, emotions=emotions, key_phrases=[DEGRADED_NOTE])


def fallback_opportunities(transcript: str) -> List[Opportunity]:
    text = (transcript or '').lower()
    out = []
    if 'price' in text or 'cost' in text:
        out.append(Opportunity(
            type='upsell',
            description='Customer discussing pricing - potential upsell opportunity',
            confidence=0.6,
            context=DEGRADED_NOTE,
            priority='medium',
        ))
    if 'follow' in text or 'next' in text:
        out.append(Opportunity(
            type='follow-up',
            description='Follow-up required',
            confidence=0.7,
            context=DEGRADED_NOTE,
            priority='high',
        ))
    return out


def fallback_action_items(transcript: str) -> List[ActionItem]:
    return [ActionItem(
        title='Review conversation',
        description=f'{DEGRADED_NOTE}; review the conversation for action items manually',
        priority='medium',
        category='task',
    )]


def fallback_recommendations(missed_steps) -> List[str]:
    return [f"Ensure to cover the '{name}' step in future conversations." for name in missed_steps]
