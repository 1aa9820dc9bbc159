from typing import Optional, Sequence

from .results import Opportunity, ProcessScore, SentimentResult
from ..utils.coerce import clamp

# Without a process template adherence neither rewards nor penalizes.
NO_TEMPLATE_ADHERENCE = 0.5


def aggregate_confidence(sentiment: SentimentResult, opportunities: Sequence[Opportunity],
                         process_score: Optional[ProcessScore] = None) -> float:
    """Average sentiment score, mean opportunity confidence and adherence.

    The sentiment term ranges over [-1, 1], so the raw mean can leave [0, 1];
    the stored value is clamped into that range.
    """
    opportunity_term = (sum(o.confidence for o in opportunities) / len(opportunities)) if opportunities else 0.0
    adherence_term = process_score.overall_score / 100 if process_score is not None else NO_TEMPLATE_ADHERENCE
    raw = (sentiment.score + opportunity_term + adherence_term) / 3
    return clamp(raw, 0.0, 1.0)
