from typing import List

from .completion import request_json
from .heuristics import fallback_opportunities
from .results import Opportunity, OPPORTUNITY_TYPES, PRIORITIES
from ..utils.coerce import as_choice, as_float, clamp

SYSTEM_INSTRUCTION = """You are a sales opportunity detection expert. Analyze the conversation and identify:
- Upsell opportunities (customer needs more/better features)
- Cross-sell opportunities (complementary products/services)
- Renewal opportunities (contract/subscription mentions)
- Expansion opportunities (growth, scaling needs)
- Follow-up opportunities (open questions, unresolved issues)

For each opportunity provide:
- type: one of (upsell, cross-sell, renewal, expansion, follow-up)
- description: brief description
- confidence: 0-1 score
- context: relevant quote from conversation
- priority: low, medium, or high

Respond in JSON format as an object with an "opportunities" array."""


def opportunities_from_json(data) -> List[Opportunity]:
    items = data.get('opportunities')
    if not isinstance(items, list):
        return []
    out = []
    for item in items:
        if not isinstance(item, dict):
            continue
        kind = as_choice(item.get('type'), OPPORTUNITY_TYPES, None)
        if kind is None:
            continue
        out.append(Opportunity(
            type=kind,
            description=str(item.get('description') or ''),
            confidence=clamp(as_float(item.get('confidence')), 0.0, 1.0),
            context=str(item.get('context') or ''),
            priority=as_choice(item.get('priority'), PRIORITIES, 'medium'),
        ))
    return out


def detect_opportunities(transcript: str, provider=None) -> List[Opportunity]:
    outcome = request_json(provider, SYSTEM_INSTRUCTION, transcript, temperature=0.3)
    if not outcome.ok:
        return fallback_opportunities(transcript)
    return opportunities_from_json(outcome.data)
