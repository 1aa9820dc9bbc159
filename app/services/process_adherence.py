"""Keyword-coverage scoring of a transcript against a process template.

A step's score is the share of its keywords found in the transcript
(case-insensitive substring match), rounded half up to an integer percentage.
A step counts as detected only when strictly more than 30% of its keywords
matched. The overall score is the rounded mean of the step scores, so it can
disagree with completed/total: both are reported.
"""

from typing import List, Sequence

from .completion import request_json
from .heuristics import fallback_recommendations
from .results import ProcessScore, ProcessStep, ResolvedTemplate, StepScore
from ..utils.coerce import as_str_list

DETECTION_THRESHOLD = 30
MAX_RECOMMENDATIONS = 5


def recommendations_instruction(missed_steps: Sequence[str]) -> str:
    return (
        "You are a sales process expert. The following process steps were missed in a conversation: "
        f"{', '.join(missed_steps)}. Provide 3-5 specific, actionable recommendations to improve "
        "process adherence. Respond in JSON format as an object with a \"recommendations\" array of strings."
    )


def _percent(part: int, whole: int) -> int:
    # round half up in integer arithmetic
    return (part * 200 + whole) // (2 * whole)


def score_step(step: ProcessStep, transcript_lower: str) -> StepScore:
    keywords = list(step.keywords)
    matched = [k for k in keywords if k.lower() in transcript_lower]
    total = max(len(keywords), 1)
    return StepScore(
        name=step.name,
        score=_percent(len(matched), total),
        detected=len(matched) * 100 > DETECTION_THRESHOLD * total,
        keywords=keywords,
        matched_keywords=matched,
    )


def recommend(missed_steps: List[str], provider=None) -> List[str]:
    if not missed_steps:
        return []
    outcome = request_json(provider, recommendations_instruction(missed_steps), temperature=0.5)
    recommendations = []
    if outcome.ok:
        recommendations = as_str_list(outcome.data.get('recommendations'), limit=MAX_RECOMMENDATIONS)
    return recommendations or fallback_recommendations(missed_steps)


def score_process_adherence(transcript: str, template: ResolvedTemplate, provider=None) -> ProcessScore:
    text = (transcript or '').lower()
    step_scores = [score_step(step, text) for step in template.steps]

    completed = sum(1 for s in step_scores if s.detected)
    # an empty template scores 0 rather than dividing by zero
    overall = _percent(sum(s.score for s in step_scores), 100 * len(step_scores)) if step_scores else 0
    missed = [s.name for s in step_scores if not s.detected]

    return ProcessScore(
        overall_score=overall,
        completed_steps=completed,
        total_steps=len(step_scores),
        step_scores=step_scores,
        missed_steps=missed,
        recommendations=recommend(missed, provider),
    )
