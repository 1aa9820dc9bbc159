"""Typed shapes exchanged between the analyzers, the orchestrator and storage.

Attributes are snake_case; ``to_dict`` renders the camelCase JSON stored in
``analysis_results`` and returned by the API.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

SENTIMENT_LABELS = ("positive", "negative", "neutral", "mixed")
OPPORTUNITY_TYPES = ("upsell", "cross-sell", "renewal", "expansion", "follow-up")
PRIORITIES = ("low", "medium", "high")
ACTION_CATEGORIES = ("follow-up", "task", "reminder", "decision")


@dataclass
class Emotions:
    joy: float = 0.0
    anger: float = 0.0
    surprise: float = 0.0
    sadness: float = 0.0

    def to_dict(self):
        return {"joy": self.joy, "anger": self.anger, "surprise": self.surprise, "sadness": self.sadness}


@dataclass
class SentimentResult:
    overall: str = "neutral"
    score: float = 0.0
    emotions: Emotions = field(default_factory=Emotions)
    key_phrases: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "overall": self.overall,
            "score": self.score,
            "emotions": self.emotions.to_dict(),
            "keyPhrases": list(self.key_phrases),
        }


@dataclass
class Opportunity:
    type: str
    description: str
    confidence: float
    context: str
    priority: str

    def to_dict(self):
        return {
            "type": self.type,
            "description": self.description,
            "confidence": self.confidence,
            "context": self.context,
            "priority": self.priority,
        }


@dataclass
class ActionItem:
    title: str
    description: str
    priority: str = "medium"
    category: str = "task"
    due_date: Optional[date] = None
    assignee: Optional[str] = None

    def to_dict(self):
        out = {
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "category": self.category,
        }
        # optional keys are omitted rather than null
        if self.due_date is not None:
            out["dueDate"] = self.due_date.isoformat()
        if self.assignee:
            out["assignee"] = self.assignee
        return out


@dataclass(frozen=True)
class ProcessStep:
    name: str
    keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedTemplate:
    """An active process template as handed to the adherence scorer."""
    id: int
    name: str
    steps: Tuple[ProcessStep, ...] = ()


@dataclass
class StepScore:
    name: str
    score: int
    detected: bool
    keywords: List[str]
    matched_keywords: List[str]

    def to_dict(self):
        return {
            "name": self.name,
            "score": self.score,
            "detected": self.detected,
            "keywords": list(self.keywords),
            "matchedKeywords": list(self.matched_keywords),
        }


@dataclass
class ProcessScore:
    overall_score: int
    completed_steps: int
    total_steps: int
    step_scores: List[StepScore]
    missed_steps: List[str]
    recommendations: List[str]

    def to_dict(self):
        return {
            "overallScore": self.overall_score,
            "completedSteps": self.completed_steps,
            "totalSteps": self.total_steps,
            "stepScores": [s.to_dict() for s in self.step_scores],
            "missedSteps": list(self.missed_steps),
            "recommendations": list(self.recommendations),
        }


@dataclass
class AnalysisReport:
    """The four joined sub-results plus their aggregate confidence."""
    sentiment: SentimentResult
    opportunities: List[Opportunity]
    process_score: Optional[ProcessScore]
    action_items: List[ActionItem]
    confidence: float

    def to_record(self):
        return {
            "sentiment": self.sentiment.to_dict(),
            "sales_opportunities": [o.to_dict() for o in self.opportunities],
            "process_score": self.process_score.to_dict() if self.process_score else None,
            "action_items": [a.to_dict() for a in self.action_items],
            "confidence": self.confidence,
        }
