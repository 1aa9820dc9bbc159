from .completion import request_json
from .heuristics import fallback_sentiment
from .results import Emotions, SentimentResult, SENTIMENT_LABELS
from ..utils.coerce import as_choice, as_float, as_str_list, clamp

SYSTEM_INSTRUCTION = """You are a sentiment analysis expert. Analyze the following conversation and provide:
1. Overall sentiment (positive, negative, neutral, or mixed)
2. A sentiment score from -1 (very negative) to 1 (very positive)
3. Emotion scores for joy, anger, surprise, and sadness (0-1 scale)
4. Key phrases that indicate sentiment

Respond in JSON format only, as an object with the keys
"overall", "score", "emotions" (with "joy", "anger", "surprise", "sadness") and "keyPhrases"."""


def _emotion(emotions, key):
    return clamp(as_float(emotions.get(key)), 0.0, 1.0)


def sentiment_from_json(data) -> SentimentResult:
    emotions = data.get('emotions')
    if not isinstance(emotions, dict):
        emotions = {}
    return SentimentResult(
        overall=as_choice(data.get('overall'), SENTIMENT_LABELS, 'neutral'),
        score=clamp(as_float(data.get('score')), -1.0, 1.0),
        emotions=Emotions(
            joy=_emotion(emotions, 'joy'),
            anger=_emotion(emotions, 'anger'),
            surprise=_emotion(emotions, 'surprise'),
            sadness=_emotion(emotions, 'sadness'),
        ),
        key_phrases=as_str_list(data.get('keyPhrases')),
    )


def analyze_sentiment(transcript: str, provider=None) -> SentimentResult:
    """Classify the overall sentiment of a transcript. Never raises a provider error."""
    outcome = request_json(provider, SYSTEM_INSTRUCTION, transcript, temperature=0.3)
    if not outcome.ok:
        return fallback_sentiment(transcript)
    return sentiment_from_json(outcome.data)
