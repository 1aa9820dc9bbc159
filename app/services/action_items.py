from typing import List

from .completion import request_json
from .heuristics import fallback_action_items
from .results import ActionItem, ACTION_CATEGORIES, PRIORITIES
from ..utils.coerce import as_choice, as_date

SYSTEM_INSTRUCTION = """You are an action item extraction expert. Analyze the conversation and extract all action items, tasks, follow-ups, and decisions that need to be made.

For each action item provide:
- title: brief title
- description: detailed description
- priority: low, medium, or high
- category: follow-up, task, reminder, or decision
- assignee: if mentioned in conversation (optional)
- dueDate: if mentioned (ISO format, optional)

Respond in JSON format as an object with an "actionItems" array."""


def action_items_from_json(data) -> List[ActionItem]:
    items = data.get('actionItems')
    if not isinstance(items, list):
        return []
    out = []
    for item in items:
        if not isinstance(item, dict):
            continue
        title = item.get('title')
        if not isinstance(title, str) or not title.strip():
            continue
        assignee = item.get('assignee')
        out.append(ActionItem(
            title=title.strip(),
            description=str(item.get('description') or ''),
            priority=as_choice(item.get('priority'), PRIORITIES, 'medium'),
            category=as_choice(item.get('category'), ACTION_CATEGORIES, 'task'),
            due_date=as_date(item.get('dueDate')),
            assignee=assignee.strip() if isinstance(assignee, str) and assignee.strip() else None,
        ))
    return out


def extract_action_items(transcript: str, provider=None) -> List[ActionItem]:
    outcome = request_json(provider, SYSTEM_INSTRUCTION, transcript, temperature=0.3)
    if not outcome.ok:
        return fallback_action_items(transcript)
    return action_items_from_json(outcome.data)
