import copy
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from app import create_app
from app.extensions import db

SENTIMENT = 'sentiment analysis expert'
OPPORTUNITIES = 'sales opportunity detection expert'
ACTION_ITEMS = 'action item extraction expert'
RECOMMENDATIONS = 'sales process expert'


class FakeProvider:
    """Stands in for CompletionProvider; answers by matching the system instruction."""

    char_limit = 10000

    def __init__(self, responses=None, error=None, before_reply=None):
        self.responses = responses or {}
        self.error = error
        self.before_reply = before_reply
        self.cancel_event = None
        self.calls = []

    def bound_to(self, cancel_event, budget=None):
        clone = copy.copy(self)
        clone.cancel_event = cancel_event
        return clone

    def complete(self, system_instruction, user_payload='', temperature=0.3):
        self.calls.append({'system': system_instruction, 'payload': user_payload, 'temperature': temperature})
        if self.before_reply:
            self.before_reply(self)
        if self.error is not None:
            raise self.error
        for marker, data in self.responses.items():
            if marker in system_instruction:
                return copy.deepcopy(data)
        return {}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'OPENAI_API_KEY': None,
        'REDIS_URL': 'redis://127.0.0.1:1/0',
        'ANALYSIS_ASYNC': False,
        'ANALYSIS_TIMEOUT_SEC': 30,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """Create an organization with one recording; returns the recording id."""
    from app.models import Organization, ProcessTemplate, Recording, Transcript

    counter = {'n': 0}

    def _seed(transcript='Hello there', templates=(), with_transcript=True):
        counter['n'] += 1
        org = Organization(name=f'Org {counter["n"]}')
        db.session.add(org)
        db.session.flush()
        for i, t in enumerate(templates):
            db.session.add(ProcessTemplate(
                org_id=org.id,
                name=t.get('name', f'Template {i}'),
                steps=t['steps'],
                is_active=t.get('is_active', True),
            ))
        rec = Recording(org_id=org.id, title='Call')
        db.session.add(rec)
        db.session.flush()
        if with_transcript:
            db.session.add(Transcript(org_id=org.id, recording_id=rec.id, text=transcript))
        db.session.commit()
        return rec.id

    return _seed
