"""Persistence layer of the analysis pipeline (Flask-SQLAlchemy)."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from ..errors import PersistenceError
from ..extensions import db
from ..models import AnalysisResult, ProcessTemplate, Recording
from .results import AnalysisReport, ProcessStep, ResolvedTemplate

UPSERT_FIELDS = ("sentiment", "sales_opportunities", "process_score", "action_items", "confidence")


@dataclass
class RecordingContext:
    recording: Recording
    transcript: Optional[str]
    template: Optional[ResolvedTemplate]


def resolve_template(row: ProcessTemplate) -> ResolvedTemplate:
    """Turn the JSON ``steps`` column into typed steps for the scorer.

    Every stored entry becomes a step so ``totalSteps`` matches the template;
    an entry that is not an object is kept as a keyword-less "Step <n>".
    Keyword text is used as written; only non-string keywords are dropped.
    """
    steps = []
    for i, raw in enumerate(row.steps or [], start=1):
        if not isinstance(raw, dict):
            raw = {}
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            name = f"Step {i}"
        keywords = raw.get("keywords") or []
        if not isinstance(keywords, list):
            keywords = []
        steps.append(ProcessStep(
            name=name.strip(),
            keywords=tuple(k for k in keywords if isinstance(k, str)),
        ))
    return ResolvedTemplate(id=row.id, name=row.name, steps=tuple(steps))


def get_recording_with_context(recording_id: int) -> Optional[RecordingContext]:
    recording = db.session.get(Recording, recording_id, options=[joinedload(Recording.transcript)])
    if recording is None:
        return None
    transcript = recording.transcript.text if recording.transcript is not None else None
    # several active templates is allowed; whichever row the database returns first wins
    row = ProcessTemplate.for_org(recording.org_id).filter_by(is_active=True).first()
    template = resolve_template(row) if row is not None else None
    return RecordingContext(recording=recording, transcript=transcript, template=template)


def _upsert_statement(dialect_name, values):
    insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
    stmt = insert(AnalysisResult).values(**values)
    changes = {name: stmt.excluded[name] for name in UPSERT_FIELDS}
    changes["updated_at"] = func.now()
    return stmt.on_conflict_do_update(index_elements=["recording_id"], set_=changes)


def _dialect_name():
    return db.session.get_bind().dialect.name


def _find_for_update(recording_id):
    return AnalysisResult.query.filter_by(recording_id=recording_id).with_for_update().first()


def _locked_upsert(recording_id, values):
    row = _find_for_update(recording_id)
    if row is None:
        row = AnalysisResult(recording_id=recording_id)
        db.session.add(row)
    for name in UPSERT_FIELDS:
        setattr(row, name, values[name])
    try:
        db.session.flush()
    except IntegrityError:
        # a concurrent writer inserted first; overwrite its row
        db.session.rollback()
        row = _find_for_update(recording_id)
        if row is None:
            raise
        for name in UPSERT_FIELDS:
            setattr(row, name, values[name])
        db.session.flush()


def upsert_analysis_result(recording_id: int, report: AnalysisReport) -> AnalysisResult:
    """Insert or wholesale replace the analysis of a recording in one write."""
    values = dict(report.to_record(), recording_id=recording_id)
    try:
        dialect_name = _dialect_name()
        if dialect_name in ("sqlite", "postgresql"):
            db.session.execute(_upsert_statement(dialect_name, values))
        else:
            _locked_upsert(recording_id, values)
        db.session.commit()
        return AnalysisResult.query.filter_by(recording_id=recording_id).one()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"failed to store analysis for recording {recording_id}") from e


def set_recording_status(recording_id: int, status: str) -> None:
    try:
        db.session.execute(
            update(Recording)
            .where(Recording.id == recording_id)
            .values(status=status, updated_at=func.now())
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"failed to set status {status} on recording {recording_id}") from e


def get_analysis_result(recording_id: int) -> Optional[AnalysisResult]:
    return AnalysisResult.query.filter_by(recording_id=recording_id).first()
