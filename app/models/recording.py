from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin


class RecordingStatus:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Recording(db.Model, OrgScopedMixin, TimestampMixin):
    __tablename__ = "recordings"
    id = db.Column(db.Integer, primary_key=True)
    # OrgScopedMixin: org_id
    title = db.Column(db.String(255))
    storage_url = db.Column(db.String(512), nullable=True)
    duration_sec = db.Column(db.Integer)
    uploaded_by = db.Column(db.Integer)  # user id
    # PENDING -> PROCESSING -> ANALYZING -> COMPLETED / FAILED
    status = db.Column(db.String(20), nullable=False, default=RecordingStatus.PENDING, index=True)

    transcript = db.relationship("Transcript", uselist=False, back_populates="recording")
    analysis_result = db.relationship("AnalysisResult", uselist=False, back_populates="recording")

    def __repr__(self) -> str:
        return f"<Recording id={self.id} status={self.status}>"
