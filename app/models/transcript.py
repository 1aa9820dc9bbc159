from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin

class Transcript(db.Model, OrgScopedMixin, TimestampMixin):
    __tablename__ = "transcripts"
    id = db.Column(db.Integer, primary_key=True)
    # one transcript per recording
    recording_id = db.Column(db.Integer, db.ForeignKey("recordings.id"), nullable=False, unique=True)
    text = db.Column(db.Text, nullable=False)
    lang = db.Column(db.String(10), default="en")

    recording = db.relationship("Recording", back_populates="transcript")
