from ..extensions import db
from .base import TimestampMixin


class AnalysisResult(db.Model, TimestampMixin):
    __tablename__ = "analysis_results"

    id = db.Column(db.Integer, primary_key=True)
    # identity key of the upsert
    recording_id = db.Column(db.Integer, db.ForeignKey("recordings.id"), nullable=False, unique=True)

    sentiment = db.Column(db.JSON, nullable=False)
    sales_opportunities = db.Column(db.JSON, nullable=False)
    process_score = db.Column(db.JSON(none_as_null=True), nullable=True)  # NULL when no active template
    action_items = db.Column(db.JSON, nullable=False)
    confidence = db.Column(db.Float, nullable=False)

    recording = db.relationship("Recording", back_populates="analysis_result")

    def to_dict(self):
        return {
            "id": self.id,
            "recordingId": self.recording_id,
            "sentiment": self.sentiment,
            "salesOpportunities": self.sales_opportunities,
            "processScore": self.process_score,
            "actionItems": self.action_items,
            "confidence": self.confidence,
        }

    def __repr__(self) -> str:
        return f"<AnalysisResult recording_id={self.recording_id} confidence={self.confidence}>"
