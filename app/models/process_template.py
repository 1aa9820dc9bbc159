from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin


class ProcessTemplate(db.Model, OrgScopedMixin, TimestampMixin):
    __tablename__ = "process_templates"

    id = db.Column(db.Integer, primary_key=True)
    # OrgScopedMixin: org_id
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    steps = db.Column(db.JSON, nullable=False, default=list)  # [{"name": "Greeting", "keywords": ["hello", "welcome"]}]
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint('org_id', 'name', name='uq_process_templates_org_name'),
    )

    def __repr__(self) -> str:
        return f"<ProcessTemplate id={self.id} name={self.name!r} active={self.is_active}>"
