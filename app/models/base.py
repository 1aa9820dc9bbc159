from sqlalchemy.orm import declared_attr
from ..extensions import db


class OrgScopedMixin:
    @declared_attr
    def org_id(cls):
        return db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    @classmethod
    def for_org(cls, org_id):
        return cls.query.filter_by(org_id=org_id)


class TimestampMixin:
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())
