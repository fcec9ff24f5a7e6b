from app import db
from datetime import datetime, timezone
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


def utcnow():
    """Naive UTC timestamp, matching how the DateTime columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordBase(db.Model, DataInsertionMixin):
    """Abstract base class for procurement records with timestamps"""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
