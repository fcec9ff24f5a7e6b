"""
Dictionary round-tripping for procurement records.

Seed data is loaded through `from_dict`/`bulk_create_from_dicts`; the JSON API
renders rows through `to_dict` (datetimes as ISO strings). Audit timestamps
are never written from input when empty so the column defaults apply.
"""

from datetime import datetime

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.logger import get_logger

logger = get_logger("procurement.buisness.core.data_insertion")

TIMESTAMP_FIELDS = ('created_at', 'updated_at')


class DataInsertionMixin:
    """Adds from_dict, to_dict and bulk_create_from_dicts to a model"""

    @classmethod
    def column_keys(cls):
        return [column.key for column in inspect(cls).columns]

    @classmethod
    def from_dict(cls, data_dict, skip_fields=None):
        """
        Build an unsaved instance; keys that are not columns are ignored.

        Args:
            data_dict (dict): Column values
            skip_fields (iterable, optional): Columns to leave at their default
        """
        skipped = set(skip_fields or ())
        values = {
            key: value for key, value in data_dict.items()
            if key in cls.column_keys()
            and key not in skipped
            and not (key in TIMESTAMP_FIELDS and value is None)
        }
        return cls(**values)

    def to_dict(self, include_timestamps=True):
        data = {}
        for key in self.column_keys():
            if key in TIMESTAMP_FIELDS and not include_timestamps:
                continue
            value = getattr(self, key)
            data[key] = value.isoformat() if isinstance(value, datetime) else value
        return data

    @classmethod
    def bulk_create_from_dicts(cls, data_list, skip_fields=None, commit=True):
        """
        Add one instance per dictionary to the session.

        With commit=False the caller owns the transaction; the instances are
        only added so several models can be seeded atomically.
        """
        instances = [cls.from_dict(data_dict, skip_fields) for data_dict in data_list]
        db.session.add_all(instances)
        if not commit:
            return instances

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error bulk creating {cls.__name__}: {e}")
            raise
        logger.info(f"Created {len(instances)} {cls.__name__} rows")
        return instances
