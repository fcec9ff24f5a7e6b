from app import db
from app.data.core.record_base import RecordBase


class SupplierReference(RecordBase):
    """
    Supplier catalogue reference for a stock item.

    Master data owned by the stock/supplier management side; the procurement
    core only reads it to route demand.
    """
    __tablename__ = 'stock_item_supplier'
    __table_args__ = (
        db.UniqueConstraint('stock_item_id', 'supplier_id', 'supplier_ref', name='uq_stock_item_supplier_ref'),
    )

    stock_item_id = db.Column(db.String(100), nullable=False, index=True)
    supplier_id = db.Column(db.String(100), nullable=False, index=True)
    supplier_ref = db.Column(db.String(100), nullable=False)
    is_preferred = db.Column(db.Boolean, nullable=False, default=False)
    unit_price = db.Column(db.Float, nullable=True)
    lead_time_days = db.Column(db.Integer, nullable=True)

    def __repr__(self):
        flag = ' *' if self.is_preferred else ''
        return f'<SupplierReference {self.stock_item_id} @ {self.supplier_id}: {self.supplier_ref}{flag}>'
