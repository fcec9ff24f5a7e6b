from app import db
from app.data.core.record_base import RecordBase


class PurchaseRequest(RecordBase):
    """Demand for a quantity of a stock item raised for a maintenance intervention"""
    __tablename__ = 'purchase_request'

    # Demand
    stock_item_id = db.Column(db.String(100), nullable=True, index=True)
    quantity = db.Column(db.Float, nullable=False, default=1.0)
    unit = db.Column(db.String(20), nullable=True)
    urgency = db.Column(db.String(20), nullable=True, default='normal')  # low/normal/high

    # Origin
    requested_by = db.Column(db.String(200), nullable=True)
    intervention_id = db.Column(db.String(100), nullable=True)

    # open/in_progress/ordered/received/cancelled
    status = db.Column(db.String(20), nullable=False, default='open', index=True)

    # Relationships
    line_links = db.relationship(
        'SupplierOrderLinePurchaseRequest',
        back_populates='purchase_request',
        lazy='dynamic'
    )

    def __repr__(self):
        return f'<PurchaseRequest {self.id}: {self.stock_item_id} x{self.quantity} ({self.status})>'

    @property
    def is_open(self):
        """Check if status is open"""
        return self.status == 'open'

    @property
    def is_dispatchable(self):
        """Open and tied to a stock item"""
        return self.is_open and self.stock_item_id is not None
