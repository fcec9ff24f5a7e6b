from app import db
from app.data.core.record_base import RecordBase


class SupplierOrderLine(RecordBase):
    """Quantity of one stock item inside one supplier basket"""
    __tablename__ = 'supplier_order_line'
    __table_args__ = (
        db.UniqueConstraint('supplier_order_id', 'stock_item_id', name='uq_supplier_order_line_item'),
    )

    # Foreign Keys
    supplier_order_id = db.Column(db.Integer, db.ForeignKey('supplier_order.id'), nullable=False, index=True)
    stock_item_id = db.Column(db.String(100), nullable=False)

    # Reference captured at dispatch time; later catalogue changes do not alter it
    supplier_ref_snapshot = db.Column(db.String(100), nullable=True)

    quantity = db.Column(db.Float, nullable=False, default=0.0)
    quantity_received = db.Column(db.Float, nullable=True)  # set when the basket closes
    unit_price = db.Column(db.Float, nullable=True)
    urgency = db.Column(db.String(20), nullable=True)

    # Quote comparison
    is_selected = db.Column(db.Boolean, nullable=False, default=False)
    quote_received = db.Column(db.Boolean, nullable=False, default=False)
    quote_received_at = db.Column(db.DateTime, nullable=True)
    quote_price = db.Column(db.Float, nullable=True)
    lead_time_days = db.Column(db.Integer, nullable=True)
    manufacturer = db.Column(db.String(200), nullable=True)
    manufacturer_ref = db.Column(db.String(100), nullable=True)
    rejected_reason = db.Column(db.Text, nullable=True)

    # Relationships
    supplier_order = db.relationship('SupplierOrder', back_populates='lines')
    request_links = db.relationship(
        'SupplierOrderLinePurchaseRequest',
        back_populates='supplier_order_line',
        lazy='dynamic'
    )

    def __repr__(self):
        return f'<SupplierOrderLine {self.id}: {self.stock_item_id} x{self.quantity} (order {self.supplier_order_id})>'

    @property
    def linked_quantity(self):
        """Sum of quantities carried by the linked purchase requests"""
        return sum(link.quantity for link in self.request_links)

    @property
    def purchase_request_ids(self):
        return sorted(link.purchase_request_id for link in self.request_links)
