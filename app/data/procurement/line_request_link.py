from app import db
from app.data.core.record_base import RecordBase


class SupplierOrderLinePurchaseRequest(RecordBase):
    """Association linking purchase requests to supplier order lines"""
    __tablename__ = 'supplier_order_line_purchase_request'
    __table_args__ = (
        db.UniqueConstraint('supplier_order_line_id', 'purchase_request_id', name='uq_line_purchase_request'),
    )

    # Foreign Keys
    supplier_order_line_id = db.Column(db.Integer, db.ForeignKey('supplier_order_line.id'), nullable=False, index=True)
    purchase_request_id = db.Column(db.Integer, db.ForeignKey('purchase_request.id'), nullable=False, index=True)

    quantity = db.Column(db.Float, nullable=False)

    # Relationships
    supplier_order_line = db.relationship('SupplierOrderLine', back_populates='request_links')
    purchase_request = db.relationship('PurchaseRequest', back_populates='line_links')

    def __repr__(self):
        return f'<LinePurchaseRequest Line:{self.supplier_order_line_id} Request:{self.purchase_request_id} Qty:{self.quantity}>'
