from app import db
from app.data.core.record_base import RecordBase


class SupplierOrder(RecordBase):
    """Supplier basket - aggregates order lines for one supplier"""
    __tablename__ = 'supplier_order'
    __table_args__ = (
        # At most one OPEN basket per supplier
        db.Index(
            'uq_supplier_order_open_basket',
            'supplier_id',
            unique=True,
            sqlite_where=db.text("status = 'OPEN'"),
            postgresql_where=db.text("status = 'OPEN'"),
        ),
    )

    order_number = db.Column(db.String(50), unique=True, nullable=False)
    supplier_id = db.Column(db.String(100), nullable=False, index=True)

    # OPEN/SENT/ACK/RECEIVED/CLOSED/CANCELLED
    status = db.Column(db.String(20), nullable=False, default='OPEN')
    total_amount = db.Column(db.Float, nullable=True)

    # Dates
    ordered_at = db.Column(db.DateTime, nullable=True)
    received_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    lines = db.relationship(
        'SupplierOrderLine',
        back_populates='supplier_order',
        lazy='dynamic',
        order_by='SupplierOrderLine.id'
    )

    def __repr__(self):
        return f'<SupplierOrder {self.order_number}: {self.supplier_id} ({self.status})>'

    @property
    def is_open(self):
        """Check if status is OPEN"""
        return self.status == 'OPEN'

    @property
    def is_sent(self):
        """Check if status is SENT"""
        return self.status == 'SENT'

    @property
    def lines_count(self):
        """Count of order lines"""
        return self.lines.count()

    @property
    def total_quantity(self):
        """Sum of all line quantities"""
        return sum(line.quantity for line in self.lines)
