"""Procurement data models"""

from app.data.procurement.purchase_request import PurchaseRequest
from app.data.procurement.supplier_reference import SupplierReference
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest

__all__ = [
    'PurchaseRequest',
    'SupplierReference',
    'SupplierOrder',
    'SupplierOrderLine',
    'SupplierOrderLinePurchaseRequest',
]
