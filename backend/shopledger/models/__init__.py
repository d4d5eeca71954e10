from .catalog import Location, Party, Product, LocationStock
from .inventory import InventoryMovement
from .units import Unit, UnitIdentityRevision, UnitizationBatch
from .ledger import LedgerAccount, LedgerEntry
from .documents import (
    DocumentSequence,
    Order, OrderItem,
    SalesInvoice, SalesInvoiceItem,
    PurchaseBill, PurchaseBillItem,
    SalesReturn, SalesReturnItem, SalesReturnRefund,
    PurchaseReturn, PurchaseReturnItem,
    WriteOff, WriteOffItem,
    StockTransfer, StockTransferItem,
    StockAdjustment, StockAdjustmentItem,
)
from .rentals import RentalContract, RentalContractItem, RentalBill
from .append_only import register_append_only

register_append_only(InventoryMovement, LedgerEntry, UnitIdentityRevision)

__all__ = [
    'Location', 'Party', 'Product', 'LocationStock',
    'InventoryMovement',
    'Unit', 'UnitIdentityRevision', 'UnitizationBatch',
    'LedgerAccount', 'LedgerEntry',
    'DocumentSequence',
    'Order', 'OrderItem',
    'SalesInvoice', 'SalesInvoiceItem',
    'PurchaseBill', 'PurchaseBillItem',
    'SalesReturn', 'SalesReturnItem', 'SalesReturnRefund',
    'PurchaseReturn', 'PurchaseReturnItem',
    'WriteOff', 'WriteOffItem',
    'StockTransfer', 'StockTransferItem',
    'StockAdjustment', 'StockAdjustmentItem',
    'RentalContract', 'RentalContractItem', 'RentalBill',
]
