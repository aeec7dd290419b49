from .accounts import User, SessionToken, PLAN_CODES
from .security import SecurityEvent
from .inventory import Product, Variant, CustomLocation, VARIANT_STATUSES, OWNER_TYPES
from .consignment import (
    Consignor, ConsignmentSale, PayoutTransaction, PayoutTransactionItem,
    PAYOUT_METHODS, PAYOUT_STATUSES, CONSIGNOR_STATUSES,
)
from .customers import Customer, CUSTOMER_TYPES
from .sales import (
    Avatar, PaymentType, Sale, SaleItem, SaleProfitDistribution,
    ProfitTemplate, ProfitTemplateItem,
    FEE_TYPES, FEE_APPLIES_TO, AVATAR_TYPES,
)
from .preorders import PreOrder, PREORDER_STATUSES, OPEN_PREORDER_STATUSES

__all__ = [
    'User', 'SessionToken', 'SecurityEvent',
    'Product', 'Variant', 'CustomLocation',
    'Consignor', 'ConsignmentSale', 'PayoutTransaction', 'PayoutTransactionItem',
    'Customer',
    'Avatar', 'PaymentType', 'Sale', 'SaleItem', 'SaleProfitDistribution',
    'ProfitTemplate', 'ProfitTemplateItem', 'PreOrder',
    'PLAN_CODES', 'VARIANT_STATUSES', 'OWNER_TYPES',
    'PAYOUT_METHODS', 'PAYOUT_STATUSES', 'CONSIGNOR_STATUSES',
    'CUSTOMER_TYPES', 'FEE_TYPES', 'FEE_APPLIES_TO', 'AVATAR_TYPES',
    'PREORDER_STATUSES', 'OPEN_PREORDER_STATUSES',
]
