from .auth import User, LoginHistory, SessionToken, USER_ROLES, STAFF_ROLES
from .catalog import Category, Product
from .customers import Customer
from .sales import Sale, SaleItem, PAYMENT_METHODS, PAYMENT_STATUSES, SALE_STATUSES, SALE_SOURCES
from .notifications import Notification, NOTIFICATION_TYPES
from .settings import Setting, SETTINGS_ROW_ID

__all__ = [
    'User', 'LoginHistory', 'SessionToken', 'USER_ROLES', 'STAFF_ROLES',
    'Category', 'Product',
    'Customer',
    'Sale', 'SaleItem', 'PAYMENT_METHODS', 'PAYMENT_STATUSES', 'SALE_STATUSES', 'SALE_SOURCES',
    'Notification', 'NOTIFICATION_TYPES',
    'Setting', 'SETTINGS_ROW_ID',
]
