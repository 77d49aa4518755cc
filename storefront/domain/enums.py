# storefront/domain/enums.py
from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    FINANCE = "FINANCE"
    MARKETING = "MARKETING"
    SUPPORT = "SUPPORT"
    USER = "USER"


class Gender(str, Enum):
    MEN = "MEN"
    WOMEN = "WOMEN"
    UNISEX = "UNISEX"
    KIDS = "KIDS"


class OrderStatus(str, Enum):
    PENDING = "PENDING"                    # created, payment pending
    PLACED = "PLACED"                      # payment success / COD confirmed
    ACCEPTED = "ACCEPTED"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentType(str, Enum):
    ONLINE = "ONLINE"
    COD = "COD"


class TryOnType(str, Enum):
    REFERENCE = "REFERENCE"    # user's own upload
    GENERATED = "GENERATED"    # result of a try-on job


class TryOnStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"


class TryOnCategory(str, Enum):
    TOPS = "tops"
    BOTTOMS = "bottoms"
    ONE_PIECES = "one-pieces"
