from enum import Enum

# --- Enumerations for Constrained Choices ---

class Role(str, Enum):
    BROKER = "broker"
    CUSTOMER = "customer"
    ADMIN = "admin"
    STAFF = "staff"
    GUEST = "guest"

class InventoryStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    RESERVED = "reserved"
    RENTED = "rented"

class RequirementStatus(str, Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    NEGOTIATION = "negotiation"
    CLOSED = "closed"
    REJECTED = "rejected"

# Deals move through the same stages as the requirement they came from
DealStage = RequirementStatus

class RtmOffplan(str, Enum):
    RTM = "RTM"
    OFFPLAN = "OFFPLAN"
    RTM_OFFPLAN = "RTM-OFFPLAN"
    NONE = "NONE"

class RequirementCategory(str, Enum):
    RISE = "RISE"
    NESTSEEKERS = "NESTSEEKERS"
    LUXURY_CONCIERGE = "LUXURY CONCIERGE"


def values(enum_cls) -> list:
    return [member.value for member in enum_cls]
