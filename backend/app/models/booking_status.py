import enum


class BookingStatus(str, enum.Enum):
    """Central booking status enumeration used across the application.

    Declaration order is the forward lifecycle order; ``CANCELLED`` sits
    outside it as the escape hatch.
    """

    INQUIRY = "inquiry"
    PROPOSED = "proposed"
    CONTRACT_SENT = "contract_sent"
    SIGNED = "signed"
    INVOICED = "invoiced"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingCategory(str, enum.Enum):
    MODELING = "modeling"
    ACTING = "acting"
    COMMERCIAL = "commercial"
    EVENT = "event"
    GENERAL = "general"
