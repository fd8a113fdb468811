from .user import User, UserRole, UserStatus
from .talent_profile import TalentProfile, ApprovalStatus, UnionStatus
from .booking_status import BookingStatus, BookingCategory
from .booking import Booking
from .booking_code_sequence import BookingCodeSequence
from .booking_talent import BookingTalent, RequestStatus
from .contract import Contract, ContractStatus
from .signature import Signature, SignatureStatus
from .task import Task, TaskScope, TaskStatus, TaskPriority
from .notification import Notification, NotificationType

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "TalentProfile",
    "ApprovalStatus",
    "UnionStatus",
    "Booking",
    "BookingStatus",
    "BookingCategory",
    "BookingCodeSequence",
    "BookingTalent",
    "RequestStatus",
    "Contract",
    "ContractStatus",
    "Signature",
    "SignatureStatus",
    "Task",
    "TaskScope",
    "TaskStatus",
    "TaskPriority",
    "Notification",
    "NotificationType",
]
