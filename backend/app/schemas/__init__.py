from .user import UserBase, UserCreate, UserProfileUpdate, UserResponse, UserSummary, Token
from .talent import (
    TalentProfileBase,
    TalentProfileCreate,
    TalentProfileUpdate,
    TalentApprovalUpdate,
    TalentProfileResponse,
    TalentListResponse,
    TalentDashboardResponse,
)
from .booking import (
    BookingBase,
    BookingCreate,
    BookingUpdate,
    BookingSummary,
    BookingResponse,
    BookingListResponse,
)
from .booking_talent import (
    SendRequestsIn,
    SendRequestsOut,
    RespondIn,
    BookingTalentResponse,
    BookingDetailResponse,
)
from .contract import (
    ContractCreate,
    ContractSignIn,
    ContractResponse,
    ContractTemplateInfo,
    SignatureResponse,
)
from .task import TaskBase, TaskCreate, TaskUpdate, TaskResponse, TaskListResponse
from .notification import NotificationResponse, UnreadCount
