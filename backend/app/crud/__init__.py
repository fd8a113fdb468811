from .crud_user import user
from .crud_booking import booking, allocate_booking_code
from . import crud_status
from . import crud_notification
from . import crud_talent
from . import crud_booking_talent
from . import crud_contract
from . import crud_task
