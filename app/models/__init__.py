from .base import Base

from .user import User
from .user_device import UserDevice
from .daily_work import DailyWork
from .rfi_objection import RfiObjection
from .objection_chainage import ObjectionChainage
from .objection_daily_work import ObjectionDailyWork
from .rfi_objection_status_log import RfiObjectionStatusLog
