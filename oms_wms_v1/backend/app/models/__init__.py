from .activity_log import ActivityLog
from .inbound_request import InboundRequest, InboundRequestItem, InboundStatusEvent
from .role import Permission, Role, role_permissions, user_roles
from .user import User

__all__ = [
    "ActivityLog",
    "InboundRequest",
    "InboundRequestItem",
    "InboundStatusEvent",
    "Permission",
    "Role",
    "User",
    "role_permissions",
    "user_roles",
]
