from app.models.activity_log import ActivityAction, ActivityLog, ActivityResult  # noqa: F401
from app.models.group import DIMENSION_COLUMNS, Group, MembershipDimension, UserGroup  # noqa: F401
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.schedule import Schedule  # noqa: F401
from app.models.subgroup import Subgroup  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.user import SCHEDULE_EDITOR_ROLES, User, UserRole  # noqa: F401
