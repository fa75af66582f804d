from enum import Enum


CERTIFICATE_XP_POINTS = 250

class RoleEnum(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"

class NotificationTypeEnum(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

class RelatedEntityEnum(str, Enum):
    COURSE = "course"
    TEST = "test"
    CERTIFICATE = "certificate"
    SYSTEM = "system"
