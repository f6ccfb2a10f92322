from .base import Base
from .directory import (
    EscalationPolicy,
    EscalationRule,
    EscalationRuleSchedule,
    EscalationRuleUser,
    Schedule,
    Service,
    User,
    UserSchedule,
)
from .incidents import Incident, LogEntry

__all__ = [
    "Base",
    "EscalationPolicy",
    "EscalationRule",
    "EscalationRuleSchedule",
    "EscalationRuleUser",
    "Incident",
    "LogEntry",
    "Schedule",
    "Service",
    "User",
    "UserSchedule",
]
