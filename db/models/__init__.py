"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.agent import Agent
from db.models.agent_attendance import AgentAttendance
from db.models.coaching_session import CoachingSessionRecord
from db.models.daily_kpi import DailyKPI
from db.models.leave_request import LeaveRequest
from db.models.quality_audit import QualityAudit
from db.models.upload_log import UploadLog

__all__ = [
    "Agent",
    "AgentAttendance",
    "CoachingSessionRecord",
    "DailyKPI",
    "LeaveRequest",
    "QualityAudit",
    "UploadLog",
]
