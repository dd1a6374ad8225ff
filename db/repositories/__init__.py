"""
Repository layer exports.
"""

from db.repositories.daily_kpi_repository import DailyKPIRepository
from db.repositories.roster_repository import RosterRepository
from db.repositories.sync_repository import SyncRepository
from db.repositories.upload_log_repository import UploadLogRepository

__all__ = [
    "DailyKPIRepository",
    "RosterRepository",
    "SyncRepository",
    "UploadLogRepository",
]
