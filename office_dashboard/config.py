from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_file: Path = Path(os.getenv("OFFICE_DASHBOARD_DATA_FILE", "data/office.xlsx"))
    backup_dir: Path = Path(os.getenv("OFFICE_DASHBOARD_BACKUP_DIR", "data/backups"))
    lock_file: Path = Path(os.getenv("OFFICE_DASHBOARD_LOCK_FILE", "data/office.lock"))
    default_total_desks: int = int(os.getenv("OFFICE_DASHBOARD_DEFAULT_TOTAL_DESKS", "50"))
    week_start: int = int(os.getenv("OFFICE_DASHBOARD_WEEK_START", "0"))  # Python weekday, Mon=0
    upcoming_vacation_days: int = int(os.getenv("OFFICE_DASHBOARD_UPCOMING_VACATION_DAYS", "14"))
    birthday_window_days: int = int(os.getenv("OFFICE_DASHBOARD_BIRTHDAY_WINDOW_DAYS", "5"))
    projection_days: int = int(os.getenv("OFFICE_DASHBOARD_PROJECTION_DAYS", "14"))
    session_ttl_hours: int = int(os.getenv("OFFICE_DASHBOARD_SESSION_TTL_HOURS", "12"))
    admin_password: str | None = os.getenv("OFFICE_DASHBOARD_ADMIN_PASSWORD")
    user_password: str | None = os.getenv("OFFICE_DASHBOARD_USER_PASSWORD")
    log_level: str = os.getenv("OFFICE_DASHBOARD_LOG_LEVEL", "INFO")
    host: str = os.getenv("OFFICE_DASHBOARD_HOST", "127.0.0.1")
    port: int = int(os.getenv("OFFICE_DASHBOARD_PORT", "8000"))


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
