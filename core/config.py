import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---------------- Settings ----------------
@dataclass
class Settings:
    database_url: str = "sqlite:///./appointments.db"
    sql_echo: bool = False
    log_level: str = "INFO"

    sweep_enabled: bool = True
    sweep_interval_seconds: float = 60.0
    missed_grace_minutes: int = 15

    mail_server: str = ""
    mail_port: int = 587
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = "medicalteam@example.com"
    mail_from_name: str = "Medical Team"
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def sweep_interval(self) -> timedelta:
        return timedelta(seconds=self.sweep_interval_seconds)

    @property
    def missed_grace(self) -> timedelta:
        return timedelta(minutes=self.missed_grace_minutes)

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mail_server)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url).strip(),
            sql_echo=_flag("SQL_ECHO"),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            sweep_enabled=_flag("SWEEP_ENABLED", "1"),
            sweep_interval_seconds=float(os.getenv("SWEEP_INTERVAL_SECONDS", "60")),
            missed_grace_minutes=int(os.getenv("MISSED_GRACE_MINUTES", "15")),
            mail_server=os.getenv("MAIL_SERVER", ""),
            mail_port=int(os.getenv("MAIL_PORT", "587")),
            mail_username=os.getenv("MAIL_USERNAME", ""),
            mail_password=os.getenv("MAIL_PASSWORD", ""),
            mail_from=os.getenv("MAIL_FROM", cls.mail_from),
            mail_from_name=os.getenv("MAIL_FROM_NAME", cls.mail_from_name),
            mail_starttls=_flag("MAIL_STARTTLS", "1"),
            mail_ssl_tls=_flag("MAIL_SSL_TLS"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
