"""
Runtime settings

Read once at process start from environment variables. The environment tag
selected here is never re-read afterwards.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ..models.feature_flags import Environment

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_FLAGS_DIR = PACKAGE_DIR / "config"
DEFAULT_TASKS_DB = PACKAGE_DIR / "data" / "db.json"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration"""
    environment: Environment = Environment.STAGE
    flags_dir: Path = DEFAULT_FLAGS_DIR
    tasks_db_path: Path = DEFAULT_TASKS_DB
    host: str = "127.0.0.1"
    port: int = 3005
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables

        Raises:
            ValueError: If ENVIRONMENT or PORT hold invalid values
        """
        environment = Environment.parse(os.getenv("ENVIRONMENT", "stage"))
        flags_dir = Path(os.getenv("FEATURE_FLAGS_DIR", str(DEFAULT_FLAGS_DIR)))
        tasks_db_path = Path(os.getenv("TASKS_DB_PATH", str(DEFAULT_TASKS_DB)))
        origins_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
        origins = [item.strip() for item in origins_env.split(",") if item.strip()]

        settings = cls(
            environment=environment,
            flags_dir=flags_dir,
            tasks_db_path=tasks_db_path,
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "3005")),
            cors_allow_origins=origins or ["*"],
        )
        logger.info(f"Settings loaded: environment={settings.environment.value}, flags_dir={settings.flags_dir}")
        return settings
