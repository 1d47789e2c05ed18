"""Configuration values sourced from environment variables."""

import os
from typing import Final

LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="db-metadata")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)
# Fallback dialect name used when it cannot be detected from the connection.
DB_DIALECT: Final[str | None] = os.getenv(key="DB_DIALECT") or None
