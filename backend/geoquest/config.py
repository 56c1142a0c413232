"""
Configuration module
"""
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


class Settings(BaseModel):
    """Application settings"""

    # API
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    cors_origins: list = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Combat sessions
    # Idle sessions older than this are dropped by expire_idle_sessions().
    combat_session_ttl_seconds: int = int(os.getenv("COMBAT_SESSION_TTL_SECONDS", "1800"))
    # Fixed seed for every new session (playtesting / replays); unset = random.
    combat_rng_seed: Optional[int] = _optional_int("COMBAT_RNG_SEED")
    # Directory holding spells.json / monster_abilities.json overrides.
    combat_data_dir: str = os.getenv("COMBAT_DATA_DIR", "")

    # MCP server
    mcp_transport: Literal["stdio", "sse", "streamable-http"] = os.getenv("MCP_TRANSPORT", "stdio")
    mcp_host: str = os.getenv("MCP_HOST", "127.0.0.1")
    mcp_port: int = int(os.getenv("MCP_PORT", "9102"))

    model_config = ConfigDict(case_sensitive=False)


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_config() -> bool:
    """
    Check configuration values.

    Returns:
        bool: whether the configuration is usable
    """
    ok = True
    if settings.combat_session_ttl_seconds <= 0:
        logger.warning("COMBAT_SESSION_TTL_SECONDS must be positive: %s", settings.combat_session_ttl_seconds)
        ok = False
    if settings.combat_data_dir and not Path(settings.combat_data_dir).is_dir():
        logger.warning("COMBAT_DATA_DIR does not exist: %s", settings.combat_data_dir)
        ok = False
    if not 0 < settings.mcp_port < 65536:
        logger.warning("MCP_PORT out of range: %s", settings.mcp_port)
        ok = False
    return ok
