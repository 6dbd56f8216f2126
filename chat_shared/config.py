"""
MODULE OVERVIEW:
Client-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
Every knob the transport and CLI read lives here, overridable through `CHAT_*`
environment variables or a local `.env` file. Keepalive pings are off by default:
the session engine has no timeout or retry policy of its own.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    URL: str = "ws://localhost:8080/ws"
    TOKEN: str = ""
    LOG_LEVEL: str = "INFO"

    # WebSocket
    OPEN_TIMEOUT_S: float = 10.0
    CLOSE_TIMEOUT_S: float = 5.0
    MAX_FRAME_BYTES: int = 1_048_576
    PING_INTERVAL_S: float | None = None

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        # Tolerate unrelated env vars so the client runs out of the box
        extra="ignore",
    )


settings = Settings()
