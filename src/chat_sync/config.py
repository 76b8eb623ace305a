from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:3000"

    SOCKET_URL: str = "http://localhost:3000"
    SOCKET_PATH: str = "socket.io"
    SOCKET_TRANSPORTS: list[str] = ["websocket"]
    RECONNECTION_ATTEMPTS: int = 0  # 0 = retry forever
    RECONNECTION_DELAY: float = 1.0
    RECONNECTION_DELAY_MAX: float = 5.0

    ACK_TIMEOUT_SECONDS: float = 10.0
    HTTP_TIMEOUT_SECONDS: float = 10.0

    TYPING_IDLE_SECONDS: float = 1.0

    USER_SEARCH_MIN_CHARS: int = 2
    USER_SEARCH_DEBOUNCE_SECONDS: float = 0.3

    AUTH_TOKEN: str = ""
    USER_ID: str | None = None

    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
