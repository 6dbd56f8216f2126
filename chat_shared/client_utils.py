from datetime import datetime, timezone
from loguru import logger


def make_client_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    The transport calls this once in __init__ and stamps `connected_at`
    every time a connection opens.
    Keys: frames_received, frames_sent, decode_errors, dropped_sends,
          last_frame_at, connected_at.
    """
    return {
        "frames_received": 0,
        "frames_sent": 0,
        "decode_errors": 0,
        "dropped_sends": 0,
        "last_frame_at": None,
        "connected_at": None,
    }


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_connection(endpoint: str | None, event: str, **extra) -> None:
    """
    Single structured log entry for a connection lifecycle step.
    Writes: endpoint, event, and any extra fields as key=value pairs.
    """
    log_str = f"endpoint={endpoint} event={event}"
    for k, v in extra.items():
        log_str += f" {k}={v}"
    logger.info(log_str)
