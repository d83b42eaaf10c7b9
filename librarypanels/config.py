import os


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = str(os.getenv(name, "")).strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


DATABASE_URL = str(
    os.getenv("LIBRARY_PANELS_DATABASE_URL", "sqlite:///./librarypanels/data/library_panels.db")
).strip()
API_PORT = _int_env("LIBRARY_PANELS_API_PORT", 8010)
BIND_HOST = str(os.getenv("LIBRARY_PANELS_BIND_HOST", "0.0.0.0")).strip()
# Feature toggle: when off the service starts without the library panel routes
LIBRARY_PANELS_ENABLED = _bool_env("LIBRARY_PANELS_ENABLED", True)
LOG_LEVEL = str(os.getenv("LIBRARY_PANELS_LOG_LEVEL", "INFO")).strip().upper()
LOG_FILE = os.getenv("LIBRARY_PANELS_LOG_FILE") or None
