"""Environment helpers with optional Docker secret file support."""

from __future__ import annotations

from pathlib import Path
import os


def get_env(name: str, default: str = "") -> str:
    """Resolve environment value with optional *_FILE fallback."""
    value = os.getenv(name)
    if value is not None and value.strip() != "":
        return value.strip()

    file_path = (os.getenv(f"{name}_FILE") or "").strip()
    if not file_path:
        return default
    try:
        secret = Path(file_path).read_text(encoding="utf-8").strip()
    except OSError:
        return default
    return secret or default


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_csv(name: str, default: list[str] | None = None) -> list[str]:
    raw = os.getenv(name, "")
    items = [item.strip() for item in raw.split(",") if item.strip()]
    if items:
        return items
    return list(default or [])
