"""
Logging helpers.

CLI runs log to a per-user state directory. Degenerate input that the
flattener absorbs (unreachable vertices, near-zero edges, disconnected
pieces) is only visible here, never raised to the caller.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Optional

ENV_LOG_LEVEL = "UVUNFOLD_LOG_LEVEL"
LOG_FILENAME = "uvunfold.log"

_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOG_ONCE_KEYS: set[str] = set()
_LOG_ONCE_LOCK = threading.Lock()


def default_log_dir() -> Path:
    """Windows: %LOCALAPPDATA%/UVUnfold/logs, 그 외: $XDG_STATE_HOME/uvunfold/logs"""
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        return Path(base or Path.home()) / "UVUnfold" / "logs"
    state_home = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(state_home) / "uvunfold" / "logs"


def _parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper() or "INFO")
    return resolved if isinstance(resolved, int) else logging.INFO


def _file_handler(root: logging.Logger) -> Optional[logging.FileHandler]:
    return next((h for h in root.handlers if isinstance(h, logging.FileHandler)), None)


def setup_logging(
    *,
    log_level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    filename: str = LOG_FILENAME,
) -> Optional[Path]:
    """
    루트 로거에 UTF-8 파일 핸들러를 붙입니다.

    Idempotent: when a file handler is already attached its path is returned
    and nothing is added. ``UVUNFOLD_LOG_LEVEL`` overrides ``log_level``.

    Returns:
        로그 파일 경로 (디렉터리/파일을 만들 수 없으면 None)
    """
    root = logging.getLogger()
    existing = _file_handler(root)
    if existing is not None:
        return Path(existing.baseFilename)

    level = _parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    log_path = Path(log_dir if log_dir is not None else default_log_dir()) / filename
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_path), encoding="utf-8")
    except OSError:
        return None

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(True)

    root.info("Logging initialized: %s (level=%s)", log_path, logging.getLevelName(level))
    return log_path


def log_once(
    logger: logging.Logger,
    key: str,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    key 별로 프로세스당 한 번만 기록

    Returns:
        실제로 기록했으면 True
    """
    with _LOG_ONCE_LOCK:
        if key in _LOG_ONCE_KEYS:
            return False
        _LOG_ONCE_KEYS.add(key)

    logger.log(level, msg, *args, exc_info=exc_info)
    return True
