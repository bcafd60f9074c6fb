import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    default_page_limit: int = 10
    max_page_limit: int = 1000
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def get_settings() -> Settings:
    data_dir = Path(os.getenv("BUDGET_DATA_DIR") or Path.cwd() / ".data")
    db_path = Path(os.getenv("BUDGET_DB_PATH") or data_dir / "budget.sqlite")
    return Settings(
        data_dir=data_dir,
        db_path=db_path,
        default_page_limit=_env_int("BUDGET_DEFAULT_PAGE_LIMIT", 10),
        max_page_limit=_env_int("BUDGET_MAX_PAGE_LIMIT", 1000),
        log_level=(os.getenv("BUDGET_LOG_LEVEL") or "INFO").strip().upper(),
    )
