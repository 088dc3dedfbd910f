from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

_LINE_SPLIT = re.compile(r"\r?\n")


class CacheState(BaseModel):
    """Values the restore step hands over to the later store step."""

    model_config = ConfigDict(extra="forbid")

    key: str
    directory: str
    paths: list[str] = Field(default_factory=list)
    compress: bool = False


def save_state(path: str | Path, state: CacheState) -> None:
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)
    state_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")


def load_state(path: str | Path) -> CacheState | None:
    state_path = Path(path)
    if not state_path.exists():
        return None
    try:
        return CacheState.model_validate_json(state_path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ValueError(f"Invalid state file {state_path}: {exc}") from exc


def parse_path_input(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [line.strip() for line in _LINE_SPLIT.split(raw) if line.strip()]
