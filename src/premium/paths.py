from __future__ import annotations

"""Path helpers so that CLI runs do not depend on the working directory."""

from pathlib import Path


def resolve_base_dir_from_config(config_path: Path) -> Path:
    """
    Directory that relative paths in a config are resolved against.

    This is the closest ancestor of the config file holding a
    ``pyproject.toml``, or the config file's own directory when none does.
    """
    config_dir = config_path.expanduser().resolve().parent
    for candidate in (config_dir, *config_dir.parents):
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return config_dir


def resolve_path(base_dir: Path, raw_path: str | Path | None, default: str | None = None) -> Path:
    if raw_path is None:
        if default is None:
            raise ValueError("A path is required.")
        raw_path = default
    path = Path(raw_path).expanduser()
    return path if path.is_absolute() else base_dir / path
