"""Schema migrations for the canonical product store."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from stockbridge.config import get_database_config

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _alembic_options() -> dict[str, str]:
    """``[tool.alembic]`` of a source checkout; an installed wheel has none."""

    if not PYPROJECT_PATH.is_file():
        return {}
    document = tomllib.loads(PYPROJECT_PATH.read_text(encoding="utf-8"))
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def _in_project(path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else (PROJECT_ROOT / candidate).resolve()


def build_config() -> Config:
    """Alembic config that always points at the scripts shipped with this package."""

    options = _alembic_options()
    config = Config(toml_file=str(PYPROJECT_PATH)) if options else Config()

    configured = options.pop("script_location", None)
    scripts = _in_project(configured) if configured else MIGRATIONS_PATH
    config.set_main_option("script_location", str(scripts if scripts.exists() else MIGRATIONS_PATH))

    prepend = options.pop("prepend_sys_path", None)
    if prepend:
        config.set_main_option("prepend_sys_path", str(_in_project(prepend)))
    for key, value in options.items():
        config.set_main_option(key, value)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the store to the latest revision, reusing ``engine`` when given."""

    config = build_config()
    if engine is None:
        config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
        command.upgrade(config, "head")
        return
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
