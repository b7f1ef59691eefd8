"""Errors raised while reading settings from the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ConfigurationError(RuntimeError):
    """A setting is malformed or out of range.

    ``setting`` names the offending environment variable when one is known.
    """

    def __init__(self, message: str, *, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class MissingConfigurationError(ConfigurationError):
    """Required settings (or a whole connector) are absent or blank."""

    def __init__(self, message: str, *, settings: Sequence[str] = ()) -> None:
        super().__init__(message, setting=settings[0] if settings else None)
        self.settings = tuple(settings)
