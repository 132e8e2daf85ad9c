"""Environment-derived settings for the analyzer.

Settings are read once at process start and passed explicitly to the pieces
that need them; nothing else reads the environment.
"""
from __future__ import annotations

import dataclasses
import logging
import os
from typing import Mapping, Optional

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.4
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclasses.dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    log_level: str = "INFO"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        raw_temperature = env.get("INSIGHT_TEMPERATURE", "")
        try:
            temperature = float(raw_temperature) if raw_temperature else DEFAULT_TEMPERATURE
        except ValueError:
            logging.getLogger(__name__).warning(
                "Ignoring invalid INSIGHT_TEMPERATURE=%r", raw_temperature
            )
            temperature = DEFAULT_TEMPERATURE
        return cls(
            api_key=env.get("OPENAI_API_KEY") or None,
            model=env.get("INSIGHT_MODEL") or DEFAULT_MODEL,
            temperature=temperature,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )
