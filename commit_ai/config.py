"""Settings and credential discovery.

Keys are looked up in `.env` files from the working directory outward, then
in the process environment. Gemini is preferred over OpenAI: the first
source that yields GEMINI_API_KEY ends the search, while an OPENAI_API_KEY
only ends it if nothing else turns up. An OPENAI_API_KEY exported in the
environment is still picked up as the fallback when the search stops early.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Tuple

from dotenv import dotenv_values

from commit_ai.errors import ConfigError, ConfigNotFoundError

logger = logging.getLogger("commit_ai")

GEMINI = "gemini"
OPENAI = "openai"

GEMINI_KEY_NAME = "GEMINI_API_KEY"
OPENAI_KEY_NAME = "OPENAI_API_KEY"

ENVIRONMENT_SOURCE = "<environment>"

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.5
DEFAULT_TIMEOUT = 60.0
DEFAULT_SEARCH_DEPTH = 3
DEFAULT_ENV_FILENAMES = (".env", ".env.local")


@dataclass(frozen=True)
class Settings:
    gemini_model: str = DEFAULT_GEMINI_MODEL
    openai_model: str = DEFAULT_OPENAI_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT
    search_depth: int = DEFAULT_SEARCH_DEPTH
    env_filenames: Tuple[str, ...] = DEFAULT_ENV_FILENAMES
    log_dir: Optional[str] = None


@dataclass(frozen=True)
class Credentials:
    """Resolved API keys. `provider` is the one to try first."""

    provider: str
    gemini_key: Optional[str] = field(default=None, repr=False)
    openai_key: Optional[str] = field(default=None, repr=False)
    sources: Mapping[str, str] = field(default_factory=dict)

    def key_for(self, provider: str) -> Optional[str]:
        return self.gemini_key if provider == GEMINI else self.openai_key

    @property
    def fallback(self) -> Optional[str]:
        """The other provider, if its key is available."""
        other = OPENAI if self.provider == GEMINI else GEMINI
        return other if self.key_for(other) else None


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Builds Settings from environment variables."""
    if environ is None:
        environ = os.environ
    timeout = _number(environ, "COMMIT_AI_TIMEOUT", DEFAULT_TIMEOUT, float)
    if timeout == 0:
        raise ConfigError("COMMIT_AI_TIMEOUT must be greater than zero")
    return Settings(
        gemini_model=environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        openai_model=environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        temperature=_number(environ, "COMMIT_AI_TEMPERATURE", DEFAULT_TEMPERATURE, float),
        timeout=timeout,
        search_depth=_number(environ, "COMMIT_AI_SEARCH_DEPTH", DEFAULT_SEARCH_DEPTH, int),
        log_dir=environ.get("COMMIT_AI_LOG_DIR") or None,
    )


def candidate_files(start_dir: str, settings: Settings) -> List[Path]:
    """Config files to scan, closest directory first.

    Within one directory the order of settings.env_filenames applies, so the
    scan order is total and does not depend on the filesystem.
    """
    directory = Path(start_dir).resolve()
    directories = [directory] + list(directory.parents)[: settings.search_depth]
    files = []
    for d in directories:
        for name in settings.env_filenames:
            path = d / name
            if path.is_file():
                files.append(path)
    return files


def iter_sources(
    start_dir: str, settings: Settings, environ: Optional[Mapping[str, str]] = None
) -> Iterator[Tuple[str, Mapping[str, Optional[str]]]]:
    """Yields (source name, key-value mapping) pairs in scan order."""
    for path in candidate_files(start_dir, settings):
        logger.debug(f"Reading config file: {path}")
        yield str(path), dotenv_values(path)
    if environ is None:
        environ = os.environ
    yield ENVIRONMENT_SOURCE, environ


def resolve_credentials(
    start_dir: str = ".", settings: Optional[Settings] = None, environ: Optional[Mapping[str, str]] = None
) -> Credentials:
    """Finds the API keys to use, preferring Gemini."""
    if settings is None:
        settings = Settings()
    if environ is None:
        environ = os.environ

    openai_key = None
    openai_source = None
    for source, values in iter_sources(start_dir, settings, environ):
        if openai_key is None and values.get(OPENAI_KEY_NAME):
            openai_key = values[OPENAI_KEY_NAME]
            openai_source = source
            logger.info(f"Found {OPENAI_KEY_NAME} in {source}")

        gemini_key = values.get(GEMINI_KEY_NAME)
        if gemini_key:
            logger.info(f"Found {GEMINI_KEY_NAME} in {source}")
            if openai_key is None and environ.get(OPENAI_KEY_NAME):
                # the search stops here, but an exported key still serves as the fallback
                openai_key = environ[OPENAI_KEY_NAME]
                openai_source = ENVIRONMENT_SOURCE
                logger.info(f"Found {OPENAI_KEY_NAME} in {ENVIRONMENT_SOURCE}")
            sources = {GEMINI: source}
            if openai_key:
                sources[OPENAI] = openai_source
            return Credentials(GEMINI, gemini_key=gemini_key, openai_key=openai_key, sources=sources)

    if openai_key:
        return Credentials(OPENAI, openai_key=openai_key, sources={OPENAI: openai_source})

    raise ConfigNotFoundError(
        f"No API key found. Set {GEMINI_KEY_NAME} or {OPENAI_KEY_NAME} in a .env file or the environment."
    )


def mask(key: Optional[str]) -> str:
    if not key:
        return "-"
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"
