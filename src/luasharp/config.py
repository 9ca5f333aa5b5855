"""JSON settings loading for luasharp.settings.json."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from luasharp.errors import ConfigurationError

SETTINGS_FILENAME = "luasharp.settings.json"
DEFAULT_OUTPUT_EXTENSION = ".lua"

# Settings path located by the first successful lookup of a session.
_cached_settings_file: Path | None = None


@dataclass
class ProjectConfig:
    working_directory: Path
    source_directory: Path
    output_directory: Path
    output_extension: str = DEFAULT_OUTPUT_EXTENSION


def find_settings(directory: Path) -> Path:
    """Return the settings file in the root of *directory*.

    Unlike a project-file search this does not walk up: the settings must
    sit directly in the working directory.
    """
    candidate = directory / SETTINGS_FILENAME
    if not candidate.is_file():
        raise ConfigurationError(
            f"no {SETTINGS_FILENAME} found in {directory}", path=directory,
        )
    return candidate


def cache_settings_file(path: Path) -> None:
    global _cached_settings_file
    _cached_settings_file = path


def cached_settings_file() -> Path | None:
    return _cached_settings_file


def _required_string(data: dict, key: str, path: Path) -> str:
    value = data.get(key)
    if value is None:
        raise ConfigurationError(f"missing required setting '{key}'", path=path)
    if not isinstance(value, str):
        raise ConfigurationError(f"setting '{key}' must be a string", path=path)
    if not value.strip():
        raise ConfigurationError(f"setting '{key}' must not be empty", path=path)
    return value.strip()


def load_config(path: Path, working_dir: Path | None = None) -> ProjectConfig:
    """Parse a settings file into a ProjectConfig.

    Relative directories resolve against *working_dir*, which defaults to
    the directory holding the settings file.
    """
    working_dir = (working_dir or path.parent).resolve()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}", path=path,
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read settings: {e}", path=path) from e

    if not isinstance(data, dict):
        raise ConfigurationError("settings must be a JSON object", path=path)

    source = working_dir / _required_string(data, "SourceDirectory", path)
    output = working_dir / _required_string(data, "OutputDirectory", path)

    extension = data.get("OutputExtension", DEFAULT_OUTPUT_EXTENSION)
    if not isinstance(extension, str) or not extension.strip():
        raise ConfigurationError(
            "setting 'OutputExtension' must be a non-empty string", path=path,
        )
    extension = extension.strip()
    if not extension.startswith("."):
        extension = "." + extension

    if not source.is_dir():
        raise ConfigurationError(
            f"source directory does not exist: {source}", path=path,
        )

    return ProjectConfig(
        working_directory=working_dir,
        source_directory=source.resolve(),
        output_directory=output.resolve(),
        output_extension=extension,
    )


def load_project(directory: Path) -> ProjectConfig:
    """Locate, cache and load the settings of the project in *directory*."""
    settings = cached_settings_file()
    if settings is None or settings.parent != directory.resolve():
        settings = find_settings(directory.resolve())
        cache_settings_file(settings)
    return load_config(settings, directory)
