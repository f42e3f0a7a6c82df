"""
Compiler defaults, optionally persisted per user as JSON (platformdirs).

The defaults cover what the compiler injects when a layer leaves a style
unset: marker size scaling, the colour and band of smoothed fits, the
outline of density curves.

On-disk rules:
- no file -> built-in defaults (nothing is written unless asked)
- unreadable / invalid JSON / not an object -> built-in defaults, warning
- other schema_version -> built-in defaults, or keep the values and stamp
  the current version when ``reset_on_version_mismatch=False``
- unknown keys and uncoercible values are skipped with a warning
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

# Bump on incompatible changes to the JSON layout.
SCHEMA_VERSION: int = 1

APP_NAME = "ggtraces"
CONFIG_FILENAME = "compiler_config.json"


@dataclass
class CompilerConfig:
    """Style defaults used while compiling; primitives only so it maps onto JSON."""
    schema_version: int = SCHEMA_VERSION
    marker_size_mult: float = 10.0       # scale of normalized marker sizes
    marker_sizeref: float = 1.0          # plotly marker.sizeref for mapped sizes
    smooth_line_colour: str = "#3366FF"
    smooth_ribbon_alpha: float = 0.2
    smooth_ribbon_fill: str = "grey60"
    density_line_colour: str = "black"

    def to_json_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "CompilerConfig":
        """Build a config from parsed JSON, skipping what cannot be used.

        Each value is coerced to the type of the field's default. A missing
        ``schema_version`` is recorded as -1 so callers treat it as foreign.
        """
        defaults = cls()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {"schema_version": -1}
        for key, raw in d.items():
            if key not in known:
                logger.warning(f"Ignoring unknown compiler config key '{key}'")
                continue
            kind = type(getattr(defaults, key))
            try:
                values[key] = kind(raw)
            except (TypeError, ValueError):
                logger.warning(f"Compiler config key '{key}' has unusable value {raw!r}; keeping default")
        return cls(**values)


def _read_json_object(path: Path) -> Optional[Dict[str, Any]]:
    """Parsed JSON object at ``path``; None (with a warning) when it cannot be used.

    Raises:
        FileNotFoundError: If there is no file at ``path``.
    """
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning(f"{path} is not valid JSON ({e}); using compiler defaults")
        return None
    except FileNotFoundError:
        raise
    except OSError as e:
        logger.warning(f"Cannot read {path} ({e}); using compiler defaults")
        return None
    if not isinstance(parsed, dict):
        logger.warning(f"{path} does not hold a JSON object; using compiler defaults")
        return None
    return parsed


class CompilerConfigStore:
    """A CompilerConfig bound to the file it is loaded from and saved to.

    The compiler never reads files itself: a caller loads the store once and
    hands ``store.data`` to ``PlotContext(config=...)``.
    """

    def __init__(self, *, path: Path, data: Optional[CompilerConfig] = None):
        self.path = path
        self.data = data if data is not None else CompilerConfig()

    @staticmethod
    def default_config_path(
        app_name: str = APP_NAME,
        filename: str = CONFIG_FILENAME,
        app_author: str | None = None,
    ) -> Path:
        """
        Per-user location of the config file, e.g.

        Linux:   ~/.config/ggtraces/compiler_config.json
        macOS:   ~/Library/Application Support/ggtraces/compiler_config.json
        Windows: %APPDATA%\\ggtraces\\compiler_config.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = APP_NAME,
        filename: str = CONFIG_FILENAME,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "CompilerConfigStore":
        """Load the store; never raises for a missing or broken file.

        Args:
            config_path: Explicit file; defaults to ``default_config_path()``.
            schema_version: Version the caller understands.
            reset_on_version_mismatch: Use defaults for a file of another version
                (otherwise keep its values under the current version).
            create_if_missing: Write the defaults when there is no file yet.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename)
        defaults = CompilerConfig(schema_version=schema_version)

        try:
            parsed = _read_json_object(path)
        except FileNotFoundError:
            logger.debug(f"No compiler config at {path}; using defaults")
            store = cls(path=path, data=defaults)
            if create_if_missing:
                store.save()
            return store
        if parsed is None:
            return cls(path=path, data=defaults)

        loaded = CompilerConfig.from_json_dict(parsed)
        if loaded.schema_version != schema_version:
            if reset_on_version_mismatch:
                logger.warning(
                    f"Compiler config at {path} has schema {loaded.schema_version}, "
                    f"expected {schema_version}; using defaults"
                )
                return cls(path=path, data=defaults)
            loaded.schema_version = schema_version
        return cls(path=path, data=loaded)

    def save(self) -> None:
        """Write the config as indented JSON, creating parent folders.

        Raises:
            OSError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data.to_json_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not save compiler config to {self.path}: {e}")
            raise
        logger.info(f"Saved compiler config to {self.path}")
