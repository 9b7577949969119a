# date_gutter/config.py
# Description: Configuration management for the date gutter engine and editor.
#
# Imports
import copy
import sys
if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
from dataclasses import dataclass, field
from pathlib import Path
import toml
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
#
# Third-Party Imports
from loguru import logger
#
#######################################################################################################################
#
# Functions:

# --- Path to the configuration file ---
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "date_gutter" / "config.toml"

BASE_DATA_DIR = Path.home() / ".local" / "share" / "date_gutter"

# --- Defaults ---
DEFAULT_ENABLED_FILE_TYPES = ['.rpgle', '.sqlrpgle', '.clle', '.dds', '.pf', '.lf']
NEW_PREFIX_DATE_POLICIES = ("today", "zero")

CONFIG_TOML_CONTENT = """
# Configuration for the date-gutter editor
# Located at: ~/.config/date_gutter/config.toml
[date_gutter]
enabled = true  # Global kill switch for prefix synchronization and gutter labels
# File extensions the engine acts on. Entries without a leading "." are ignored.
enabled_file_types = [".rpgle", ".sqlrpgle", ".clle", ".dds", ".pf", ".lf"]
coalesce_delay_ms = 50  # Quiet period before queued corrections are committed
max_pending_corrections = 256  # Commit immediately once this many lines are queued
new_prefix_date = "today"  # Date written into freshly inserted prefixes: "today" or "zero"

[logging]
log_level = "INFO"  # Console Log Level: DEBUG, INFO, WARNING, ERROR, CRITICAL
log_filename = "date_gutter.log"  # Placed under ~/.local/share/date_gutter/
file_log_level = "DEBUG"
log_rotation = "10 MB"
log_retention = 5
"""

try:
    DEFAULT_CONFIG_FROM_TOML = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"Default configuration is not valid TOML: {e}")
    DEFAULT_CONFIG_FROM_TOML = {}


# --- Helper for deep merging dictionaries ---
def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges update_dict into base_dict."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Primary Configuration Loading Logic ---
_CONFIG_CACHE: Optional[Dict[str, Any]] = None
_CONFIG_CACHE_PATH: Optional[Path] = None


def load_cli_config_and_ensure_existence(force_reload: bool = False,
                                         config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Loads settings from ~/.config/date_gutter/config.toml.
    If the file doesn't exist, it's created with default values from CONFIG_TOML_CONTENT.
    Uses programmatic defaults (from CONFIG_TOML_CONTENT) as a base.
    """
    global _CONFIG_CACHE, _CONFIG_CACHE_PATH
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if _CONFIG_CACHE is not None and not force_reload and _CONFIG_CACHE_PATH == config_path:
        return _CONFIG_CACHE

    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not config_path.exists():
        logger.info(f"Config file not found at {config_path}. Creating with default values.")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(CONFIG_TOML_CONTENT)
            logger.info(f"Created default config file at {config_path}")
        except OSError as e:
            logger.error(f"Could not create default config file {config_path}: {e}. Using internal defaults.")
    else:
        logger.info(f"Attempting to load config from: {config_path}")
        try:
            with open(config_path, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
            logger.info(f"Successfully loaded and merged config from {config_path}")
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML config file {config_path}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {config_path}: {e}. Using internal defaults.")

    _CONFIG_CACHE = loaded_config
    _CONFIG_CACHE_PATH = config_path
    logger.debug(f"load_cli_config_and_ensure_existence returning config with top-level keys: {list(loaded_config.keys())}")
    return _CONFIG_CACHE


def save_setting_to_cli_config(section: str, key: str, value: Any,
                               config_path: Optional[Path] = None) -> bool:
    """
    Saves a specific setting to the user's TOML configuration file.

    Reads the current file, updates `key` inside `section` (dotted sections
    are nested tables), writes the whole file back, and forces a reload of
    the config cache.

    Returns:
        True if the setting was saved successfully, False otherwise.
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    logger.info(f"Attempting to save setting: [{section}].{key} = {repr(value)}")

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create config directory {config_path.parent}: {e}")
        return False

    config_data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Corrupted config file at {config_path}. Cannot save. Please fix or delete it. Error: {e}")
            return False
        except OSError as e:
            logger.error(f"Unexpected error reading {config_path}: {e}")
            return False

    current_level = config_data
    try:
        for part in section.split('.'):
            current_level = current_level.setdefault(part, {})
        current_level[key] = value
    except (TypeError, AttributeError):
        logger.error(
            f"Configuration structure conflict. Could not set '{key}' in section '{section}' "
            f"because a part of the path is not a table."
        )
        return False

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)
        logger.success(f"Successfully saved setting to {config_path}")
        load_cli_config_and_ensure_existence(force_reload=True, config_path=config_path)
        return True
    except (IOError, TypeError) as e:
        logger.error(f"Failed to write updated config to {config_path}: {e}")
        return False


def get_cli_log_file_path(config: Optional[Dict[str, Any]] = None) -> Path:
    """Log file location, next to the rest of the application data."""
    config = config if config is not None else load_cli_config_and_ensure_existence()
    log_filename = config.get("logging", {}).get("log_filename", "date_gutter.log")
    return BASE_DATA_DIR / log_filename


def normalize_file_types(entries: Iterable[Any]) -> Tuple[str, ...]:
    """Lower-case the allow-list and drop entries that don't start with '.'."""
    normalized: List[str] = []
    for entry in entries or ():
        if not isinstance(entry, str):
            continue
        entry = entry.strip().lower()
        if len(entry) < 2 or not entry.startswith('.'):
            logger.debug(f"Ignoring enabled_file_types entry without a leading dot: {entry!r}")
            continue
        if entry not in normalized:
            normalized.append(entry)
    return tuple(normalized)


@dataclass(frozen=True)
class GutterSettings:
    """Immutable snapshot of the [date_gutter] section."""
    enabled: bool = True
    enabled_file_types: Tuple[str, ...] = field(default_factory=lambda: tuple(DEFAULT_ENABLED_FILE_TYPES))
    coalesce_delay_ms: int = 50
    max_pending_corrections: int = 256
    new_prefix_date: str = "today"

    @property
    def coalesce_delay(self) -> float:
        return self.coalesce_delay_ms / 1000.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GutterSettings":
        section = config.get("date_gutter", {}) if isinstance(config, dict) else {}
        if not isinstance(section, dict):
            section = {}

        policy = str(section.get("new_prefix_date", "today")).lower()
        if policy not in NEW_PREFIX_DATE_POLICIES:
            logger.warning(f"Unknown new_prefix_date policy {policy!r}; falling back to 'today'")
            policy = "today"

        try:
            delay_ms = max(0, int(section.get("coalesce_delay_ms", 50)))
        except (TypeError, ValueError):
            logger.warning("coalesce_delay_ms is not an integer; using 50")
            delay_ms = 50
        try:
            max_pending = max(1, int(section.get("max_pending_corrections", 256)))
        except (TypeError, ValueError):
            logger.warning("max_pending_corrections is not an integer; using 256")
            max_pending = 256

        return cls(
            enabled=bool(section.get("enabled", True)),
            enabled_file_types=normalize_file_types(section.get("enabled_file_types", DEFAULT_ENABLED_FILE_TYPES)),
            coalesce_delay_ms=delay_ms,
            max_pending_corrections=max_pending,
            new_prefix_date=policy,
        )


class SettingsProvider:
    """
    Holds the current settings snapshot and a generation counter.

    Readers on the hot path only touch `settings` and `generation`; nothing is
    re-read from disk until `invalidate()` is called from a configuration
    change notification.
    """

    def __init__(self, settings: Optional[GutterSettings] = None,
                 loader: Optional[Callable[[], GutterSettings]] = None):
        self._loader = loader
        if settings is None:
            settings = loader() if loader is not None else GutterSettings()
        self._settings = settings
        self.generation = 0
        self._listeners: List[Callable[[GutterSettings], None]] = []

    @classmethod
    def from_config_file(cls, config_path: Optional[Path] = None) -> "SettingsProvider":
        def _load() -> GutterSettings:
            config = load_cli_config_and_ensure_existence(force_reload=True, config_path=config_path)
            return GutterSettings.from_config(config)
        return cls(loader=_load)

    @property
    def settings(self) -> GutterSettings:
        return self._settings

    def add_listener(self, listener: Callable[[GutterSettings], None]) -> None:
        self._listeners.append(listener)

    def update(self, settings: GutterSettings) -> None:
        """Replace the snapshot and notify listeners."""
        self._settings = settings
        self.generation += 1
        logger.debug(f"Settings generation {self.generation}: {settings}")
        for listener in list(self._listeners):
            try:
                listener(settings)
            except Exception as e:
                logger.exception(f"Settings listener failed: {e}")

    def invalidate(self) -> None:
        """Reload from the configured source (if any) and bump the generation."""
        settings = self._loader() if self._loader is not None else self._settings
        self.update(settings)

#
# End of config.py
#######################################################################################################################
