import os
import json
import logging
from dataclasses import dataclass, asdict, fields
from typing import Dict, Optional

# The logger factory reads settings, so this module uses plain logging
logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "I18NBUNDLE_CONFIG"
CONFIG_FILE = "i18nbundle.json"


@dataclass
class BundleSettings:
    """
    Tunables shared by all documents.

    new_unit_target_prefix / new_unit_target_suffix decorate the copied
    source text of a freshly imported draft translation (never ICU content).
    """
    new_unit_target_prefix: str = ""
    new_unit_target_suffix: str = ""
    log_level: str = "WARNING"
    log_file: Optional[str] = None


class SettingsManager:
    """
    Loads BundleSettings from a JSON file over the built-in defaults.
    The file is taken from $I18NBUNDLE_CONFIG, else ./i18nbundle.json.
    """
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR, CONFIG_FILE)
        self.settings = BundleSettings(**self._load_config())

    def _load_config(self) -> Dict:
        if not os.path.exists(self.config_path):
            return {}
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load config {self.config_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Config {self.config_path} must contain a JSON object")
            return {}

        known = {f.name for f in fields(BundleSettings)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return {k: v for k, v in data.items() if k in known}

    def save_config(self):
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self.settings), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save config: {e}")


_settings: Optional[BundleSettings] = None


def get_settings() -> BundleSettings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = SettingsManager().settings
    return _settings


def set_settings(settings: Optional[BundleSettings]):
    """Replace the process-wide settings (None reloads from disk on next use)."""
    global _settings
    _settings = settings
