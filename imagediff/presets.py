# imagediff/presets.py
"""
Named configuration bundles: built-in presets plus custom presets kept in a
JSON file, keyed by id.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import copy
import json
import logging
import os

from dotenv import load_dotenv

from imagediff.config import DiffConfig

load_dotenv()
logging.basicConfig(level=logging.INFO)

DEFAULT_PRESETS_FILE = "custom_presets.json"
CUSTOM_ICON = "⭐"

BUILTIN_PRESETS: Dict[str, Dict[str, Any]] = {
    "material-comparison": {
        "name": "Material Comparison",
        "description": "Optimized for comparing finishes, tiles, and fabrics",
        "icon": "🏗️",
        "settings": {
            "threshold": 0.6,
            "blurRadius": 3,
            "useBlockComparison": True,
            "blockSize": 16,
            "minRegionSize": 15,
            "useFlexibleMatching": True,
            "flexibleSensitivity": 0.9,
            "autoAlign": True,
            "showOutlines": True,
            "opacity": 0.4,
        },
    },
    "room-redesign": {
        "name": "Room Redesign",
        "description": "Settings for before/after room transformations",
        "icon": "🏠",
        "settings": {
            "threshold": 0.5,
            "blurRadius": 2,
            "useBlockComparison": False,
            "blockSize": 16,
            "minRegionSize": 20,
            "useFlexibleMatching": False,
            "flexibleSensitivity": 0.8,
            "autoAlign": True,
            "showOutlines": True,
            "opacity": 0.5,
        },
    },
    "fixture-selection": {
        "name": "Fixture Selection",
        "description": "For comparing lighting, hardware, and fixtures",
        "icon": "💡",
        "settings": {
            "threshold": 0.4,
            "blurRadius": 1,
            "useBlockComparison": False,
            "blockSize": 16,
            "minRegionSize": 10,
            "useFlexibleMatching": False,
            "flexibleSensitivity": 0.8,
            "autoAlign": True,
            "showOutlines": True,
            "opacity": 0.6,
        },
    },
    "color-matching": {
        "name": "Color Matching",
        "description": "Strict comparison for paint and color samples",
        "icon": "🎨",
        "settings": {
            "threshold": 0.2,
            "blurRadius": 0,
            "useBlockComparison": False,
            "blockSize": 16,
            "minRegionSize": 5,
            "useFlexibleMatching": False,
            "flexibleSensitivity": 0.8,
            "autoAlign": True,
            "showOutlines": False,
            "opacity": 0.7,
        },
    },
    "construction-progress": {
        "name": "Construction Progress",
        "description": "For site photos with alignment focus",
        "icon": "🚧",
        "settings": {
            "threshold": 0.7,
            "blurRadius": 4,
            "useBlockComparison": True,
            "blockSize": 20,
            "minRegionSize": 30,
            "useFlexibleMatching": True,
            "flexibleSensitivity": 1.0,
            "autoAlign": True,
            "showOutlines": True,
            "opacity": 0.5,
        },
    },
}


def default_presets_path() -> Path:
    return Path(os.getenv("IMAGEDIFF_PRESETS_PATH", DEFAULT_PRESETS_FILE))


class PresetStore:
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else default_presets_path()

    @staticmethod
    def builtin_presets() -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(BUILTIN_PRESETS)

    def load_custom(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                custom = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"Error loading custom presets from '{self.path}': {e}")
            return {}
        if not isinstance(custom, dict):
            logging.warning(f"Ignoring malformed custom presets file '{self.path}'")
            return {}
        return custom

    def save_custom(self, preset_id: str, name: str, description: str, settings: Dict[str, Any]) -> bool:
        custom = self.load_custom()
        custom[preset_id] = {
            "name": name,
            "description": description,
            "icon": CUSTOM_ICON,
            "settings": dict(settings),
        }
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(custom, f, indent=2, ensure_ascii=False)
            return True
        except (OSError, TypeError) as e:
            logging.error(f"Error saving custom preset '{preset_id}': {e}")
            return False

    def all_presets(self) -> Dict[str, Dict[str, Any]]:
        """Built-in presets overlaid with custom ones; custom wins on id clashes."""
        presets = self.builtin_presets()
        presets.update(self.load_custom())
        return presets

    def get(self, preset_id: str) -> Dict[str, Any]:
        preset = self.all_presets().get(preset_id)
        if not preset or not isinstance(preset.get("settings"), dict):
            raise KeyError(f"Preset not found: {preset_id}")
        return preset

    def config_for(self, preset_id: str) -> DiffConfig:
        return DiffConfig.from_dict(self.get(preset_id)["settings"])
