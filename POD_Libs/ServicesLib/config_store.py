"""
Configuration store for POD Studio.

A small JSON-backed key-value store holding the list- and map-valued
settings the studio reads at run time:

- styles: list of style preset names
- mockups: category -> list of mockup image URLs
- textures: list of {"name", "url"} texture presets
- api_keys: provider credential map

Missing, corrupt or wrongly shaped stored values fall back to the
defaults. Without a path the store lives in memory only.

Example:
    >>> store = ConfigStore(Path("~/.pod_studio/pod_studio_config.json").expanduser())
    >>> store.add_style("Risograph Print")
    >>> chain = ProviderChain(providers, credentials=store.get_api_keys)
"""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from POD_Libs.constants import (
    CREDENTIAL_KEYS,
    MOCKUP_CATEGORIES,
    STORE_API_KEYS,
    STORE_MOCKUPS,
    STORE_STYLES,
    STORE_TEXTURES,
)

logger = logging.getLogger(__name__)

DEFAULT_STYLES = [
    "Keith Haring Street",
    "Basquiat Neo-Expressionist",
    "Takashi Murakami Superflat",
    "Yayoi Kusama Polka Dot",
    "Banksy Stencil Art",
    "Jeff Koons Balloon",
    "Shepard Fairey Obey",
    "David Hockney Pop",
    "Andy Warhol Pop Art",
    "Roy Lichtenstein Comic",
    "Henri Matisse Cut-outs",
    "Bridget Riley Op Art",
    "Modern Vector Minimal",
    "Organic Watercolor",
]

DEFAULT_MOCKUPS = {
    "apparel": [
        "https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?q=80&w=800&auto=format&fit=crop",
        "https://images.unsplash.com/photo-1503341455253-b2e723099de5?q=80&w=800&auto=format&fit=crop",
        "https://images.unsplash.com/photo-1556905055-8f358a7a47b2?q=80&w=800&auto=format&fit=crop",
    ],
    "home": [
        "https://images.unsplash.com/photo-1514228742587-6b1558fcca3d?q=80&w=800&auto=format&fit=crop",
        "https://images.unsplash.com/photo-1584100936595-c0654b55a2e6?q=80&w=800&auto=format&fit=crop",
        "https://plus.unsplash.com/premium_photo-1675808560942-83416b0808b2?q=80&w=800&auto=format&fit=crop",
    ],
    "accessories": [
        "https://images.unsplash.com/photo-1578353022142-091753d59042?q=80&w=800&auto=format&fit=crop",
        "https://images.unsplash.com/photo-1588645065097-9e7978255b91?q=80&w=800&auto=format&fit=crop",
    ],
}

DEFAULT_TEXTURES = [
    {"name": "Grunge", "url": "https://images.unsplash.com/photo-1621193677201-657c6b547849?q=80&w=500&auto=format&fit=crop"},
    {"name": "Paper", "url": "https://images.unsplash.com/photo-1577610537482-1698e5473489?q=80&w=500&auto=format&fit=crop"},
    {"name": "Canvas", "url": "https://images.unsplash.com/photo-1550684848-fac1c5b4e853?q=80&w=500&auto=format&fit=crop"},
    {"name": "Noise", "url": "https://images.unsplash.com/photo-1550684847-75bdda21cc95?q=80&w=500&auto=format&fit=crop"},
]


def _default_api_keys() -> Dict[str, str]:
    return {key: "" for key in CREDENTIAL_KEYS}


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_texture_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(item, dict) and isinstance(item.get("name"), str) and isinstance(item.get("url"), str)
        for item in value
    )


def _check_category(category: str) -> None:
    if category not in MOCKUP_CATEGORIES:
        raise ValueError(f"Unknown mockup category: {category}. Expected one of {MOCKUP_CATEGORIES}")


class ConfigStore:
    """
    Persistent studio settings.

    Args:
        path: JSON file to persist to, or None for an in-memory store
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._memory: Dict[str, Any] = {}
        self._lock = threading.RLock()

    # ========================================================================
    # Raw storage
    # ========================================================================

    def _read_all(self) -> Dict[str, Any]:
        if self.path is None:
            return copy.deepcopy(self._memory)
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Config store %s unreadable, using defaults: %s", self.path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Config store %s is not a JSON object, using defaults", self.path)
            return {}
        return payload

    def _write_all(self, payload: Dict[str, Any]) -> None:
        if self.path is None:
            self._memory = copy.deepcopy(payload)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _get(self, key: str) -> Any:
        with self._lock:
            return self._read_all().get(key)

    def _set(self, key: str, value: Any) -> None:
        with self._lock:
            payload = self._read_all()
            payload[key] = value
            self._write_all(payload)

    # ========================================================================
    # Styles
    # ========================================================================

    def get_styles(self) -> List[str]:
        stored = self._get(STORE_STYLES)
        return list(stored) if _is_string_list(stored) else list(DEFAULT_STYLES)

    def add_style(self, style: str) -> List[str]:
        with self._lock:
            updated = self.get_styles() + [style]
            self._set(STORE_STYLES, updated)
        return updated

    def remove_style(self, style: str) -> List[str]:
        with self._lock:
            updated = [s for s in self.get_styles() if s != style]
            self._set(STORE_STYLES, updated)
        return updated

    # ========================================================================
    # Mockups
    # ========================================================================

    def get_mockups(self) -> Dict[str, List[str]]:
        stored = self._get(STORE_MOCKUPS)
        if not isinstance(stored, dict):
            stored = {}
        mockups = {}
        for category in MOCKUP_CATEGORIES:
            value = stored.get(category)
            valid = _is_string_list(value) and len(value) > 0
            mockups[category] = list(value) if valid else list(DEFAULT_MOCKUPS[category])
        return mockups

    def add_mockup(self, category: str, url: str) -> Dict[str, List[str]]:
        _check_category(category)
        with self._lock:
            mockups = self.get_mockups()
            mockups[category].append(url)
            self._set(STORE_MOCKUPS, mockups)
        return mockups

    def remove_mockup(self, category: str, url: str) -> Dict[str, List[str]]:
        _check_category(category)
        with self._lock:
            mockups = self.get_mockups()
            mockups[category] = [u for u in mockups[category] if u != url]
            self._set(STORE_MOCKUPS, mockups)
        return mockups

    # ========================================================================
    # Textures
    # ========================================================================

    def get_textures(self) -> List[Dict[str, str]]:
        stored = self._get(STORE_TEXTURES)
        source = stored if _is_texture_list(stored) else DEFAULT_TEXTURES
        return [dict(texture) for texture in source]

    def add_texture(self, name: str, url: str) -> List[Dict[str, str]]:
        with self._lock:
            updated = self.get_textures() + [{"name": name, "url": url}]
            self._set(STORE_TEXTURES, updated)
        return updated

    def remove_texture(self, url: str) -> List[Dict[str, str]]:
        with self._lock:
            updated = [t for t in self.get_textures() if t["url"] != url]
            self._set(STORE_TEXTURES, updated)
        return updated

    # ========================================================================
    # Credentials
    # ========================================================================

    def get_api_keys(self) -> Dict[str, str]:
        keys = _default_api_keys()
        stored = self._get(STORE_API_KEYS)
        if isinstance(stored, dict):
            keys.update({str(k): str(v) for k, v in stored.items() if isinstance(v, str)})
        return keys

    def save_api_keys(self, keys: Dict[str, str]) -> None:
        self._set(STORE_API_KEYS, {str(k): str(v) for k, v in keys.items()})
        logger.info("Saved credentials for %s", sorted(k for k, v in keys.items() if v))

    def reset_to_defaults(self) -> None:
        with self._lock:
            payload = self._read_all()
            for key in (STORE_STYLES, STORE_MOCKUPS, STORE_TEXTURES, STORE_API_KEYS):
                payload.pop(key, None)
            self._write_all(payload)
        logger.info("Config store reset to defaults")
