"""
Session-scoped asset cache for image layers.

Image layers reference their pixels through a string handle. The cache
resolves handles lazily with a loader callable and keeps the decoded RGBA
image for the lifetime of the editing session. Failed loads are not
cached, so a later render retries them.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from PIL import Image, UnidentifiedImageError

from POD_Libs.constants import RASTER_MODE
from POD_Libs.errors import AssetLoadError

logger = logging.getLogger(__name__)

AssetLoader = Callable[[str], Any]


def load_asset_from_path(handle: str) -> Any:
    """Default loader: treat the handle as a filesystem path."""
    try:
        with Image.open(handle) as img:
            return img.convert(RASTER_MODE)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetLoadError(handle, str(e)) from e


class AssetCache:
    """
    Lazily loaded images keyed by handle.

    Args:
        loader: Callable mapping a handle to a PIL Image. Any exception it
                raises is reported as AssetLoadError.
    """

    def __init__(self, loader: Optional[AssetLoader] = None) -> None:
        self._loader = loader or load_asset_from_path
        self._images: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, handle: str) -> bool:
        with self._lock:
            return handle in self._images

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def register(self, handle: str, image: Any) -> None:
        """Store an already decoded image under handle."""
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        with self._lock:
            self._images[handle] = image.convert(RASTER_MODE)

    def get(self, handle: str) -> Any:
        """
        Return the image for handle, loading it on first use.

        Raises:
            AssetLoadError: If the loader fails or returns something that is not an image
        """
        with self._lock:
            cached = self._images.get(handle)
        if cached is not None:
            logger.debug("Asset cache hit: %s", handle)
            return cached

        try:
            image = self._loader(handle)
        except AssetLoadError:
            raise
        except Exception as e:
            raise AssetLoadError(handle, str(e)) from e
        if not hasattr(image, "convert"):
            raise AssetLoadError(handle, f"loader returned {type(image).__name__}")

        image = image.convert(RASTER_MODE)
        with self._lock:
            self._images.setdefault(handle, image)
            return self._images[handle]

    def discard(self, handle: str) -> None:
        with self._lock:
            self._images.pop(handle, None)

    def clear(self) -> None:
        with self._lock:
            count = len(self._images)
            self._images.clear()
        logger.debug("Cleared %d cached assets", count)
