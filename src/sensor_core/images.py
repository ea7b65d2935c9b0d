"""Image asset loading and fitting for image elements and backgrounds."""

from __future__ import annotations

import io
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from PIL import Image

from .errors import ImageLoadError
from .model import ImageFit, ImageSource

logger = logging.getLogger(__name__)

AssetLoader = Callable[[str], bytes]


def resize_crop_topleft(img: Image.Image, width: int, height: int) -> Image.Image:
    # Scale to cover, then crop top-left
    w, h = img.size
    scale = max(width / w, height / h)
    new_size = (max(width, int(w * scale + 0.5)), max(height, int(h * scale + 0.5)))
    img_resized = img.resize(new_size, Image.Resampling.LANCZOS)
    return img_resized.crop((0, 0, width, height))


def fit_image(img: Image.Image, size: Tuple[int, int], fit: ImageFit) -> Image.Image:
    if img.size == size:
        return img
    if fit is ImageFit.COVER:
        return resize_crop_topleft(img, *size)
    return img.resize(size, Image.Resampling.LANCZOS)


class ImageLoader:
    """Decodes image sources to RGBA and keeps the results for reuse.

    Embedded bytes are decoded directly. Path references are fetched through
    ``loader`` (by default a plain file read relative to ``asset_dir``).
    Both the decoded and the fitted images are kept in LRU caches of at most
    ``cache_size`` entries each.
    """

    def __init__(
        self,
        loader: Optional[AssetLoader] = None,
        asset_dir: Optional[Path] = None,
        cache_size: int = 64,
    ):
        self._asset_dir = asset_dir
        self._loader = loader
        self._cache_size = cache_size
        self._decoded: "OrderedDict[ImageSource, Image.Image]" = OrderedDict()
        self._fitted: "OrderedDict[Tuple[ImageSource, Tuple[int, int], ImageFit], Image.Image]" = OrderedDict()

    def _remember(self, cache: OrderedDict, key, image: Image.Image) -> None:
        if self._cache_size <= 0:
            return
        cache[key] = image
        if len(cache) > self._cache_size:
            cache.popitem(last=False)

    def _read_file(self, path: str) -> bytes:
        p = Path(path)
        if self._asset_dir is not None and not p.is_absolute():
            p = self._asset_dir / p
        return p.read_bytes()

    def _fetch(self, path: str) -> bytes:
        if self._loader is None:
            try:
                return self._read_file(path)
            except OSError as exc:
                raise ImageLoadError(f"Cannot read image '{path}': {exc}") from exc
        try:
            return self._loader(path)
        except ImageLoadError:
            raise
        except Exception as exc:
            raise ImageLoadError(f"Asset loader failed for '{path}': {exc}") from exc

    def load(self, source: ImageSource) -> Image.Image:
        cached = self._decoded.get(source)
        if cached is not None:
            self._decoded.move_to_end(source)
            return cached

        data = source.data if source.data is not None else self._fetch(source.path)
        what = "embedded image" if source.data is not None else f"image '{source.path}'"
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                decoded = img.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageLoadError(f"Cannot decode {what}: {exc}") from exc

        logger.debug("Decoded %s (%dx%d)", what, *decoded.size)
        self._remember(self._decoded, source, decoded)
        return decoded

    def fitted(self, source: ImageSource, size: Tuple[int, int], fit: ImageFit) -> Image.Image:
        key = (source, size, fit)
        cached = self._fitted.get(key)
        if cached is not None:
            self._fitted.move_to_end(key)
            return cached
        fitted = fit_image(self.load(source), size, fit)
        self._remember(self._fitted, key, fitted)
        return fitted

    def cache_info(self) -> Dict[str, int]:
        return {"decoded": len(self._decoded), "fitted": len(self._fitted)}

    def clear(self) -> None:
        self._decoded.clear()
        self._fitted.clear()


__all__ = ["AssetLoader", "ImageLoader", "fit_image", "resize_crop_topleft"]
