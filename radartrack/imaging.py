import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
import requests

from radartrack.errors import ImageLoadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedImage:
    """RGBA pixels of a decoded image, shape (height, width, 4), dtype uint8."""
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def pixel(self, x, y):
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    @classmethod
    def from_array(cls, array, bgr=False):
        """Wrap an RGB(A) array, or a BGR(A) array as returned by OpenCV when bgr=True."""
        return cls(to_rgba(array, bgr=bgr))


def to_rgba(image, bgr=True):
    img = np.asarray(image)
    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f'Unsupported image shape: {img.shape}')
    if img.shape[2] == 3:
        code = cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA
        return cv2.cvtColor(img, code)
    if bgr:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    return np.ascontiguousarray(img)


def decode_image(data, source='<bytes>'):
    """Decode encoded image bytes (PNG, JPEG, GIF frame...) into a DecodedImage."""
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise ImageLoadFailed(source, 'empty response')
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageLoadFailed(source, 'could not decode image data')
    return DecodedImage(to_rgba(img))


def _is_url(source):
    return str(source).lower().startswith(('http://', 'https://'))


def load_image(source, session=None, timeout=10.0):
    """Load a legend or frame image from a path or an http(s) URL.

    Raises ImageLoadFailed when the image cannot be fetched or decoded.
    """
    if isinstance(source, DecodedImage):
        return source
    if _is_url(source):
        http = session or requests
        try:
            r = http.get(str(source), timeout=timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise ImageLoadFailed(source, str(e)) from e
        logger.debug('Fetched %d bytes from %s', len(r.content), source)
        return decode_image(r.content, source=source)

    path = Path(source)
    if not path.exists():
        raise ImageLoadFailed(source, 'file not found')
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageLoadFailed(source, 'could not decode image file')
    return DecodedImage(to_rgba(img))
