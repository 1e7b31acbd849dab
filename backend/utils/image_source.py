# backend/utils/image_source.py
"""
Image Source —— 把句柄解码成 BGR 图像
Turns an opaque image handle into a decoded BGR raster:
  1. numpy 数组（直接使用）
  2. 编码后的字节（JPEG/PNG ...）
  3. http(s) URL
  4. 本地文件路径
Load failures never raise: they are logged and come back as None.
"""

import os
import logging
from typing import Any, Optional, Tuple

import cv2
import numpy as np
import requests

logger = logging.getLogger(__name__)


class ImageSource:
    """Decode image handles for the polygon editor."""

    def __init__(self, timeout: int = 30, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def load(self, handle: Any) -> Optional[np.ndarray]:
        """
        加载图像 | Load an image.

        Args:
            handle: ndarray, encoded bytes, http(s) URL or file path

        Returns:
            BGR image (H, W, 3) or None on any failure.
        """
        if handle is None:
            return None
        try:
            if isinstance(handle, np.ndarray):
                image = handle
            elif isinstance(handle, (bytes, bytearray)):
                image = self._decode(bytes(handle))
            elif isinstance(handle, str) and handle.startswith(("http://", "https://")):
                response = self.session.get(handle, timeout=self.timeout)
                response.raise_for_status()
                image = self._decode(response.content)
            elif isinstance(handle, (str, os.PathLike)):
                image = cv2.imread(os.fspath(handle), cv2.IMREAD_UNCHANGED)
            else:
                logger.error(f"❌ Unsupported image handle type: {type(handle)}")
                return None
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Image download failed: {e}")
            return None
        except (cv2.error, OSError, ValueError) as e:
            logger.error(f"❌ Image load failed: {e}")
            return None

        if image is None or image.size == 0:
            logger.warning(f"⚠️ Could not decode image from {self._describe(handle)}")
            return None
        return self._to_bgr(image)

    @staticmethod
    def size(image: np.ndarray) -> Tuple[int, int]:
        """(width, height)"""
        height, width = image.shape[:2]
        return width, height

    # ----------------------------------------------------------
    @staticmethod
    def _decode(data: bytes) -> Optional[np.ndarray]:
        buffer = np.frombuffer(data, dtype=np.uint8)
        if buffer.size == 0:
            return None
        return cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)

    @staticmethod
    def _to_bgr(image: np.ndarray) -> np.ndarray:
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return image

    @staticmethod
    def _describe(handle: Any) -> str:
        if isinstance(handle, (bytes, bytearray)):
            return f"<{len(handle)} bytes>"
        if isinstance(handle, np.ndarray):
            return f"<array {handle.shape}>"
        return str(handle)
