# backend/utils/letterbox.py
"""
Letterbox Transform —— 原图坐标 <-> 方形画布坐标
Maps between original-image pixels and a square canvas that shows the image
scaled to fit with its aspect ratio preserved and the short side centred.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class OverlayMetrics:
    """Overlay sizes in canvas pixels, floored so they stay visible when downscaled."""
    line_width: float
    font_size: float
    point_radius: float
    point_border: float
    label_offset: float


@dataclass(frozen=True)
class LetterboxTransform:
    image_width: int
    image_height: int
    canvas_size: int
    scale: float
    offset_x: float
    offset_y: float

    @classmethod
    def compute(cls, image_width: int, image_height: int, canvas_size: int) -> "LetterboxTransform":
        """
        计算缩放与偏移 | Compute scale and centring offsets.

        Args:
            image_width: 原图宽 | original image width (W)
            image_height: 原图高 | original image height (H)
            canvas_size: 方形画布边长 | square canvas side (S)

        Raises:
            ValueError: any dimension is not positive.
        """
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
        if canvas_size <= 0:
            raise ValueError(f"Canvas size must be positive, got {canvas_size}")

        image_ratio = image_width / image_height
        container_ratio = canvas_size / canvas_size

        if image_ratio > container_ratio:
            # 图像更宽：按宽度适配 | wider: fit width
            scale = canvas_size / image_width
            offset_x = 0.0
            offset_y = (canvas_size - image_height * scale) / 2
        else:
            # 图像更高或等比：按高度适配 | taller or square: fit height
            scale = canvas_size / image_height
            offset_x = (canvas_size - image_width * scale) / 2
            offset_y = 0.0

        return cls(image_width, image_height, canvas_size, scale, offset_x, offset_y)

    @property
    def scaled_width(self) -> float:
        return self.image_width * self.scale

    @property
    def scaled_height(self) -> float:
        return self.image_height * self.scale

    def to_canvas(self, x: float, y: float) -> Tuple[float, float]:
        """原图 -> 画布 | image -> canvas."""
        return x * self.scale + self.offset_x, y * self.scale + self.offset_y

    def to_image(self, canvas_x: float, canvas_y: float) -> Tuple[int, int]:
        """
        画布/指针 -> 原图，取整 | canvas/pointer -> image, rounded to whole pixels.
        Halves round up, like the browser's Math.round.
        """
        x = math.floor((canvas_x - self.offset_x) / self.scale + 0.5)
        y = math.floor((canvas_y - self.offset_y) / self.scale + 0.5)
        return int(x), int(y)

    def overlay_metrics(self) -> OverlayMetrics:
        return OverlayMetrics(
            line_width=max(1.0, 2 * self.scale),
            font_size=max(8.0, 12 * self.scale),
            point_radius=max(3.0, 4 * self.scale),
            point_border=max(1.0, 1 * self.scale),
            label_offset=5 * self.scale,
        )
