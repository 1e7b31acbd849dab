# backend/utils/visualization.py
"""
ROI Canvas Visualization —— 方形画布一次性渲染
提供：
  1. 信箱式缩放绘制原图
  2. 已提交 ROI 多边形描边 + roi_id 标签
  3. 正在绘制的折线 + 顶点圆点
All drawing happens on a fresh canvas array; inputs are never modified.
"""

import cv2
import numpy as np
from typing import Dict, Optional, Sequence, Tuple
import logging

from backend.utils.letterbox import LetterboxTransform, OverlayMetrics
from backend.utils.polygon_geometry import coords_to_points, is_drawable

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

# FONT_HERSHEY_SIMPLEX 在 fontScale=1 时大约 22px 高
HERSHEY_BASE_PX = 22.0


def _px(value: float) -> int:
    return max(1, int(round(value)))


def _to_canvas_points(coords: Sequence[float], transform: LetterboxTransform) -> np.ndarray:
    pts = [transform.to_canvas(x, y) for x, y in coords_to_points(coords)]
    return np.round(np.array(pts, dtype=np.float64)).astype(np.int32).reshape((-1, 1, 2))


def blank_canvas(canvas_size: int, color: Color = (0, 0, 0)) -> np.ndarray:
    """空白方形画布 | Empty square BGR canvas."""
    canvas = np.zeros((canvas_size, canvas_size, 3), dtype=np.uint8)
    canvas[:] = color
    return canvas


def draw_letterboxed_image(canvas: np.ndarray, image: np.ndarray, transform: LetterboxTransform) -> np.ndarray:
    """
    按比例缩放原图并居中贴到画布
    Scale the image by ``transform.scale`` and paste it at the letterbox offsets.
    """
    width = _px(transform.scaled_width)
    height = _px(transform.scaled_height)
    x0 = int(round(transform.offset_x))
    y0 = int(round(transform.offset_y))
    # 舍入误差不能越界 | rounding must stay inside the canvas
    width = min(width, canvas.shape[1] - x0)
    height = min(height, canvas.shape[0] - y0)

    interpolation = cv2.INTER_AREA if transform.scale < 1 else cv2.INTER_LINEAR
    resized = cv2.resize(image, (width, height), interpolation=interpolation)
    canvas[y0:y0 + height, x0:x0 + width] = resized
    return canvas


def draw_roi_polygon(
        canvas: np.ndarray,
        roi_id: str,
        coords: Sequence[float],
        transform: LetterboxTransform,
        metrics: OverlayMetrics,
        color: Color = (0, 255, 0)
) -> bool:
    """
    描边一个已提交 ROI，并在首个顶点附近写 roi_id
    Stroke one committed ROI as a closed outline and label it near its first vertex.

    Returns:
        bool: False when the polygon has fewer than 3 points and was skipped.
    """
    if not is_drawable(coords):
        logger.debug(f"Skip degenerate ROI '{roi_id}' ({len(coords)} numbers)")
        return False

    pts = _to_canvas_points(coords, transform)
    cv2.polylines(canvas, [pts], isClosed=True, color=color, thickness=_px(metrics.line_width))

    first_x, first_y = transform.to_canvas(coords[0], coords[1])
    label_org = (int(round(first_x + metrics.label_offset)), int(round(first_y - metrics.label_offset)))
    cv2.putText(canvas, str(roi_id), label_org, cv2.FONT_HERSHEY_SIMPLEX,
                metrics.font_size / HERSHEY_BASE_PX, color, 1, cv2.LINE_AA)
    return True


def draw_capture_path(
        canvas: np.ndarray,
        coords: Sequence[float],
        transform: LetterboxTransform,
        metrics: OverlayMetrics,
        line_color: Color = (0, 255, 0),
        point_color: Color = (0, 0, 255),
        border_color: Color = (255, 255, 255)
) -> np.ndarray:
    """
    正在绘制的多边形：不闭合折线 + 每个点的实心圆（在线之上）
    In-progress polygon: open polyline, then a filled marker per point on top.
    """
    if len(coords) < 2:
        return canvas

    pts = _to_canvas_points(coords, transform)
    if len(pts) > 1:
        cv2.polylines(canvas, [pts], isClosed=False, color=line_color, thickness=_px(metrics.line_width))

    radius = _px(metrics.point_radius)
    border = _px(metrics.point_border)
    for pt in pts.reshape((-1, 2)):
        center = (int(pt[0]), int(pt[1]))
        cv2.circle(canvas, center, radius, point_color, -1, cv2.LINE_AA)
        cv2.circle(canvas, center, radius, border_color, border, cv2.LINE_AA)
    return canvas


def render_roi_canvas(
        canvas_size: int,
        image: Optional[np.ndarray],
        transform: Optional[LetterboxTransform],
        rois: Dict[str, Sequence[float]],
        selected_roi_id: Optional[str] = None,
        capture_coords: Sequence[float] = (),
        colors: Optional[Dict[str, Color]] = None
) -> np.ndarray:
    """
    一次性渲染入口 | One-shot render entry.
    1. 背景 + 信箱式原图
    2. 所有已提交 ROI（选中的用另一种颜色）
    3. 正在绘制的折线和顶点

    Without an image (not loaded yet, or failed) only the background is drawn.
    """
    colors = colors or {}
    canvas = blank_canvas(canvas_size, colors.get("background_color", (0, 0, 0)))
    if image is None or transform is None:
        return canvas

    draw_letterboxed_image(canvas, image, transform)
    metrics = transform.overlay_metrics()

    drawn = 0
    for roi_id, coords in rois.items():
        color = colors.get("selected_roi_color", (0, 255, 255)) if roi_id == selected_roi_id \
            else colors.get("roi_color", (0, 255, 0))
        try:
            if draw_roi_polygon(canvas, roi_id, coords, transform, metrics, color):
                drawn += 1
        except cv2.error as e:
            logger.error(f"❌ Error rendering ROI '{roi_id}': {e}")
            continue

    if capture_coords:
        draw_capture_path(
            canvas, capture_coords, transform, metrics,
            line_color=colors.get("drawing_color", (0, 255, 0)),
            point_color=colors.get("point_color", (0, 0, 255)),
            border_color=colors.get("point_border_color", (255, 255, 255)),
        )

    logger.debug(f"🖌️ Canvas rendered: {drawn}/{len(rois)} ROIs, {len(capture_coords) // 2} capture points")
    return canvas
