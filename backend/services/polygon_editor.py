# backend/services/polygon_editor.py
"""
Polygon Editor —— ROI 多边形编辑器（纯 UI 状态，无 I/O）
1. 方形画布上信箱式显示原图
2. idle 模式：点击 -> 命中测试 -> 选中回调（重叠时逐个回调）
3. create / update 模式：点击 -> 追加顶点到捕获缓冲
4. 完成 / 取消由宿主显式触发
Committed coordinates are emitted through callbacks; persisting them is the
caller's job.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

import numpy as np

from backend.config.roi_editor_config import roi_editor_config
from backend.models.roi import EditMode
from backend.utils.image_source import ImageSource
from backend.utils.letterbox import LetterboxTransform
from backend.utils.polygon_geometry import MIN_POLYGON_NUMBERS, close_polygon, find_rois_at
from backend.utils.visualization import render_roi_canvas

logger = logging.getLogger(__name__)

RoiSelectCallback = Callable[[str], None]
RoiCreateCallback = Callable[[List[int]], None]
RoiUpdateCallback = Callable[[str, List[int]], None]

COLOR_KEYS = ("background_color", "roi_color", "selected_roi_color",
              "drawing_color", "point_color", "point_border_color")


class PolygonEditorCommands(ABC):
    """Commands a hosting UI invokes on the editor it holds."""

    @abstractmethod
    def complete_current_polygon(self) -> Optional[List[int]]:
        raise NotImplementedError

    @abstractmethod
    def cancel_current_edit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_capture_buffer(self) -> List[int]:
        raise NotImplementedError


class PolygonEditor(PolygonEditorCommands):
    """
    ROI polygon editor on a fixed square canvas.

    One ``canvas_size`` drives both rendering and click mapping.
    """

    def __init__(
            self,
            image_handle: Any = None,
            rois: Optional[Dict[str, Sequence[float]]] = None,
            editable: bool = False,
            selected_roi_id: Optional[str] = None,
            edit_mode: Optional[Any] = None,
            on_roi_select: Optional[RoiSelectCallback] = None,
            on_roi_create: Optional[RoiCreateCallback] = None,
            on_roi_update: Optional[RoiUpdateCallback] = None,
            canvas_size: Optional[int] = None,
            image_source: Optional[ImageSource] = None
    ):
        if canvas_size is None:
            canvas_size = roi_editor_config.get_canvas_size()
        if canvas_size <= 0:
            raise ValueError(f"Canvas size must be positive, got {canvas_size}")
        self.canvas_size = canvas_size
        self.image_source = image_source or ImageSource(timeout=roi_editor_config.get_timeout())
        self.colors = {key: roi_editor_config.get_color(key) for key in COLOR_KEYS}

        self.rois: Dict[str, Sequence[float]] = dict(rois or {})
        self.editable = editable
        self.selected_roi_id = selected_roi_id
        self._edit_mode = EditMode.coerce(edit_mode)

        self.on_roi_select = on_roi_select
        self.on_roi_create = on_roi_create
        self.on_roi_update = on_roi_update

        self.image_handle = None
        self.image: Optional[np.ndarray] = None
        self.transform: Optional[LetterboxTransform] = None
        self._capture: List[int] = []

        if image_handle is not None:
            self.set_image(image_handle)

    # -------------------- 配置 | configuration --------------------
    @property
    def edit_mode(self) -> EditMode:
        return self._edit_mode

    @edit_mode.setter
    def edit_mode(self, value: Optional[Any]) -> None:
        # 模式由宿主控制；缓冲区保持不变 | the host owns the mode; buffer is untouched
        self._edit_mode = EditMode.coerce(value)

    @property
    def is_capturing(self) -> bool:
        return self._edit_mode != EditMode.IDLE and bool(self._capture)

    def set_image(self, handle: Any) -> bool:
        """
        加载图像并重算变换 | Load the image and recompute the transform.
        A failed load leaves the editor blank; it does not raise.
        """
        self.image_handle = handle
        self.image = self.image_source.load(handle)
        if self.image is None:
            self.transform = None
            logger.warning("⚠️ Editor image unavailable, canvas stays blank")
            return False
        self._update_transform()
        width, height = ImageSource.size(self.image)
        logger.info(f"✅ Editor image loaded: {width}x{height} on {self.canvas_size}px canvas")
        return True

    def set_canvas_size(self, canvas_size: int) -> None:
        if canvas_size <= 0:
            raise ValueError(f"Canvas size must be positive, got {canvas_size}")
        self.canvas_size = canvas_size
        self._update_transform()

    def set_rois(self, rois: Optional[Dict[str, Sequence[float]]]) -> None:
        """整体替换 ROI 集合 | Replace the ROI collection wholesale."""
        self.rois = dict(rois or {})

    def _update_transform(self) -> None:
        if self.image is None:
            self.transform = None
            return
        width, height = ImageSource.size(self.image)
        self.transform = LetterboxTransform.compute(width, height, self.canvas_size)

    # -------------------- 指针输入 | pointer input --------------------
    def handle_canvas_click(self, canvas_x: float, canvas_y: float) -> None:
        """Canvas-space click -> image-space click."""
        if not self.editable or self.transform is None:
            return
        x, y = self.transform.to_image(canvas_x, canvas_y)
        self.handle_image_click(x, y)

    def handle_image_click(self, x: int, y: int) -> None:
        """
        Dispatch a click already mapped to image coordinates.
        create/update: every click is a new vertex, even inside an existing ROI.
        idle: select callback once per containing ROI, in collection order.
        """
        if self._edit_mode != EditMode.IDLE:
            self._capture.extend((x, y))
            logger.debug(f"Capture point ({x}, {y}), {len(self._capture) // 2} total")
            return

        if self.on_roi_select is None:
            return
        for roi_id in find_rois_at(x, y, self.rois):
            self.on_roi_select(roi_id)

    # -------------------- 宿主命令 | host commands --------------------
    def complete_current_polygon(self) -> Optional[List[int]]:
        """
        闭合并提交当前多边形 | Close and emit the captured polygon.

        Returns:
            The emitted closed coordinates, or None when nothing was emitted
            (idle mode, fewer than 3 points, update without a selected ROI,
            or no callback for the mode). A refused completion keeps the buffer.
        """
        if self._edit_mode == EditMode.IDLE:
            logger.debug("Complete ignored: editor is idle")
            return None
        if len(self._capture) < MIN_POLYGON_NUMBERS:
            logger.debug(f"Complete ignored: {len(self._capture) // 2} points, need 3")
            return None

        completed = close_polygon(self._capture)

        if self._edit_mode == EditMode.CREATE:
            if self.on_roi_create is None:
                logger.debug("Complete ignored: no create callback")
                return None
            self._capture = []
            self.on_roi_create(completed)
        else:
            if not self.selected_roi_id or self.on_roi_update is None:
                logger.debug("Complete ignored: update needs a selected ROI and callback")
                return None
            self._capture = []
            self.on_roi_update(self.selected_roi_id, completed)

        logger.info(f"✅ Polygon completed ({self._edit_mode.value}): {len(completed) // 2} points")
        return completed

    def cancel_current_edit(self) -> None:
        """清空捕获缓冲 | Drop the capture buffer; nothing is emitted."""
        self._capture = []

    def get_capture_buffer(self) -> List[int]:
        return list(self._capture)

    def can_complete(self) -> bool:
        """Whether a host "save" control should be enabled."""
        return len(self._capture) >= MIN_POLYGON_NUMBERS

    # -------------------- 渲染 | rendering --------------------
    def render(self) -> np.ndarray:
        """
        渲染当前状态到新画布 | Render the current state onto a fresh canvas.
        Safe to call any number of times; editor state is not touched.
        """
        capture = self._capture if self._edit_mode != EditMode.IDLE else []
        return render_roi_canvas(
            canvas_size=self.canvas_size,
            image=self.image,
            transform=self.transform,
            rois=self.rois,
            selected_roi_id=self.selected_roi_id,
            capture_coords=list(capture),
            colors=self.colors,
        )
