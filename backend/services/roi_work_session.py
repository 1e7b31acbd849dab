# backend/services/roi_work_session.py
"""
ROI Work Session —— 编辑器的调用方
0. 列出 ROI 文件、测试文件夹、测试图像
1. 选择 ROI 文件 / 图像 -> 读取 ROI 集合
2. 开始编辑 -> 创建草稿
3. 编辑器回调 (create / update / select) -> 调用 ROI 服务 -> 整体刷新
4. 删除、取消、结束编辑、保存文件
The editor only emits coordinates; this session persists them and keeps the
editor's ROI collection in sync with the store.
"""

import logging
import os
import re
from typing import Any, Dict, List, Optional

from backend.models.roi import EditMode, ReadRoiResponse
from backend.services.polygon_editor import PolygonEditor
from storage.roi_store import RoiStore, RoiStoreError

logger = logging.getLogger(__name__)


def cctv_id_from_image_name(image_name: str) -> str:
    """'cam01_Current' -> 'cam01', 'cam01.jpg' -> 'cam01'."""
    base = re.sub(r"_Current$", "", os.path.basename(image_name))
    return base.split(".")[0]


def _entry_name(entry: Any) -> str:
    # listings come back as {"name": ...} dicts or bare strings
    if isinstance(entry, dict):
        return str(entry.get("name") or entry.get("path") or "")
    return str(entry)


class RoiWorkSession:
    """Drives one editor against one ROI store."""

    def __init__(self, store: RoiStore, editor: PolygonEditor):
        self.store = store
        self.editor = editor

        self.roi_file: str = ""
        self.image_name: str = ""
        self.cctv_id: str = ""
        self.roi_data: Optional[ReadRoiResponse] = None
        self.draft_created = False
        self.pending_roi_id: str = ""
        self.last_error: str = ""

        # 依赖注入：编辑器回调 | wire editor callbacks
        self.editor.on_roi_select = self.handle_roi_select
        self.editor.on_roi_create = self.handle_roi_create
        self.editor.on_roi_update = self.handle_roi_update

    # ----------------------------------------------------------
    @property
    def rois(self) -> Dict[str, List[float]]:
        return dict(self.roi_data.rois) if self.roi_data else {}

    @property
    def selected_roi_id(self) -> Optional[str]:
        return self.editor.selected_roi_id

    def _fail(self, action: str, error: Exception) -> bool:
        self.last_error = f"{action} failed: {error}"
        logger.error(f"❌ {self.last_error}")
        return False

    def _check(self, action: str, success: bool, message: str) -> bool:
        if not success:
            self.last_error = f"{action} rejected: {message}"
            logger.warning(f"⚠️ {self.last_error}")
            return False
        self.last_error = ""
        return True

    # -------------------- 列表 | listings --------------------
    def roi_file_names(self) -> List[str]:
        try:
            entries = self.store.list_roi_files()
        except RoiStoreError as e:
            self._fail("Listing ROI files", e)
            return []
        return [_entry_name(entry) for entry in entries]

    def test_folder_names(self) -> List[str]:
        try:
            entries = self.store.list_test_folders()
        except RoiStoreError as e:
            self._fail("Listing test folders", e)
            return []
        return [_entry_name(entry) for entry in entries]

    def test_image_names(self, folder_path: str) -> List[str]:
        try:
            listing = self.store.list_test_images(folder_path)
        except RoiStoreError as e:
            self._fail("Listing test images", e)
            return []
        return [image.name for image in listing.images]

    def draft_summary(self) -> Dict[str, int]:
        """cctv_id -> ROI count of the current draft (empty without one)."""
        if not self.roi_file or not self.draft_created:
            return {}
        try:
            draft = self.store.get_draft(self.roi_file)
        except RoiStoreError as e:
            self._fail("Reading draft", e)
            return {}
        return {info.cctv_id: len(info.roi_coords) for info in draft.cctv_list}

    # -------------------- 选择 | selection --------------------
    def select_test_image(self, folder_path: str, image_name: str) -> bool:
        """Fetch a test image from the store and show it."""
        try:
            data = self.store.fetch_image(folder_path, image_name)
        except RoiStoreError as e:
            return self._fail("Fetching image", e)
        return self.select_image(image_name, data)

    def select_roi_file(self, file_name: str) -> bool:
        self.roi_file = re.sub(r"\.json$", "", file_name)
        logger.info(f"📄 ROI file selected: {self.roi_file}")
        if self.image_name:
            return self.load_rois()
        return True

    def select_image(self, image_name: str, image_handle: Any = None) -> bool:
        """
        Switch the CCTV frame; the handle defaults to the name (a path).
        ROIs are reloaded when an ROI file is already selected.
        """
        self.image_name = image_name
        self.cctv_id = cctv_id_from_image_name(image_name)
        self.editor.set_image(image_handle if image_handle is not None else image_name)
        logger.info(f"🖼️ Image selected: {image_name} (cctv_id={self.cctv_id})")
        if self.roi_file:
            return self.load_rois()
        return True

    def handle_roi_select(self, roi_id: str) -> None:
        self.editor.selected_roi_id = roi_id
        logger.debug(f"ROI selected: {roi_id}")

    # -------------------- 读取 | read --------------------
    def load_rois(self) -> bool:
        """整体替换 ROI 集合 | Replace the ROI collection from the store."""
        if not self.roi_file or not self.cctv_id:
            return False
        try:
            self.roi_data = self.store.read(self.cctv_id, self.roi_file)
        except RoiStoreError as e:
            return self._fail("Loading ROIs", e)
        if self.roi_data.cctv_id:
            self.cctv_id = self.roi_data.cctv_id
        self.editor.set_rois(self.roi_data.rois)
        self.last_error = ""
        logger.info(f"✅ Loaded {len(self.roi_data.rois)} ROIs for {self.cctv_id}")
        return True

    # -------------------- 编辑 | editing --------------------
    def start_edit(self) -> bool:
        """Create a draft of the ROI file; later edits land in the draft."""
        if not self.roi_file:
            return False
        try:
            result = self.store.create_draft(self.roi_file)
        except RoiStoreError as e:
            return self._fail("Starting edit", e)
        if not self._check("Starting edit", result.success, result.message):
            return False
        self.draft_created = True
        self.editor.editable = True
        if self.image_name:
            self.load_rois()
        return True

    def begin_create(self, roi_id: str) -> None:
        self.editor.cancel_current_edit()
        self.pending_roi_id = roi_id
        self.editor.edit_mode = EditMode.CREATE

    def begin_update(self, roi_id: str) -> None:
        self.editor.cancel_current_edit()
        self.pending_roi_id = roi_id
        self.editor.selected_roi_id = roi_id
        self.editor.edit_mode = EditMode.UPDATE

    def complete(self) -> Optional[List[int]]:
        return self.editor.complete_current_polygon()

    def cancel_edit(self) -> None:
        self.editor.cancel_current_edit()
        self.editor.edit_mode = EditMode.IDLE
        self.pending_roi_id = ""

    def handle_roi_create(self, coords: List[int]) -> bool:
        if not self.pending_roi_id:
            self.last_error = "Creating ROI rejected: no ROI id given"
            logger.warning(f"⚠️ {self.last_error}")
            self.editor.edit_mode = EditMode.IDLE
            return False
        try:
            result = self.store.create(self.pending_roi_id, self.cctv_id, self.roi_file, coords)
        except RoiStoreError as e:
            return self._fail("Creating ROI", e)
        return self._after_write("Creating ROI", result.success, result.message)

    def handle_roi_update(self, roi_id: str, coords: List[int]) -> bool:
        try:
            result = self.store.update(roi_id, self.cctv_id, self.roi_file, coords)
        except RoiStoreError as e:
            return self._fail("Updating ROI", e)
        return self._after_write("Updating ROI", result.success, result.message)

    def delete_roi(self, roi_id: str) -> bool:
        if not self.roi_file or not self.cctv_id:
            return False
        try:
            result = self.store.delete(roi_id, self.cctv_id, self.roi_file)
        except RoiStoreError as e:
            return self._fail("Deleting ROI", e)
        if self.editor.selected_roi_id == roi_id:
            self.editor.selected_roi_id = None
        return self._after_write("Deleting ROI", result.success, result.message)

    def _after_write(self, action: str, success: bool, message: str) -> bool:
        self.editor.edit_mode = EditMode.IDLE
        self.pending_roi_id = ""
        if not self._check(action, success, message):
            return False
        return self.load_rois()

    # -------------------- 结束 | finish --------------------
    def end_edit(self) -> bool:
        """Leave edit mode without publishing the draft, then reload."""
        self.draft_created = False
        self.cancel_edit()
        return self.load_rois()

    def save_file(self) -> bool:
        """Publish the draft over the ROI file."""
        if not self.roi_file or not self.draft_created:
            return False
        try:
            result = self.store.save_draft(self.roi_file)
        except RoiStoreError as e:
            return self._fail("Saving file", e)
        if not self._check("Saving file", result.success, result.message):
            return False
        self.draft_created = False
        self.cancel_edit()
        logger.info(f"✅ ROI file saved: {result.file_name or self.roi_file}")
        return True
