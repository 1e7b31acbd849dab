# storage/roi_store.py

"""
ROI store contract + in-process implementation.
Handles:
  - ROI read / create / update / delete per (roi_file, cctv_id)
  - Draft lifecycle: create_draft copies published -> draft,
    save_draft copies draft -> published
  - Listing ROI files, test folders and test images; fetching image bytes
The polygon editor never talks to a store; the work session does.
"""

import copy
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from backend.models.roi import (
    CctvRoiInfo,
    CreateRoiRequest,
    DeleteRoiRequest,
    DraftRoiResponse,
    ImageFile,
    ReadRoiResponse,
    RoiImagesResponse,
    RoiResponse,
    SaveDraftResponse,
    UpdateRoiRequest,
)

logger = logging.getLogger(__name__)

# roi_file -> cctv_id -> roi_id -> coords
RoiFileData = Dict[str, Dict[str, List[int]]]

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")


class RoiStoreError(Exception):
    """ROI 服务调用失败 | A call to the ROI store failed."""


class RoiStore(ABC):
    """Request/response operations the work session sequences."""

    @abstractmethod
    def read(self, cctv_id: str, roi_file: str) -> ReadRoiResponse:
        raise NotImplementedError

    @abstractmethod
    def create(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        raise NotImplementedError

    @abstractmethod
    def update(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        raise NotImplementedError

    @abstractmethod
    def delete(self, roi_id: str, cctv_id: str, roi_file: str) -> RoiResponse:
        raise NotImplementedError

    @abstractmethod
    def create_draft(self, roi_file: str) -> RoiResponse:
        raise NotImplementedError

    @abstractmethod
    def get_draft(self, roi_file: str) -> DraftRoiResponse:
        raise NotImplementedError

    @abstractmethod
    def save_draft(self, roi_file: str) -> SaveDraftResponse:
        raise NotImplementedError

    @abstractmethod
    def list_roi_files(self) -> List[Any]:
        raise NotImplementedError

    @abstractmethod
    def list_test_folders(self) -> List[Any]:
        raise NotImplementedError

    @abstractmethod
    def list_test_images(self, folder_path: str) -> RoiImagesResponse:
        raise NotImplementedError

    @abstractmethod
    def fetch_image(self, folder_path: str, file_name: str) -> bytes:
        raise NotImplementedError


class LocalRoiStore(RoiStore):
    """
    In-process ROI store with the same draft semantics as the remote service.
    Reads and mutations target the draft copy of a file while one exists.

    Test images come from ``image_root``: each sub-directory is a test folder.
    """

    def __init__(self, files: Optional[RoiFileData] = None, project_id: str = "",
                 image_root: Optional[str] = None):
        self.project_id = project_id
        self.image_root = image_root
        self._published: Dict[str, RoiFileData] = {}
        self._drafts: Dict[str, RoiFileData] = {}
        self._lock = threading.Lock()
        for roi_file, cctvs in (files or {}).items():
            self._published[roi_file] = copy.deepcopy(cctvs)

    def _target(self, roi_file: str) -> RoiFileData:
        if roi_file in self._drafts:
            return self._drafts[roi_file]
        return self._published.setdefault(roi_file, {})

    def _request(self, model: Type[BaseModel], **fields) -> BaseModel:
        try:
            return model(project_id=self.project_id, **fields)
        except ValidationError as e:
            logger.error(f"❌ [LocalRoiStore] Invalid {model.__name__}: {e}")
            raise RoiStoreError(f"Invalid {model.__name__}: {e}") from e

    def has_draft(self, roi_file: str) -> bool:
        return roi_file in self._drafts

    def published(self, roi_file: str) -> RoiFileData:
        return copy.deepcopy(self._published.get(roi_file, {}))

    # -------------------- ROI CRUD --------------------
    def read(self, cctv_id: str, roi_file: str) -> ReadRoiResponse:
        with self._lock:
            source = self._drafts.get(roi_file, self._published.get(roi_file, {}))
            rois = copy.deepcopy(source.get(cctv_id, {}))
        return ReadRoiResponse(cctv_id=cctv_id, rois=rois)

    def create(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        request = self._request(CreateRoiRequest, roi_id=roi_id, cctv_id=cctv_id,
                                roi_file=roi_file, coords=coords)
        with self._lock:
            rois = self._target(roi_file).setdefault(cctv_id, {})
            if request.roi_id in rois:
                return RoiResponse(success=False, message=f"ROI '{roi_id}' already exists")
            rois[request.roi_id] = list(request.coords)
        logger.info(f"[LocalRoiStore] Created ROI {roi_id} for {cctv_id} in {roi_file}")
        return RoiResponse(success=True, message="created")

    def update(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        request = self._request(UpdateRoiRequest, roi_id=roi_id, cctv_id=cctv_id,
                                roi_file=roi_file, coords=coords)
        with self._lock:
            rois = self._target(roi_file).get(cctv_id, {})
            if request.roi_id not in rois:
                return RoiResponse(success=False, message=f"ROI '{roi_id}' not found")
            rois[request.roi_id] = list(request.coords)
        logger.info(f"[LocalRoiStore] Updated ROI {roi_id} for {cctv_id} in {roi_file}")
        return RoiResponse(success=True, message="updated")

    def delete(self, roi_id: str, cctv_id: str, roi_file: str) -> RoiResponse:
        request = self._request(DeleteRoiRequest, roi_id=roi_id, cctv_id=cctv_id, roi_file=roi_file)
        with self._lock:
            rois = self._target(roi_file).get(cctv_id, {})
            if request.roi_id not in rois:
                return RoiResponse(success=False, message=f"ROI '{roi_id}' not found")
            del rois[request.roi_id]
        logger.info(f"[LocalRoiStore] Deleted ROI {roi_id} for {cctv_id} in {roi_file}")
        return RoiResponse(success=True, message="deleted")

    # -------------------- 草稿 | drafts --------------------
    def create_draft(self, roi_file: str) -> RoiResponse:
        with self._lock:
            self._drafts[roi_file] = copy.deepcopy(self._published.get(roi_file, {}))
        logger.info(f"[LocalRoiStore] Draft created for {roi_file}")
        return RoiResponse(success=True, message="draft created")

    def get_draft(self, roi_file: str) -> DraftRoiResponse:
        with self._lock:
            draft = copy.deepcopy(self._drafts.get(roi_file, {}))
        return DraftRoiResponse(cctv_list=[
            CctvRoiInfo(cctv_id=cctv_id, roi_coords=[{"roi_id": roi_id, "coords": coords}
                                                     for roi_id, coords in rois.items()])
            for cctv_id, rois in draft.items()
        ])

    def save_draft(self, roi_file: str) -> SaveDraftResponse:
        with self._lock:
            if roi_file not in self._drafts:
                return SaveDraftResponse(success=False, message="no draft to save", file_name=roi_file)
            self._published[roi_file] = self._drafts.pop(roi_file)
        logger.info(f"[LocalRoiStore] Draft saved over {roi_file}")
        return SaveDraftResponse(success=True, message="saved", file_name=f"{roi_file}.json")

    # -------------------- 文件与图像 | files & images --------------------
    def list_roi_files(self) -> List[Any]:
        with self._lock:
            names = sorted(set(self._published) | set(self._drafts))
        return [{"name": f"{name}.json"} for name in names]

    def _folder(self, folder_path: str) -> str:
        if not self.image_root:
            raise RoiStoreError("No image root configured")
        path = os.path.join(self.image_root, folder_path)
        if not os.path.isdir(path):
            raise RoiStoreError(f"Test folder not found: {folder_path}")
        return path

    def list_test_folders(self) -> List[Any]:
        if not self.image_root or not os.path.isdir(self.image_root):
            return []
        return [{"name": name} for name in sorted(os.listdir(self.image_root))
                if os.path.isdir(os.path.join(self.image_root, name))]

    def list_test_images(self, folder_path: str) -> RoiImagesResponse:
        folder = self._folder(folder_path)
        images = [ImageFile(name=name, path=os.path.join(folder, name))
                  for name in sorted(os.listdir(folder))
                  if name.lower().endswith(IMAGE_EXTENSIONS)]
        return RoiImagesResponse(images=images, total=len(images))

    def fetch_image(self, folder_path: str, file_name: str) -> bytes:
        path = os.path.join(self._folder(folder_path), file_name)
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"❌ [LocalRoiStore] Cannot read image {path}: {e}")
            raise RoiStoreError(f"Cannot read image {file_name}: {e}") from e
