# storage/roi_store_client.py

"""
HTTP client for the remote ROI service.
Handles:
  - ROI create / read / update / delete (JSON bodies)
  - Draft create / read / save for one ROI file
  - Listing ROI files, test folders and test images; fetching one image
Every failure is logged and raised as RoiStoreError; callers decide what to show.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, ValidationError

from backend.config.roi_editor_config import roi_editor_config
from backend.models.roi import (
    CreateRoiRequest,
    DeleteRoiRequest,
    DraftRoiResponse,
    ReadRoiRequest,
    ReadRoiResponse,
    RoiImagesResponse,
    RoiResponse,
    SaveDraftResponse,
    UpdateRoiRequest,
)
from storage.roi_store import RoiStore, RoiStoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RoiStoreClient(RoiStore):
    """
    Wrapper around the ROI service REST endpoints of one project.
    """

    def __init__(
            self,
            base_url: Optional[str] = None,
            project_id: Optional[str] = None,
            timeout: Optional[int] = None,
            session: Optional[requests.Session] = None
    ):
        """
        Args:
            base_url: ROI service address (e.g. 'http://localhost:8080')
            project_id: Project whose ROI files are edited
            timeout: Per-request timeout in seconds
            session: Shared requests session (a new one by default)
        """
        self.base_url = (base_url or roi_editor_config.get_api_base_url()).rstrip("/")
        self.project_id = project_id if project_id is not None else roi_editor_config.get_project_id()
        self.timeout = timeout or roi_editor_config.get_timeout()
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # -------------------- 端点 | endpoints --------------------
    def _roi_url(self, action: str) -> str:
        return f"{self.base_url}/v0.1/roi/{quote(self.project_id)}/{action}"

    def _parking_url(self, path: str) -> str:
        return f"{self.base_url}/v0.1/parking/{quote(self.project_id)}/{path}"

    # -------------------- 传输 | transport --------------------
    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.debug(f"🔍 ROI service {method} {url}")
        start_time = time.time()
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error(f"❌ ROI service request timeout: {method} {url}")
            raise RoiStoreError(f"Timeout calling {url}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ ROI service request failed: {method} {url}: {e}")
            raise RoiStoreError(f"Request to {url} failed: {e}") from e
        logger.debug(f"⏱️ ROI service response time: {time.time() - start_time:.3f}s")
        return response

    def _call(self, model: Type[ModelT], method: str, url: str, **kwargs) -> ModelT:
        response = self._request(method, url, **kwargs)
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"❌ Unexpected ROI service response from {url}: {e}")
            raise RoiStoreError(f"Unexpected response from {url}") from e

    def _json_list(self, url: str, key: str, **kwargs) -> List[Any]:
        response = self._request("GET", url, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"❌ ROI service returned non-JSON body from {url}")
            raise RoiStoreError(f"Unexpected response from {url}") from e
        if isinstance(data, dict):
            return data.get(key) or []
        return data or []

    @staticmethod
    def _body(model: Type[BaseModel], **fields) -> Dict[str, Any]:
        try:
            return model(**fields).model_dump()
        except ValidationError as e:
            logger.error(f"❌ Invalid {model.__name__}: {e}")
            raise RoiStoreError(f"Invalid {model.__name__}: {e}") from e

    # -------------------- ROI CRUD --------------------
    def read(self, cctv_id: str, roi_file: str) -> ReadRoiResponse:
        body = self._body(ReadRoiRequest, cctv_id=cctv_id, project_id=self.project_id, roi_file=roi_file)
        result = self._call(ReadRoiResponse, "POST", self._roi_url("read"), json=body)
        logger.info(f"[ROI] Read {len(result.rois)} ROIs for {cctv_id} from {roi_file}")
        return result

    def create(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        body = self._body(CreateRoiRequest, roi_id=roi_id, cctv_id=cctv_id,
                          project_id=self.project_id, roi_file=roi_file, coords=coords)
        result = self._call(RoiResponse, "POST", self._roi_url("create"), json=body)
        logger.info(f"[ROI] Create {roi_id} -> success={result.success} {result.message}")
        return result

    def update(self, roi_id: str, cctv_id: str, roi_file: str, coords: List[int]) -> RoiResponse:
        body = self._body(UpdateRoiRequest, roi_id=roi_id, cctv_id=cctv_id,
                          project_id=self.project_id, roi_file=roi_file, coords=coords)
        result = self._call(RoiResponse, "PUT", self._roi_url("update"), json=body)
        logger.info(f"[ROI] Update {roi_id} -> success={result.success} {result.message}")
        return result

    def delete(self, roi_id: str, cctv_id: str, roi_file: str) -> RoiResponse:
        body = self._body(DeleteRoiRequest, roi_id=roi_id, cctv_id=cctv_id,
                          project_id=self.project_id, roi_file=roi_file)
        result = self._call(RoiResponse, "DELETE", self._roi_url("delete"), json=body)
        logger.info(f"[ROI] Delete {roi_id} -> success={result.success} {result.message}")
        return result

    # -------------------- 草稿 | drafts --------------------
    def create_draft(self, roi_file: str) -> RoiResponse:
        result = self._call(RoiResponse, "POST", self._roi_url("draft"), params={"file": roi_file})
        logger.info(f"[ROI] Draft created for {roi_file}")
        return result

    def get_draft(self, roi_file: str) -> DraftRoiResponse:
        return self._call(DraftRoiResponse, "GET", self._roi_url("draft"), params={"file": roi_file})

    def save_draft(self, roi_file: str) -> SaveDraftResponse:
        result = self._call(SaveDraftResponse, "POST", self._roi_url("draft/save"), params={"file": roi_file})
        logger.info(f"[ROI] Draft saved: {result.file_name or roi_file} success={result.success}")
        return result

    # -------------------- 文件与图像 | files & images --------------------
    def list_roi_files(self) -> List[Any]:
        return self._json_list(self._parking_url("images/roi-folders"), "folders")

    def list_test_folders(self) -> List[Any]:
        return self._json_list(self._parking_url("images/test-folders"), "folders")

    def list_test_images(self, folder_path: str) -> RoiImagesResponse:
        return self._call(RoiImagesResponse, "GET", self._roi_url(f"{quote(folder_path)}/images"))

    def fetch_image(self, folder_path: str, file_name: str) -> bytes:
        """Raw encoded image bytes, ready for ImageSource.load()."""
        response = self._request("GET", self._roi_url(quote(folder_path)), params={"file": file_name})
        return response.content
