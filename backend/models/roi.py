# backend/models/roi.py
# 后端 / 数据模型 / ROI 文档定义
# Backend data-model definitions for ROI store documents

from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator


class EditMode(str, Enum):
    """编辑器模式 | Polygon editor mode."""
    IDLE = "idle"
    CREATE = "create"
    UPDATE = "update"

    @classmethod
    def coerce(cls, value: Optional[Any]) -> "EditMode":
        """None / '' / 'none' -> IDLE, strings -> member."""
        if value is None or value in ("", "none"):
            return cls.IDLE
        return cls(value)


# ==================== 请求 | Requests ====================
class PolygonRoiRequest(BaseModel):
    """
    Base for requests carrying one ROI polygon.
    Coordinates are original-image pixels, flat ``[x0, y0, x1, y1, ...]``.
    """
    roi_id: str = Field(min_length=1)
    cctv_id: str
    project_id: str = ""
    roi_file: str
    coords: List[int]

    @field_validator("coords")
    @classmethod
    def check_coords(cls, coords: List[int]) -> List[int]:
        if len(coords) % 2 != 0:
            raise ValueError(f"coords must hold x,y pairs, got {len(coords)} numbers")
        if len(coords) < 6:
            raise ValueError(f"polygon needs at least 3 points, got {len(coords) // 2}")
        return coords


class CreateRoiRequest(PolygonRoiRequest):
    pass


class UpdateRoiRequest(PolygonRoiRequest):
    pass


class ReadRoiRequest(BaseModel):
    cctv_id: str
    project_id: str = ""
    roi_file: str


class DeleteRoiRequest(BaseModel):
    roi_id: str = Field(min_length=1)
    cctv_id: str
    project_id: str = ""
    roi_file: str


# ==================== 响应 | Responses ====================
class RoiResponse(BaseModel):
    success: bool
    message: str = ""


class ReadRoiResponse(BaseModel):
    """
    ROI collection of one (roi_file, cctv_id) scope.
    Stored polygons are not length-checked here: degenerate ones are
    skipped by the renderer, not rejected.
    """
    cctv_id: str
    rois: Dict[str, List[float]] = Field(default_factory=dict)


class CctvRoiInfo(BaseModel):
    cctv_id: str
    parking_id: str = ""
    roi_coords: List[Any] = Field(default_factory=list)


class DraftRoiResponse(BaseModel):
    cctv_list: List[CctvRoiInfo] = Field(default_factory=list)


class SaveDraftResponse(BaseModel):
    success: bool
    message: str = ""
    file_name: str = ""


class ImageFile(BaseModel):
    name: str
    path: str = ""


class RoiImagesResponse(BaseModel):
    """Images of one test folder, as listed by the ROI service."""
    images: List[ImageFile] = Field(default_factory=list)
    total: int = 0
