# backend/config/roi_editor_config.py
"""
ROI 编辑器配置管理
ROI Editor Configuration Management

JSON file next to this module; missing keys fall back to environment variables.
"""

import json
import os
from typing import Dict, Any, Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_SIZE = 360


class RoiEditorConfig:
    """ROI 编辑器配置类 | ROI Editor Configuration Class"""

    def __init__(self, config_path: str = None):
        self.config_path = config_path or os.path.join(
            os.path.dirname(__file__), "roi_editor_config.json"
        )
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """加载配置文件 | Load configuration file"""
        config = self._get_default_config()
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                for section, values in data.items():
                    if isinstance(values, dict) and section in config:
                        config[section].update(values)
                logger.info(f"✅ ROI editor config loaded: {self.config_path}")
            else:
                logger.debug(f"ROI editor config file not found, using defaults: {self.config_path}")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Failed to load ROI editor config: {e}")
        return config

    def _get_default_config(self) -> Dict[str, Any]:
        """获取默认配置 | Get default configuration"""
        return {
            "roi_api": {
                "base_url": os.getenv("ROI_API_BASE_URL", "http://localhost:8080"),
                "project_id": os.getenv("ROI_PROJECT_ID", ""),
                "timeout": int(os.getenv("ROI_API_TIMEOUT", "30")),
            },
            "canvas": {
                "size": int(os.getenv("ROI_CANVAS_SIZE", str(DEFAULT_CANVAS_SIZE))),
                # BGR
                "background_color": [0, 0, 0],
                "roi_color": [0, 255, 0],
                "selected_roi_color": [0, 255, 255],
                "drawing_color": [0, 255, 0],
                "point_color": [0, 0, 255],
                "point_border_color": [255, 255, 255],
            },
        }

    def get_api_base_url(self) -> str:
        return self._config["roi_api"]["base_url"]

    def get_project_id(self) -> str:
        return self._config["roi_api"]["project_id"]

    def get_timeout(self) -> int:
        return self._config["roi_api"]["timeout"]

    def get_canvas_size(self) -> int:
        return self._config["canvas"]["size"]

    def get_color(self, name: str) -> Tuple[int, int, int]:
        """Overlay colour by key, e.g. 'roi_color' -> (B, G, R)."""
        return tuple(self._config["canvas"][name])

    def is_configured(self) -> bool:
        """检查远程 ROI 服务配置是否完整 | Check if remote ROI service is configured"""
        return bool(self.get_api_base_url() and self.get_project_id())


# 全局配置实例 | Global config instance
roi_editor_config = RoiEditorConfig()
