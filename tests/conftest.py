import numpy as np
import pytest

from backend.services.polygon_editor import PolygonEditor
from storage.roi_store import LocalRoiStore


@pytest.fixture
def wide_image():
    """800x400 grey frame."""
    return np.full((400, 800, 3), 128, dtype=np.uint8)


@pytest.fixture
def square_image():
    """360x360 frame, so canvas and image pixels coincide on a 360 canvas."""
    return np.full((360, 360, 3), 64, dtype=np.uint8)


@pytest.fixture
def editor(square_image):
    return PolygonEditor(image_handle=square_image, editable=True, canvas_size=360)


@pytest.fixture
def local_store():
    return LocalRoiStore(files={
        "lot_a": {
            "cam01": {
                "A1": [10, 10, 100, 10, 100, 100, 10, 100],
                "A2": [200, 200, 300, 200, 300, 300, 200, 300, 200, 200],
            },
        },
    }, project_id="p1")
