from unittest.mock import MagicMock

import cv2
import numpy as np
import requests

from backend.utils.image_source import ImageSource


def test_array_passes_through(wide_image):
    image = ImageSource().load(wide_image)
    assert image.shape == (400, 800, 3)
    assert ImageSource.size(image) == (800, 400)


def test_grayscale_array_becomes_bgr():
    image = ImageSource().load(np.zeros((10, 20), dtype=np.uint8))
    assert image.shape == (10, 20, 3)


def test_loads_file_path(tmp_path, wide_image):
    path = tmp_path / "cam01_Current.png"
    cv2.imwrite(str(path), wide_image)
    image = ImageSource().load(str(path))
    assert image.shape == (400, 800, 3)


def test_decodes_bytes(wide_image):
    ok, encoded = cv2.imencode(".png", wide_image)
    assert ok
    image = ImageSource().load(encoded.tobytes())
    assert ImageSource.size(image) == (800, 400)


def test_missing_file_returns_none(tmp_path):
    assert ImageSource().load(str(tmp_path / "nope.jpg")) is None


def test_garbage_bytes_return_none():
    assert ImageSource().load(b"not an image") is None
    assert ImageSource().load(b"") is None


def test_unsupported_handle_returns_none():
    assert ImageSource().load(12345) is None
    assert ImageSource().load(None) is None


def test_url_is_fetched(wide_image):
    ok, encoded = cv2.imencode(".jpg", wide_image)
    session = MagicMock()
    session.get.return_value.content = encoded.tobytes()
    image = ImageSource(timeout=5, session=session).load("http://cams.local/cam01.jpg")
    session.get.assert_called_once_with("http://cams.local/cam01.jpg", timeout=5)
    assert ImageSource.size(image) == (800, 400)


def test_url_failure_returns_none():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.ConnectionError("down")
    assert ImageSource(session=session).load("https://cams.local/cam01.jpg") is None
