from unittest.mock import MagicMock

import pytest
import requests

from storage.roi_store import RoiStoreError
from storage.roi_store_client import RoiStoreClient


def make_client(payload=None, content=b""):
    session = MagicMock()
    session.headers = {}
    response = MagicMock()
    response.json.return_value = payload
    response.content = content
    session.request.return_value = response
    client = RoiStoreClient(base_url="http://roi.local:8080/", project_id="p1", timeout=7, session=session)
    return client, session


def test_read_posts_scope_and_parses_rois():
    client, session = make_client({"cctv_id": "cam01", "rois": {"A1": [0, 0, 5, 0, 5, 5]}})
    result = client.read("cam01", "lot_a")

    session.request.assert_called_once_with(
        "POST", "http://roi.local:8080/v0.1/roi/p1/read", timeout=7,
        json={"cctv_id": "cam01", "project_id": "p1", "roi_file": "lot_a"})
    assert result.rois["A1"] == [0, 0, 5, 0, 5, 5]
    assert session.headers["Content-Type"] == "application/json"


def test_create_update_delete_use_expected_verbs():
    client, session = make_client({"success": True, "message": "ok"})
    coords = [0, 0, 10, 0, 10, 10, 0, 0]

    assert client.create("A1", "cam01", "lot_a", coords).success
    assert client.update("A1", "cam01", "lot_a", coords).success
    assert client.delete("A1", "cam01", "lot_a").success

    calls = [(c.args[0], c.args[1]) for c in session.request.call_args_list]
    assert calls == [
        ("POST", "http://roi.local:8080/v0.1/roi/p1/create"),
        ("PUT", "http://roi.local:8080/v0.1/roi/p1/update"),
        ("DELETE", "http://roi.local:8080/v0.1/roi/p1/delete"),
    ]
    assert session.request.call_args_list[0].kwargs["json"]["coords"] == coords
    assert "coords" not in session.request.call_args_list[2].kwargs["json"]


def test_draft_endpoints_pass_file_param():
    client, session = make_client({"success": True, "message": "ok", "file_name": "lot_a.json"})
    client.create_draft("lot_a")
    saved = client.save_draft("lot_a")

    first, second = session.request.call_args_list
    assert first.args == ("POST", "http://roi.local:8080/v0.1/roi/p1/draft")
    assert first.kwargs["params"] == {"file": "lot_a"}
    assert second.args == ("POST", "http://roi.local:8080/v0.1/roi/p1/draft/save")
    assert saved.file_name == "lot_a.json"


def test_get_draft_parses_cctv_list():
    client, _ = make_client({"cctv_list": [{"cctv_id": "cam01", "parking_id": "P", "roi_coords": []}]})
    draft = client.get_draft("lot_a")
    assert draft.cctv_list[0].parking_id == "P"


def test_listing_helpers():
    client, session = make_client({"folders": [{"name": "lot_a.json"}]})
    assert client.list_roi_files() == [{"name": "lot_a.json"}]
    assert session.request.call_args.args[1] == "http://roi.local:8080/v0.1/parking/p1/images/roi-folders"

    client, _ = make_client([{"name": "day1"}])
    assert client.list_test_folders() == [{"name": "day1"}]

    client, _ = make_client({"images": [{"name": "cam01_Current.jpg"}], "total": 1})
    assert client.list_test_images("day1").images[0].name == "cam01_Current.jpg"


def test_fetch_image_returns_bytes():
    client, session = make_client(content=b"\xff\xd8jpeg")
    assert client.fetch_image("day1", "cam01.jpg") == b"\xff\xd8jpeg"
    assert session.request.call_args.kwargs["params"] == {"file": "cam01.jpg"}


def test_transport_errors_become_store_errors():
    client, session = make_client()
    session.request.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(RoiStoreError):
        client.read("cam01", "lot_a")

    session.request.side_effect = requests.exceptions.Timeout()
    with pytest.raises(RoiStoreError):
        client.save_draft("lot_a")


def test_http_error_status_becomes_store_error():
    client, session = make_client()
    session.request.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
    with pytest.raises(RoiStoreError):
        client.create_draft("lot_a")


def test_unexpected_body_becomes_store_error():
    client, _ = make_client({"unexpected": True})
    with pytest.raises(RoiStoreError):
        client.create("A1", "cam01", "lot_a", [0, 0, 1, 0, 1, 1])

    client, session = make_client()
    session.request.return_value.json.side_effect = ValueError("not json")
    with pytest.raises(RoiStoreError):
        client.read("cam01", "lot_a")


def test_invalid_coords_rejected_before_sending():
    client, session = make_client({"success": True})
    with pytest.raises(RoiStoreError):
        client.update("A1", "cam01", "lot_a", [0, 0, 1])
    session.request.assert_not_called()
