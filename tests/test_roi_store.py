import pytest

from storage.roi_store import LocalRoiStore, RoiStoreError

TRIANGLE = [0, 0, 10, 0, 10, 10, 0, 0]


def test_read_returns_scope(local_store):
    response = local_store.read("cam01", "lot_a")
    assert response.cctv_id == "cam01"
    assert list(response.rois) == ["A1", "A2"]
    assert local_store.read("cam99", "lot_a").rois == {}
    assert local_store.read("cam01", "unknown").rois == {}


def test_create_update_delete(local_store):
    assert local_store.create("A3", "cam01", "lot_a", TRIANGLE).success
    assert not local_store.create("A3", "cam01", "lot_a", TRIANGLE).success

    assert local_store.update("A3", "cam01", "lot_a", [1, 1, 5, 1, 5, 5]).success
    assert local_store.read("cam01", "lot_a").rois["A3"] == [1, 1, 5, 1, 5, 5]
    assert not local_store.update("nope", "cam01", "lot_a", TRIANGLE).success

    assert local_store.delete("A3", "cam01", "lot_a").success
    assert not local_store.delete("A3", "cam01", "lot_a").success


def test_invalid_coords_raise_store_error(local_store):
    with pytest.raises(RoiStoreError):
        local_store.create("A9", "cam01", "lot_a", [0, 0, 1, 1])


def test_read_result_is_detached(local_store):
    rois = local_store.read("cam01", "lot_a").rois
    rois["A1"].append(999)
    assert len(local_store.read("cam01", "lot_a").rois["A1"]) == 8


def test_draft_isolates_edits_until_saved(local_store):
    assert local_store.create_draft("lot_a").success
    assert local_store.has_draft("lot_a")

    local_store.delete("A1", "cam01", "lot_a")
    local_store.create("A3", "cam01", "lot_a", TRIANGLE)

    # reads see the draft, the published copy is untouched
    assert set(local_store.read("cam01", "lot_a").rois) == {"A2", "A3"}
    assert set(local_store.published("lot_a")["cam01"]) == {"A1", "A2"}

    draft = local_store.get_draft("lot_a")
    assert [info.cctv_id for info in draft.cctv_list] == ["cam01"]

    saved = local_store.save_draft("lot_a")
    assert saved.success
    assert saved.file_name == "lot_a.json"
    assert not local_store.has_draft("lot_a")
    assert set(local_store.published("lot_a")["cam01"]) == {"A2", "A3"}


def test_save_without_draft_fails(local_store):
    assert not local_store.save_draft("lot_a").success


def test_list_roi_files_includes_drafts(local_store):
    local_store.create_draft("lot_b")
    assert local_store.list_roi_files() == [{"name": "lot_a.json"}, {"name": "lot_b.json"}]


def test_test_images_come_from_image_root(tmp_path):
    folder = tmp_path / "day1"
    folder.mkdir()
    (folder / "cam01_Current.jpg").write_bytes(b"\xff\xd8jpeg")
    (folder / "notes.txt").write_text("skip me")
    (tmp_path / "readme.md").write_text("not a folder")
    store = LocalRoiStore(image_root=str(tmp_path))

    assert store.list_test_folders() == [{"name": "day1"}]
    listing = store.list_test_images("day1")
    assert [image.name for image in listing.images] == ["cam01_Current.jpg"]
    assert listing.total == 1
    assert store.fetch_image("day1", "cam01_Current.jpg") == b"\xff\xd8jpeg"


def test_missing_images_raise_store_error(tmp_path):
    (tmp_path / "day1").mkdir()
    store = LocalRoiStore(image_root=str(tmp_path))
    with pytest.raises(RoiStoreError):
        store.list_test_images("day2")
    with pytest.raises(RoiStoreError):
        store.fetch_image("day1", "cam09.jpg")
    assert LocalRoiStore().list_test_folders() == []
