import io
import tempfile
from pathlib import Path

import pytest

from core.domain.models import RetrievePayload, RetrievePlan
from core.errors import ArchiveOpenError, MergeError
from core.services import retrieve_pipeline
from core.services.retrieve_pipeline import retrieve_all, write_results_to_disk


@pytest.fixture()
def spool_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "spool"
    path.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(path))
    return path


def test_merges_same_path_across_archives(tmp_path, make_zip, spool_dir) -> None:
    target = tmp_path / "out"
    payloads = [
        make_zip(("pages/Foo.xml.json", {"name": "Foo", "id": 1})),
        make_zip(("pages/Foo.xml.json", {"id": 2, "extra": True}), ("pages/Bar.json", {"name": "Bar"})),
    ]

    result = write_results_to_disk(payloads, str(target))

    assert result.archives == 2
    assert result.files_written == 2
    assert result.files_merged == 1
    content = (target / "pages" / "Foo.xml.json").read_text(encoding="utf-8")
    assert content == '{\n\t"name": "Foo",\n\t"extra": true,\n\t"id": 2\n}'


def test_clears_known_metadata_dirs_only(tmp_path, make_zip, spool_dir) -> None:
    target = tmp_path / "out"
    (target / "pages").mkdir(parents=True)
    (target / "pages" / "Stale.json").write_text("{}")
    (target / "notes").mkdir()
    (target / "notes" / "keep.txt").write_text("mine")

    write_results_to_disk([make_zip(("apps/App.json", "{}"))], str(target))

    assert not (target / "pages").exists()
    assert (target / "notes" / "keep.txt").read_text() == "mine"
    assert (target / "apps" / "App.json").exists()


def test_registry_is_fresh_for_each_run(tmp_path, make_zip, spool_dir) -> None:
    target = tmp_path / "out"

    def run() -> bytes:
        write_results_to_disk(
            [
                make_zip(("pages/Foo.json", {"name": "Foo", "b": 1, "a": {"y": 1, "x": 2}})),
                make_zip(("pages/Foo.json", {"c": [3], "a": {"z": None}})),
            ],
            str(target),
        )
        return (target / "pages" / "Foo.json").read_bytes()

    assert run() == run()


def test_temp_files_and_streams_are_released_on_failure(tmp_path, make_zip, spool_dir) -> None:
    first = make_zip(("pages/Foo.json", "{}"))
    broken = io.BytesIO(b"not a zip")
    never = make_zip(("pages/Later.json", "{}"))

    with pytest.raises(ArchiveOpenError):
        write_results_to_disk([first, broken, never], str(tmp_path / "out"))

    assert list(spool_dir.iterdir()) == []
    assert first.closed and broken.closed
    assert not never.closed
    assert not (tmp_path / "out" / "pages" / "Later.json").exists()


def test_temp_files_removed_after_success(tmp_path, make_zip, spool_dir) -> None:
    write_results_to_disk([make_zip(("pages/A.json", "{}"))], str(tmp_path / "out"))

    assert list(spool_dir.iterdir()) == []


def test_accepts_custom_filesystem_and_dir_list(memory_fs, make_zip, spool_dir) -> None:
    payload = RetrievePayload(plan_key="p1", stream=make_zip(("pages/A.json", "{}")))

    result = write_results_to_disk([payload], "out", filesystem=memory_fs, metadata_dirs=[])

    assert result.cleared_dirs == []
    assert memory_fs.text("out/pages/A.json") == "{}"


def test_retrieve_all_closes_payloads_after_failure(tmp_path, make_zip, spool_dir, monkeypatch) -> None:
    good = make_zip(("pages/Foo.json", "{}"))
    bad = make_zip(("pages/Foo.json", "[]"))
    leftover = make_zip(("pages/Bar.json", "{}"))
    payloads = [RetrievePayload("a", good), RetrievePayload("b", bad), RetrievePayload("c", leftover)]
    seen = {}

    def fake_execute(session, plans):
        seen["plans"] = plans
        return payloads

    monkeypatch.setattr(retrieve_pipeline, "execute_retrieve_plan", fake_execute)
    plans = {"a": RetrievePlan(url="/metadata/retrieve")}

    with pytest.raises(MergeError):
        retrieve_all(object(), plans, str(tmp_path / "out"))

    assert seen["plans"] is plans
    assert all(p.stream.closed for p in payloads)
