import io
import os
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli import main as cli_main
from core.domain.models import RetrievePayload, RetrievePlan
from core.errors import TransportError
from core.services import retrieve_pipeline
from core.services.archive_builder import build_zip_from_memory

runner = CliRunner()


class FakeSession:
    closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_main, "setup_logging", lambda *args, **kwargs: None)


@pytest.fixture()
def fake_site(monkeypatch: pytest.MonkeyPatch) -> dict:
    calls: dict = {}

    def fake_login(settings):
        calls["settings"] = settings
        calls["session"] = FakeSession()
        return calls["session"]

    def fake_plan(session):
        return {"only": RetrievePlan(url="/metadata/retrieve", type="metadataService")}

    def fake_execute(session, plans):
        calls["plans"] = plans
        return [
            RetrievePayload("one", build_zip_from_memory([("pages/Foo.json", '{"name": "Foo", "id": 1}')])),
            RetrievePayload("two", build_zip_from_memory([("pages/Foo.json", '{"id": 2}')])),
        ]

    monkeypatch.setattr(cli_main, "login", fake_login)
    monkeypatch.setattr(cli_main, "get_retrieve_plan", fake_plan)
    monkeypatch.setattr(retrieve_pipeline, "execute_retrieve_plan", fake_execute)
    return calls


def test_retrieve_writes_results_and_reports_success(tmp_path: Path, fake_site: dict) -> None:
    target = tmp_path / "metadata"

    result = runner.invoke(
        cli_main.app,
        ["retrieve", "--host", "https://site.test", "-u", "me", "-p", "pw", "--dir", str(target)],
    )

    assert result.exit_code == 0, result.output
    assert "Successfully retrieved metadata" in result.output
    assert fake_site["settings"].host == "https://site.test"
    assert fake_site["settings"].username == "me"
    assert fake_site["session"].closed
    assert (target / "pages" / "Foo.json").read_text(encoding="utf-8") == '{\n\t"name": "Foo",\n\t"id": 2\n}'


def test_retrieve_login_failure_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_login(settings):
        raise TransportError("bad credentials")

    monkeypatch.setattr(cli_main, "login", failing_login)

    result = runner.invoke(cli_main.app, ["retrieve", "--host", "https://site.test"])

    assert result.exit_code == 1
    assert "Error logging in to site" in result.output
    assert "bad credentials" in result.output


def test_retrieve_write_failure_names_the_stage(tmp_path: Path, fake_site: dict, monkeypatch) -> None:
    def broken_execute(session, plans):
        return [RetrievePayload("bad", build_zip_from_memory([("pages/Foo.json", "{}")])),
                RetrievePayload("worse", build_zip_from_memory([("pages/Foo.json", "[]")]))]

    monkeypatch.setattr(retrieve_pipeline, "execute_retrieve_plan", broken_execute)

    result = runner.invoke(cli_main.app, ["retrieve", "--host", "https://site.test", "--dir", str(tmp_path / "m")])

    assert result.exit_code == 1
    assert "Error writing results to disk" in result.output


def test_retrieve_corrupt_archive_names_the_write_stage(tmp_path: Path, fake_site: dict, monkeypatch) -> None:
    raw = bytearray(build_zip_from_memory([("pages/Foo.json", "{}" * 200)]).getvalue())
    with zipfile.ZipFile(io.BytesIO(bytes(raw))) as zf:
        info = zf.getinfo("pages/Foo.json")
    start = info.header_offset + 30 + len("pages/Foo.json")
    raw[start:start + info.compress_size] = b"\xff" * info.compress_size

    monkeypatch.setattr(
        retrieve_pipeline,
        "execute_retrieve_plan",
        lambda session, plans: [RetrievePayload("bad", io.BytesIO(bytes(raw)))],
    )

    result = runner.invoke(cli_main.app, ["retrieve", "--host", "https://site.test", "--dir", str(tmp_path / "m")])

    assert result.exit_code == 1
    assert "Error writing results to disk" in result.output


def test_retrieve_transport_failure_names_the_execute_stage(fake_site: dict, monkeypatch) -> None:
    def failing_execute(session, plans):
        raise TransportError("HTTP 502")

    monkeypatch.setattr(retrieve_pipeline, "execute_retrieve_plan", failing_execute)

    result = runner.invoke(cli_main.app, ["retrieve", "--host", "https://site.test"])

    assert result.exit_code == 1
    assert "Error executing retrieve plan" in result.output


def test_pack_builds_zip(tmp_path: Path) -> None:
    pages = tmp_path / "metadata" / "pages"
    pages.mkdir(parents=True)
    (pages / "Foo.json").write_text("{}", encoding="utf-8")
    output = tmp_path / "dist" / "pages.zip"

    result = runner.invoke(cli_main.app, ["pack", str(pages), str(output)])

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as zf:
        assert zf.namelist() == ["pages/Foo.json"]


def test_pack_trailing_separator_archives_contents(tmp_path: Path) -> None:
    pages = tmp_path / "metadata" / "pages"
    pages.mkdir(parents=True)
    (pages / "Foo.json").write_text("{}", encoding="utf-8")
    output = tmp_path / "contents.zip"

    result = runner.invoke(cli_main.app, ["pack", str(pages) + os.sep, str(output)])

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as zf:
        assert zf.namelist() == ["Foo.json"]


def test_pack_missing_source_removes_output(tmp_path: Path) -> None:
    output = tmp_path / "out.zip"

    result = runner.invoke(cli_main.app, ["pack", str(tmp_path / "missing"), str(output)])

    assert result.exit_code == 1
    assert not output.exists()


def test_friendly_path_defaults_to_cwd() -> None:
    assert cli_main.get_friendly_path("") == str(Path.cwd().resolve())


def test_doctor_reports_missing_host() -> None:
    result = runner.invoke(cli_main.app, ["doctor", "run"])

    assert result.exit_code == 0, result.output
    assert "HTTP connectivity" in result.output
    assert "Temp spooling" in result.output


def test_doctor_setup_site_writes_user_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from core import config

    env_file = tmp_path / "user" / ".env"
    monkeypatch.setattr(config, "get_user_env_file", lambda: env_file)

    result = runner.invoke(
        cli_main.app,
        ["doctor", "setup-site"],
        input="https://site.test\nme\nsecret\n2\n",
    )

    assert result.exit_code == 0, result.output
    text = env_file.read_text(encoding="utf-8")
    assert "SITEPULL_HOST=https://site.test" in text
    assert "SITEPULL_PASSWORD=secret" in text
