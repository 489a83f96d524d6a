import json

import pytest
from typer.testing import CliRunner

from cookbook import cli
from cookbook.settings import settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def temp_db(db_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", db_path)


def test_create_list_and_show():
    created = runner.invoke(cli.app, ["create", "Porridge", "--preptime", "2", "--cooktime", "8"])
    assert created.exit_code == 0
    assert "Created recipe 1: Porridge" in created.output

    listed = runner.invoke(cli.app, ["list"])
    assert listed.exit_code == 0
    assert "Porridge" in listed.output

    shown = runner.invoke(cli.app, ["show", "1"])
    assert shown.exit_code == 0
    assert "serves 1" in shown.output


def test_digest_from_file_and_stdin(tmp_path, make_payload):
    path = tmp_path / "pancakes.json"
    path.write_text(json.dumps(make_payload()), encoding="utf8")

    from_file = runner.invoke(cli.app, ["digest", str(path)])
    assert from_file.exit_code == 0
    assert "Pancakes" in from_file.output

    from_stdin = runner.invoke(cli.app, ["digest", "-"], input=json.dumps(make_payload(title="Crepes")))
    assert from_stdin.exit_code == 0
    assert "Crepes" in from_stdin.output


def test_failures_exit_nonzero(tmp_path):
    missing = runner.invoke(cli.app, ["show", "42"])
    assert missing.exit_code == 1
    assert "No recipe with that ID found" in missing.output

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf8")
    unreadable = runner.invoke(cli.app, ["digest", str(broken)])
    assert unreadable.exit_code == 1
    assert "could not read recipe JSON" in unreadable.output


def test_steal_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    result = runner.invoke(cli.app, ["steal", "https://example.com/recipe"])
    assert result.exit_code == 1
    assert "GEMINI_API_KEY" in result.output
