import json

from typer.testing import CliRunner

from campaignkit.cache import FileAssetCache
from campaignkit.cli import app

runner = CliRunner()


def _setup(tmp_path, html=b"<img src='https://img/a.png'>", assets=None):
    base_dir = tmp_path / "campaignkit"
    result = runner.invoke(app, ["--config-dir", str(base_dir), "init"])
    assert result.exit_code == 0, result.output

    cache = FileAssetCache(base_dir / "cache")
    entries = {"campaignrules/assets/m.html": html}
    entries.update(assets or {})
    for key, data in entries.items():
        path = cache.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return base_dir


def _payload(tmp_path, details):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(details), encoding="utf-8")
    return path


def test_init_creates_config(tmp_path):
    base_dir = tmp_path / "campaignkit"

    result = runner.invoke(app, ["--config-dir", str(base_dir), "init"])

    assert result.exit_code == 0
    assert (base_dir / "config.yml").exists()
    assert "Global config created" in result.stdout

    result = runner.invoke(app, ["--config-dir", str(base_dir), "init"])
    assert "already exists" in result.stdout


def test_render_writes_expanded_html(tmp_path):
    base_dir = _setup(tmp_path, assets={"messages/m1/https://img/a.png": b"file:///cache/a.png"})
    payload = _payload(tmp_path, {"html": "m.html", "remoteAssets": [["https://img/a.png", "a.png"]]})
    output = tmp_path / "out.html"

    result = runner.invoke(
        app,
        ["--config-dir", str(base_dir), "render", str(payload), "--message-id", "m1", "--output", str(output)],
    )

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8") == "<img src='file:///cache/a.png'>"


def test_render_to_stdout_without_assets(tmp_path):
    base_dir = _setup(tmp_path, html=b"<html>Hi</html>")
    payload = _payload(tmp_path, {"html": "m.html"})

    result = runner.invoke(app, ["--config-dir", str(base_dir), "render", str(payload)])

    assert result.exit_code == 0, result.output
    assert "<html>Hi</html>" in result.stdout


def test_render_fails_for_missing_html(tmp_path):
    base_dir = _setup(tmp_path)
    payload = _payload(tmp_path, {"html": "absent.html"})

    result = runner.invoke(app, ["--config-dir", str(base_dir), "render", str(payload)])

    assert result.exit_code == 1
    assert "not found in cache" in result.stdout


def test_render_rejects_payload_without_html(tmp_path):
    base_dir = _setup(tmp_path)
    payload = _payload(tmp_path, {"remoteAssets": [["https://img/a.png"]]})

    result = runner.invoke(app, ["--config-dir", str(base_dir), "render", str(payload)])

    assert result.exit_code == 1
    assert "html is required" in result.stdout


def test_resolve_prints_table(tmp_path):
    base_dir = _setup(tmp_path)
    payload = _payload(
        tmp_path,
        {"html": "m.html", "remoteAssets": [["https://img/a.png", "a.png"], ["https://img/b.png"]]},
    )

    result = runner.invoke(app, ["--config-dir", str(base_dir), "resolve", str(payload)])

    assert result.exit_code == 0, result.output
    assert "local" in result.stdout
    assert "unresolved" in result.stdout


def test_interact_lists_events(tmp_path):
    base_dir = _setup(tmp_path)
    payload = _payload(tmp_path, {"id": "m9", "details": {"html": "m.html"}})

    result = runner.invoke(app, ["--config-dir", str(base_dir), "interact", str(payload), "h1,86f,3"])

    assert result.exit_code == 0, result.output
    assert "clicked" in result.stdout
    assert "viewed" in result.stdout


def test_interact_ignores_bad_id(tmp_path):
    base_dir = _setup(tmp_path)
    payload = _payload(tmp_path, {"html": "m.html"})

    result = runner.invoke(app, ["--config-dir", str(base_dir), "interact", str(payload), "bad"])

    assert result.exit_code == 0
    assert "was ignored" in result.stdout


def test_commands_require_config(tmp_path):
    payload = _payload(tmp_path, {"html": "m.html"})

    result = runner.invoke(app, ["--config-dir", str(tmp_path / "missing"), "render", str(payload)])

    assert result.exit_code == 1
    assert "Error loading configuration" in result.stdout
