import json
import os
from unittest.mock import patch

from click.testing import CliRunner

from s3_artifact_sync.cli import build_overrides, main


def invoke(args, env=None):
    runner = CliRunner()
    return runner.invoke(main, args, env=env or {}, catch_exceptions=False)


def test_dry_run_upload_succeeds_without_credentials(dist):
    result = invoke(
        ["--bucket", "artifacts", "--source", "dist/**", "--target", "site", "--dry-run", "--no-progress"]
    )
    assert result.exit_code == 0, result.output


def test_settings_come_from_plugin_environment(dist, tmp_path):
    env = {
        "PLUGIN_BUCKET": "artifacts",
        "PLUGIN_SOURCE": "dist/*.txt",
        "PLUGIN_DRY_RUN": "true",
        "PLUGIN_REPORT_DIR": str(tmp_path / "reports"),
    }
    result = invoke(["--no-progress"], env=env)
    assert result.exit_code == 0, result.output

    reports = sorted((tmp_path / "reports").glob("report_*.json"))
    assert len(reports) == 1
    report = json.loads(reports[0].read_text(encoding="utf-8"))
    assert report["mode"] == "upload"
    assert report["files"][0]["key"] == "/dist/notes.txt"


def test_env_file_is_loaded_first(dist, tmp_path):
    env_file = tmp_path / "ci.env"
    env_file.write_text("PLUGIN_BUCKET=artifacts\nPLUGIN_SOURCE=dist/*.txt\n", encoding="utf-8")
    # load_dotenv writes straight into os.environ
    with patch.dict(os.environ):
        os.environ.pop("PLUGIN_BUCKET", None)
        os.environ.pop("PLUGIN_SOURCE", None)
        result = invoke(["--env-file", str(env_file), "--dry-run", "--no-progress"])
    assert result.exit_code == 0, result.output


def test_directory_source_exits_non_zero(dist):
    result = invoke(["--bucket", "artifacts", "--source", "dist", "--dry-run", "--no-progress"])
    assert result.exit_code == 1


def test_invalid_strip_prefix_exits_non_zero(dist):
    result = invoke(
        ["--bucket", "artifacts", "--source", "dist/**", "--strip-prefix", "/a//*/", "--dry-run", "--no-progress"]
    )
    assert result.exit_code == 1


def test_missing_bucket_exits_non_zero(dist):
    result = invoke(["--source", "dist/**", "--dry-run", "--no-progress"])
    assert result.exit_code == 1


def test_build_overrides_sections():
    overrides = build_overrides({"bucket": "b", "region": "eu-west-1", "log_level": "debug", "report_dir": None})
    assert overrides["upload"]["bucket"] == "b"
    assert overrides["aws"]["region"] == "eu-west-1"
    assert overrides["logging"] == {"level": "DEBUG"}
    assert overrides["report"] == {}
