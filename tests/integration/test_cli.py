"""Integration tests for the cadence-migrate command line."""

import json
import os
from pathlib import Path

import pytest
import yaml

from cadence_migrate.cli import EXIT_FAILURES, EXIT_FATAL, EXIT_OK, main
from cadence_migrate.core.config import CONFIG_ENV_VAR

from conftest import LEGACY_CONTRACT, MODERN_CONTRACT, write_file


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch) -> None:
    for name in (CONFIG_ENV_VAR, "SENTRY_DSN", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


def _corpus() -> list:
    return [
        {"id": "fungible", "name": "Fungible", "description": "Token", "category": "tokens", "tags": [], "code": LEGACY_CONTRACT},
        {"id": "counter", "name": "Counter", "description": "Counter", "category": "basics", "tags": [], "code": MODERN_CONTRACT},
    ]


class TestScanCommand:
    """Tests for `cadence-migrate scan`."""

    def test_legacy_project_writes_all_reports(self, legacy_project, tmp_path, capsys) -> None:
        """Test scan writes every report format and exits 1"""
        output_dir = tmp_path / "reports"
        code = main(["scan", legacy_project, "--output-dir", str(output_dir)])
        assert code == EXIT_FAILURES

        for name in ("legacy-patterns-report.md", "legacy-patterns-report.json", "legacy-patterns-report.csv"):
            assert (output_dir / name).is_file()
        data = json.loads((output_dir / "legacy-patterns-report.json").read_text(encoding="utf-8"))
        assert data["total_patterns_found"] == 9

        out = capsys.readouterr().out
        assert "Scanned 5 files and found 9 legacy patterns in 4 files." in out

    def test_single_format(self, legacy_project, tmp_path) -> None:
        main(["scan", legacy_project, "--output-dir", str(tmp_path), "--format", "csv"])
        assert sorted(os.listdir(tmp_path)) == ["legacy-patterns-report.csv"]

    def test_production_scan(self, legacy_project, capsys) -> None:
        """Test --production narrows the scanned files"""
        assert main(["scan", legacy_project, "--production"]) == EXIT_FAILURES
        assert "Scanned 3 files" in capsys.readouterr().out

    def test_clean_project(self, clean_project, capsys) -> None:
        """Test scan exits 0 without critical findings"""
        assert main(["scan", clean_project]) == EXIT_OK
        assert "No legacy patterns found!" in capsys.readouterr().out

    def test_missing_root(self, temp_dir, capsys) -> None:
        """Test a missing root is a fatal error"""
        assert main(["scan", os.path.join(temp_dir, "missing")]) == EXIT_FATAL
        assert "error: " in capsys.readouterr().err

    def test_config_adds_extension(self, temp_dir, tmp_path) -> None:
        """Test extensions from the settings file are scanned"""
        write_file(temp_dir, "legacy.cdcx", "pub fun a() {}\n")
        config = write_file(str(tmp_path), "config.yaml", 'scan:\n  extensions: [".cdcx"]\n')
        assert main(["--config", str(config), "scan", temp_dir]) == EXIT_FAILURES
        assert main(["scan", temp_dir]) == EXIT_OK

    def test_invalid_config(self, clean_project, tmp_path, capsys) -> None:
        config = write_file(str(tmp_path), "config.yaml", "workers: 0\n")
        assert main(["--config", str(config), "scan", clean_project]) == EXIT_FATAL
        assert "Invalid configuration" in capsys.readouterr().err

    def test_invalid_rule_in_config(self, clean_project, tmp_path, capsys) -> None:
        """Test an uncompilable rule is fatal"""
        config = write_file(
            str(tmp_path),
            "config.yaml",
            "transformation_rules:\n  - pattern: '('\n    replacement: x\n    description: Broken\n    category: import\n",
        )
        assert main(["--config", str(config), "scan", clean_project]) == EXIT_FATAL
        assert "Rule set validation failed" in capsys.readouterr().err


class TestMigrateCommand:
    """Tests for `cadence-migrate migrate`."""

    def test_json_corpus(self, temp_dir, tmp_path, capsys) -> None:
        """Test migrate writes the corpus and the report"""
        corpus = write_file(temp_dir, "templates.json", json.dumps(_corpus()))
        output = tmp_path / "out" / "migrated.json"
        report = tmp_path / "out" / "report.md"

        code = main(["migrate", str(corpus), "--output", str(output), "--report", str(report)])
        assert code == EXIT_OK

        migrated = json.loads(output.read_text(encoding="utf-8"))
        assert [t["id"] for t in migrated] == ["fungible", "counter"]
        assert migrated[0]["code"].startswith("access(all) contract Token {")
        assert migrated[0]["tags"] == ["Cadence 1.0"]
        assert migrated[1]["code"] == MODERN_CONTRACT
        assert report.read_text(encoding="utf-8").startswith("# Template Migration Report")
        assert "Migration completed successfully." in capsys.readouterr().out

    def test_originals_written_next_to_output(self, temp_dir, tmp_path) -> None:
        """Test rewritten templates are backed up beside the output"""
        corpus = write_file(temp_dir, "templates.json", json.dumps(_corpus()))
        output = tmp_path / "migrated.json"
        assert main(["migrate", str(corpus), "--output", str(output)]) == EXIT_OK

        backups = json.loads((tmp_path / "migrated.orig.json").read_text(encoding="utf-8"))
        assert [t["id"] for t in backups] == ["fungible"]
        assert backups[0]["code"] == LEGACY_CONTRACT

    def test_no_backup_flag(self, temp_dir, tmp_path) -> None:
        corpus = write_file(temp_dir, "templates.json", json.dumps(_corpus()))
        output = tmp_path / "migrated.json"
        assert main(["migrate", str(corpus), "--output", str(output), "--no-backup"]) == EXIT_OK
        assert sorted(os.listdir(tmp_path)) == ["migrated.json"]

    def test_backup_disabled_in_settings(self, temp_dir, tmp_path) -> None:
        """Test backup_originals: false in the settings file"""
        corpus = write_file(temp_dir, "templates.json", json.dumps(_corpus()))
        config = write_file(temp_dir, "config.yaml", "backup_originals: false\n")
        output = tmp_path / "migrated.json"
        assert main(["--config", str(config), "migrate", str(corpus), "--output", str(output)]) == EXIT_OK
        assert not (tmp_path / "migrated.orig.json").exists()

    def test_yaml_corpus_mapping(self, temp_dir) -> None:
        """Test a YAML mapping with a templates list"""
        corpus = write_file(temp_dir, "templates.yaml", yaml.safe_dump({"templates": _corpus()}))
        assert main(["migrate", str(corpus)]) == EXIT_OK

    def test_failed_template(self, temp_dir) -> None:
        """Test migrate exits 1 when a template fails"""
        items = [{"id": "broken", "code": "pub fun foo() {"}]
        corpus = write_file(temp_dir, "templates.json", json.dumps(items))
        assert main(["migrate", str(corpus)]) == EXIT_FAILURES

    def test_wrong_shape(self, temp_dir, capsys) -> None:
        corpus = write_file(temp_dir, "templates.json", json.dumps({"items": []}))
        assert main(["migrate", str(corpus)]) == EXIT_FATAL
        assert "must contain a list of templates" in capsys.readouterr().err

    def test_malformed_template(self, temp_dir, capsys) -> None:
        corpus = write_file(temp_dir, "templates.json", json.dumps([{"name": "no id"}]))
        assert main(["migrate", str(corpus)]) == EXIT_FATAL
        assert "Malformed template" in capsys.readouterr().err


class TestValidateCommand:
    """Tests for `cadence-migrate validate`."""

    def test_modern_file(self, temp_dir, capsys) -> None:
        """Test validate prints VALID with the full score"""
        path = write_file(temp_dir, "Counter.cdc", MODERN_CONTRACT)
        assert main(["validate", str(path)]) == EXIT_OK
        assert f"{path}: VALID (compliance score 100)" in capsys.readouterr().out

    def test_legacy_file(self, temp_dir, capsys) -> None:
        """Test validate reports rejection and errors"""
        path = write_file(temp_dir, "Token.cdc", LEGACY_CONTRACT)
        assert main(["validate", str(path)]) == EXIT_FAILURES
        out = capsys.readouterr().out
        assert f"{path}: INVALID" in out
        assert 'Rejected: Contains legacy "pub" keyword' in out
        assert "Errors:" in out

    def test_strict_mode(self, temp_dir) -> None:
        """Test --strict turns warnings into failures"""
        path = write_file(temp_dir, "add.cdc", "access(all) fun add(a: Int, b: Int): Int {\n    return a+b\n}")
        assert main(["validate", str(path)]) == EXIT_OK
        assert main(["validate", str(path), "--strict"]) == EXIT_FAILURES

    def test_missing_file(self, temp_dir, capsys) -> None:
        assert main(["validate", os.path.join(temp_dir, "nope.cdc")]) == EXIT_FATAL
        assert "Cannot read" in capsys.readouterr().err


class TestTransformCommand:
    """Tests for `cadence-migrate transform`."""

    def test_stdout(self, temp_dir, capsys) -> None:
        """Test transform prints without touching the file"""
        path = write_file(temp_dir, "Token.cdc", LEGACY_CONTRACT)
        assert main(["transform", str(path)]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("access(all) contract Token {")
        assert path.read_text(encoding="utf-8") == LEGACY_CONTRACT

    def test_in_place(self, temp_dir, capsys) -> None:
        """Test --in-place rewrites the file"""
        path = write_file(temp_dir, "Token.cdc", LEGACY_CONTRACT)
        assert main(["transform", str(path), "--in-place"]) == EXIT_OK
        assert "access(all) resource Vault: Provider & Receiver {" in path.read_text(encoding="utf-8")
        assert f"{path}: 6 substitutions" in capsys.readouterr().err

    def test_manual_migration_notes_on_stderr(self, temp_dir, capsys) -> None:
        path = write_file(temp_dir, "setup.cdc", "account.link<&V>(/public/v, target: /storage/v)\n")
        assert main(["transform", str(path)]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == "account.link<&V>(/public/v, target: /storage/v)\n"
        assert f"{path}:1:" in captured.err


class TestLogging:
    """Tests for the logging flags."""

    def test_log_file(self, clean_project, tmp_path) -> None:
        """Test JSON log lines carry the bound command"""
        log_file = Path(tmp_path) / "run.log"
        assert main(["--log-level", "INFO", "--log-file", str(log_file), "scan", clean_project]) == EXIT_OK
        events = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
        assert any(e.get("event") == "scan_completed" for e in events)
        assert all(e.get("command") == "scan" for e in events)
