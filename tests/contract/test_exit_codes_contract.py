from __future__ import annotations

from pathlib import Path

from resource_forge.cli import main as cli_main

"""Exit code contract: 0 clean, 1 fatal startup, 2 validation errors / decode failures / blocked export."""


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # config/forge.yml 無し → exit 1
    assert cli_main([]) == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_invalid_config(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "forge.yml").write_text("inputs: {}\n", encoding="utf-8")
    assert cli_main([]) == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_exit_code_all_success(write_config, sample_csv_files):
    assert cli_main([]) == 0


def test_exit_code_warnings_only_is_success(write_config, sample_csv_files):
    # 範囲外の Duration は警告のみ
    f = sample_csv_files["tasks"]
    f.write_text(f.read_text(encoding="utf-8").replace("T1,Build,Build,2,", "T1,Build,Build,30,"), encoding="utf-8")
    assert cli_main([]) == 0


def test_exit_code_validation_errors(write_config, broken_tasks_csv):
    assert cli_main([]) == 2


def test_exit_code_decode_failure(write_config, sample_csv_files, capsys):
    sample_csv_files["clients"].write_text("", encoding="utf-8")
    assert cli_main([]) == 2
    assert "ERROR clients: data/clients.csv: No data found in the file." in capsys.readouterr().out


def test_exit_code_blocked_export(write_config, broken_tasks_csv):
    assert cli_main(["--export"]) == 2
