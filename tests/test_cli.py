"""
Tests for the merge-batcher command line interface.
"""
import json

import click
import pytest
from click.testing import CliRunner

from merge_batcher import __version__
from merge_batcher.cli import build_settings, cli, read_statements


@pytest.fixture
def statements_file(tmp_path):
    path = tmp_path / "statements.jsonl"
    records = [
        {"sql": "INSERT INTO t (a, b) VALUES (:a, :b)", "parameters": {"a": 1, "b": "x"}},
        {"sql": "INSERT INTO t (a, b) VALUES (:a, :b)", "parameters": {"a": 2, "b": "y"}},
        {"sql": "UPDATE t SET b = :b WHERE a = :a", "parameters": {"a": 1, "b": "z"}, "expected_rows": 1},
        {"sql": "VACUUM", "mergeable": False, "expected_rows": 0},
    ]
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n\n")
    return path


@pytest.mark.core
def test_read_statements(statements_file):
    statements = read_statements(str(statements_file))

    assert len(statements) == 4
    assert [p.name for p in statements[0].parameters] == ["a", "b"]
    assert statements[2].expected_row_count == 1
    assert not statements[3].can_be_merged
    assert statements[3].expected_row_count == 0


@pytest.mark.core
def test_read_statements_invalid_line(tmp_path):
    path = tmp_path / "bad.jsonl"
    path.write_text('{"parameters": {}}\n')

    with pytest.raises(click.ClickException):
        read_statements(str(path))


@pytest.mark.core
def test_build_settings_rejects_bad_batch_size(monkeypatch):
    monkeypatch.delenv("MERGE_BATCHER_BATCH_SIZE", raising=False)
    assert build_settings(5, None, dry_run=True).batch_size == 5

    with pytest.raises(click.BadParameter):
        build_settings(-2, None, dry_run=True)


@pytest.mark.core
def test_zero_batch_size_is_rejected(statements_file, monkeypatch):
    monkeypatch.setenv("MERGE_BATCHER_BATCH_SIZE", "50")

    with pytest.raises(click.BadParameter):
        build_settings(0, None, dry_run=True)

    result = CliRunner().invoke(cli, ["compile", str(statements_file), "--batch-size", "0"])
    assert result.exit_code == 2
    assert "Batch size must be a positive integer" in result.output


@pytest.mark.core
def test_compile_command(statements_file, monkeypatch):
    monkeypatch.delenv("MERGE_BATCHER_BATCH_SIZE", raising=False)
    runner = CliRunner()

    result = runner.invoke(cli, ["compile", str(statements_file)])

    assert result.exit_code == 0, result.output
    assert "Merged statement 1" in result.output
    assert "Single statement 2" in result.output
    assert "compiled to 2 round trips" in result.output


@pytest.mark.core
def test_compile_command_malformed_insert(tmp_path):
    path = tmp_path / "bad.jsonl"
    path.write_text(json.dumps({"sql": "INSERT INTO t (a) VALUES (1), (2)"}) + "\n")

    result = CliRunner().invoke(cli, ["compile", str(path)])

    assert result.exit_code == 1
    assert "Error" in result.output


@pytest.mark.core
def test_version_command():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output
