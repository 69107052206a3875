"""Tests for the crossrelease CLI entry points."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from crossrelease_tooling.cli import main as cli_main
from crossrelease_tooling.cli.docs_cmd import run_docs_argv
from crossrelease_tooling.cli.release_cmd import run_release_argv
from crossrelease_tooling.cli.targets_cmd import run_targets_argv


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("RELEASE_BRANCH", "GITHUB_REF", "RUST_TOOLCHAIN", "CRATE_NAME"):
        monkeypatch.delenv(var, raising=False)


class TestTargetsCommand:
    def test_list_prints_registry(self, crate_root: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_targets_argv(["list", "--project-root", str(crate_root)])
        assert exc_info.value.code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "riscv32imc-esp-espidf\triscv32\tnightly (primary)"
        assert lines[1] == "xtensa-esp32-espidf\txtensa-esp32\tesp-esp32"
        assert len(lines) == 4

    def test_check_reports_count(self, crate_root: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_targets_argv(["check", "--project-root", str(crate_root)])
        assert exc_info.value.code == 0
        assert "4 target(s)" in capsys.readouterr().out

    def test_invalid_registry_exits_1(self, crate_root: Path, tmp_path: Path, capsys) -> None:
        registry = tmp_path / "targets.yaml"
        registry.write_text("targets:\n  - triple: riscv32imc-esp-espidf\n")
        with pytest.raises(SystemExit) as exc_info:
            run_targets_argv(["check", "--project-root", str(crate_root), "--targets-file", str(registry)])
        assert exc_info.value.code == 1
        assert "Exactly one primary" in capsys.readouterr().err

    def test_unknown_subcommand_exits_1(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_targets_argv(["frobnicate"])
        assert exc_info.value.code == 1


class TestDocsCommand:
    def test_primary_on_release_branch(self, crate_root: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_docs_argv(
                ["should-deploy", "riscv32imc-esp-espidf", "--project-root", str(crate_root), "--ref", "refs/heads/master"]
            )
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "true"

    def test_non_primary_target(self, crate_root: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_docs_argv(
                ["should-deploy", "xtensa-esp32-espidf", "--project-root", str(crate_root), "--ref", "refs/heads/master"]
            )
        assert exc_info.value.code == 1
        assert capsys.readouterr().out.strip() == "false"

    def test_unknown_triple_exits_1(self, crate_root: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_docs_argv(["should-deploy", "thumbv7em-none-eabihf", "--project-root", str(crate_root)])
        assert exc_info.value.code == 1
        assert "not in the registry" in capsys.readouterr().err


class TestReleaseCommand:
    def test_run_passes_flags(self, crate_root: Path) -> None:
        with patch("crossrelease_tooling.cli.release_cmd.run_release", return_value=0) as m_run:
            with pytest.raises(SystemExit) as exc_info:
                run_release_argv(["run", "--project-root", str(crate_root), "--dry-run", "--no-fail-fast", "--no-push"])
        assert exc_info.value.code == 0
        m_run.assert_called_once_with(
            crate_root.resolve(),
            config_path=None,
            targets_file=None,
            dry_run=True,
            fail_fast=False,
            push_tag=False,
        )

    def test_run_defaults_leave_fail_fast_to_config(self, crate_root: Path) -> None:
        with patch("crossrelease_tooling.cli.release_cmd.run_release", return_value=1) as m_run:
            with pytest.raises(SystemExit) as exc_info:
                run_release_argv(["run", "--project-root", str(crate_root)])
        assert exc_info.value.code == 1
        assert m_run.call_args[1]["fail_fast"] is None
        assert m_run.call_args[1]["push_tag"] is True

    def test_tag_dispatch(self, crate_root: Path) -> None:
        with patch("crossrelease_tooling.cli.release_cmd.run_tag", return_value=0) as m_tag:
            with pytest.raises(SystemExit):
                run_release_argv(["tag", "--project-root", str(crate_root), "--no-push"])
        m_tag.assert_called_once_with(crate_root.resolve(), config_path=None, push=False, dry_run=False)

    def test_missing_subcommand_exits_1(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_release_argv([])
        assert exc_info.value.code == 1


class TestMain:
    def test_no_command_prints_usage(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["crossrelease"])
        with pytest.raises(SystemExit) as exc_info:
            cli_main.main()
        assert exc_info.value.code == 1
        assert "release run" in capsys.readouterr().err

    def test_verbose_flag_is_stripped_before_dispatch(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["crossrelease", "-v", "release", "run"])
        with patch.object(cli_main.release_cmd, "run_release_argv") as m_release:
            cli_main.main()
        m_release.assert_called_once_with()
        assert sys.argv == ["crossrelease", "release", "run"]

    def test_verbose_after_command_is_passed_through(self, monkeypatch: pytest.MonkeyPatch) -> None:
        argv = ["crossrelease", "docs", "should-deploy", "riscv32imc-esp-espidf", "--ref", "-v"]
        monkeypatch.setattr(sys, "argv", list(argv))
        with patch.object(cli_main.docs_cmd, "run_docs_argv") as m_docs:
            cli_main.main()
        m_docs.assert_called_once_with()
        assert sys.argv == argv

    def test_unknown_command_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["crossrelease", "bogus"])
        with pytest.raises(SystemExit) as exc_info:
            cli_main.main()
        assert exc_info.value.code == 1
