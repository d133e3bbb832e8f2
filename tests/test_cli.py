"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from imagegen.cli import _build_parser, _config_from_args, main
from tests._fixtures.repo_builder import RepoBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "dockerfile"])
    assert args.verbose is True
    assert args.command == "dockerfile"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["discover", "--verbose"])
    assert args.verbose is True
    assert args.command == "discover"


def test_cli_collects_repeated_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        [
            "dockerfile",
            "--includes",
            "cmd/.*",
            "--includes",
            "test/.*",
            "--images-from",
            "serving",
            "--additional-packages",
            "tzdata",
            "--generate-rpms-lock-file",
        ]
    )
    assert args.includes == ["cmd/.*", "test/.*"]
    assert args.images_from == ["serving"]
    assert args.additional_packages == ["tzdata"]
    assert args.generate_rpms_lock_file is True


def test_cli_rejects_unknown_template() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["dockerfile", "--template-name", "must-gather"])


def test_cli_flags_override_config(tmp_path: Path) -> None:
    (tmp_path / ".imagegen.yml").write_text(
        "template_name: func-util\nimages_from: [serving]\n", encoding="utf-8"
    )
    parser = _build_parser()
    args = parser.parse_args(
        [
            "dockerfile",
            "--root-dir",
            str(tmp_path),
            "--template-name",
            "default",
            "--dockerfile-test-dir",
            "tests-out",
            "--output",
            str(tmp_path / "out"),
        ]
    )

    config = _config_from_args(args)

    assert config.root == tmp_path.resolve()
    assert config.template_name == "default"
    assert config.images_from == ["serving"]
    assert config.dockerfile_dirs.test_images == "tests-out"
    assert config.output == tmp_path / "out"


def test_discover_prints_entry_points(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.main_package("cmd/webhook")
    repo_builder.main_package("cmd/controller")

    main(["discover", "--root-dir", str(repo_builder.path())])

    assert capsys.readouterr().out.splitlines() == ["cmd/controller", "cmd/webhook"]


def test_dockerfile_command_writes_outputs(repo_builder: RepoBuilder, monkeypatch) -> None:
    repo_builder.go_mod()
    project_file = repo_builder.project_file()
    repo_builder.main_package("cmd/controller")
    monkeypatch.delenv("KNATIVE_CONTROLLER", raising=False)
    output = repo_builder.path() / "openshift"

    main(
        [
            "dockerfile",
            "--root-dir",
            str(repo_builder.path()),
            "--output",
            str(output),
            "--project-file",
            str(project_file),
        ]
    )

    assert (output / "ci-operator/knative-images/controller/Dockerfile").exists()
    assert (output / "images.yaml").exists()


def test_failures_exit_with_status_one(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.main_package("cmd/controller")

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "dockerfile",
                "--root-dir",
                str(repo_builder.path()),
                "--output",
                str(repo_builder.path() / "openshift"),
            ]
        )

    assert excinfo.value.code == 1
    assert "go.mod" in capsys.readouterr().err


def test_must_gather_without_metadata_exits(repo_builder: RepoBuilder, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "must-gather-dockerfile",
                "--root-dir",
                str(repo_builder.path()),
                "--project-file",
                str(repo_builder.path() / "missing.yaml"),
            ]
        )

    assert excinfo.value.code == 1
    assert "metadata" in capsys.readouterr().err


def test_bad_app_file_format_exits_with_status_one(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.go_mod()
    repo_builder.main_package("cmd/controller")

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "dockerfile",
                "--root-dir",
                str(repo_builder.path()),
                "--output",
                str(repo_builder.path() / "openshift"),
                "--app-file-fmt",
                "/usr/bin/app",
            ]
        )

    assert excinfo.value.code == 1
    assert "App file format" in capsys.readouterr().err
    assert not (repo_builder.path() / "openshift").exists()


def test_log_file_receives_scanner_records(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    repo_builder.main_package("cmd/controller")
    log_file = tmp_path / "imagegen.log"

    main(["discover", "--root-dir", str(repo_builder.path()), "--log-file", str(log_file)])

    content = log_file.read_text(encoding="utf-8")
    assert "imagegen.scanner: Main package path cmd/controller" in content


def test_unwritable_log_file_exits_with_status_one(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--log-file", str(tmp_path / "missing" / "imagegen.log"), "discover"])

    assert excinfo.value.code == 1
    assert "Cannot open log file" in capsys.readouterr().err
