# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
import logging

import jsonschema
import pytest

from hpkl import schema
from hpkl.cli import main
from hpkl.config import AppConfig
from hpkl.errors import ProjectError
from hpkl.lockfile import LOCK_FILE, read_lockfile, write_lockfile
from hpkl.package import Checksums, Dependency, ProjectDependencies, ResolvedDependency
from hpkl.project import PROJECT_FILE, Project

HOST = "pkg.example.com"


def write_project(path, dependencies):
    data = {
        "package": None,
        "dependencies": {
            alias: {"uri": uri, "checksums": {"sha256": "00" * 32}}
            for alias, uri in dependencies.items()
        },
    }
    (path / PROJECT_FILE).write_text(json.dumps(data))


@pytest.fixture()
def cli_session(monkeypatch, http_session):
    monkeypatch.setattr(AppConfig, "create_session", lambda self: http_session)
    return http_session


def test_load_project(tmp_path):
    write_project(tmp_path, {"toml.oci": "package://registry/toml@1.0.0"})
    project = Project.load(tmp_path)
    assert project.project_dir == tmp_path
    assert project.dependencies == {
        "toml.oci": Dependency(
            uri="package://registry/toml@1.0.0",
            name="toml.oci",
            checksums=Checksums(sha256="00" * 32),
        )
    }


def test_load_project_missing(tmp_path):
    with pytest.raises(ProjectError, match="not found"):
        Project.load(tmp_path)


@pytest.mark.parametrize("content", ["{", '{"dependencies": {"a": {}}}', '{"dependencies": [1]}'])
def test_load_project_invalid(tmp_path, content):
    (tmp_path / PROJECT_FILE).write_text(content)
    with pytest.raises(ProjectError):
        Project.load(tmp_path)


def test_lockfile(tmp_path):
    assert read_lockfile(tmp_path) is None

    deps = ProjectDependencies(
        resolved_dependencies={
            f"package://{HOST}/b@1": ResolvedDependency(
                uri=f"projectpackage://{HOST}/b@1.0.0", checksums={"sha256": "bb"}
            ),
            f"package://{HOST}/a@2": ResolvedDependency(
                uri=f"projectpackage://{HOST}/a@2.1.0", checksums={"sha256": "aa"}
            ),
        }
    )
    path = write_lockfile(deps, tmp_path)
    assert path == tmp_path / LOCK_FILE
    data = json.loads(path.read_text())
    assert list(data["resolvedDependencies"]) == [f"package://{HOST}/a@2", f"package://{HOST}/b@1"]
    assert data["resolvedDependencies"][f"package://{HOST}/a@2"] == {
        "type": "remote",
        "uri": f"projectpackage://{HOST}/a@2.1.0",
        "checksums": {"sha256": "aa"},
    }
    assert read_lockfile(tmp_path) == deps


def test_lockfile_invalid(tmp_path):
    (tmp_path / LOCK_FILE).write_text('{"schemaVersion": 1}')
    with pytest.raises(ProjectError):
        read_lockfile(tmp_path)


def test_cli_resolve(tmp_path, cli_session, publish, capsys):
    publish("b", "1.0.0")
    publish("b", "1.1.0")
    publish("a", "1.0.0", dependencies={"b": f"package://{HOST}/ns/b@1.0.0"})
    write_project(
        tmp_path, {"a": f"package://{HOST}/ns/a@1.0.0", "b": f"package://{HOST}/ns/b@1.1.0"}
    )

    main(["resolve", "--project-dir", str(tmp_path)])
    assert f"wrote {tmp_path / LOCK_FILE}" in capsys.readouterr().out

    data = json.loads((tmp_path / LOCK_FILE).read_text())
    jsonschema.validate(data, schema=schema.lockfile)
    assert {k: v["uri"] for k, v in data["resolvedDependencies"].items()} == {
        f"package://{HOST}/ns/a@1": f"projectpackage://{HOST}/ns/a@1.0.0",
        f"package://{HOST}/ns/b@1": f"projectpackage://{HOST}/ns/b@1.1.0",
    }


def test_cli_download(tmp_path, cli_session, publish, capsys):
    publish("a", "1.0.0")
    write_project(tmp_path, {"a": f"package://{HOST}/ns/a@1.0.0"})
    cache_dir = tmp_path / "cache"

    args = ["--json", "download", "--project-dir", str(tmp_path), "--cache-dir", str(cache_dir)]
    main(args)
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line)["status"] for line in lines] == ["ok"]
    assert (cache_dir / "package-2" / HOST / "ns" / "a@1.0.0" / "a@1.0.0.zip").is_file()

    main(args)
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line)["status"] for line in lines] == ["cached"]


def test_cli_error(tmp_path, cli_session, capsys):
    with pytest.raises(SystemExit) as e:
        main(["resolve", "--project-dir", str(tmp_path)])
    assert e.value.code != 0
    assert "hpkl: error:" in capsys.readouterr().err


def test_cli_download_lockfile_drift(tmp_path, cli_session, publish, caplog):
    publish("a", "1.0.0")
    publish("a", "1.1.0")
    publish("c", "2.0.0")
    write_project(tmp_path, {"a": f"package://{HOST}/ns/a@1.0.0"})
    main(["resolve", "--project-dir", str(tmp_path)])

    write_project(
        tmp_path, {"a": f"package://{HOST}/ns/a@1.1.0", "c": f"package://{HOST}/ns/c@2.0.0"}
    )
    cache_dir = tmp_path / "cache"
    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="hpkl.commands.download"):
        main(["download", "--project-dir", str(tmp_path), "--cache-dir", str(cache_dir)])

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert (
        f"package://{HOST}/ns/a@1 differs from the lock-file: "
        f"projectpackage://{HOST}/ns/a@1.1.0 != projectpackage://{HOST}/ns/a@1.0.0"
    ) in warnings
    assert f"package://{HOST}/ns/c@2 is not in the lock-file" in warnings


def test_cli_download_matching_lockfile(tmp_path, cli_session, publish, caplog):
    publish("a", "1.0.0")
    write_project(tmp_path, {"a": f"package://{HOST}/ns/a@1.0.0"})
    main(["resolve", "--project-dir", str(tmp_path)])

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="hpkl.commands.download"):
        main(["download", "--project-dir", str(tmp_path), "--cache-dir", str(tmp_path / "c")])
    assert not [r for r in caplog.records if r.name == "hpkl.commands.download"]
