"""Tests for the pkgsentinel CLI — no npm, no network (registry and tests disabled)."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pkgsentinel import __version__
from pkgsentinel.cli import main

OFFLINE = ["--no-registry", "--no-tests"]


@pytest.fixture
def cli():
    return CliRunner()


@pytest.fixture
def env():
    # a fixed runtime version keeps the CLI from probing for node
    return {"PKGSENTINEL_RUNTIME_VERSION": "18.17.0"}


@pytest.fixture
def project(tmp_path, write_pkg):
    write_pkg(
        tmp_path,
        name="app",
        version="1.0.0",
        description="demo app",
        scripts={"test": "exit 0"},
        dependencies={"dep": "*"},
    )
    write_pkg(tmp_path / "node_modules" / "dep", name="dep", version="0.1.0", license="MIT")
    return tmp_path


class TestAuditCommand:
    def test_exit_code_is_error_count(self, cli, env, project):
        result = cli.invoke(main, [str(project), *OFFLINE], env=env)
        # app: wildcard dependency; dep: missing scripts.test
        assert result.exit_code == 2
        assert "app - demo app" in result.output
        assert "dependencies for dep's version is a wildcard" in result.output

    def test_warnings_counted_when_enabled(self, cli, env, project):
        result = cli.invoke(main, [str(project), "-w", *OFFLINE], env=env)
        # app: repository.url, bugs.url, homepage, license; dep: the first three
        assert result.exit_code == 2 + 4 + 3
        assert "warning: manifest missing: homepage" in result.output

    def test_package_json_option(self, cli, env, project):
        result = cli.invoke(
            main, ["--package-json", str(project / "package.json"), "-a", "-l", *OFFLINE], env=env
        )
        assert "dep" in result.output
        assert "[license: MIT]" in result.output

    def test_json_output(self, cli, env, project):
        result = cli.invoke(main, [str(project), "--json", *OFFLINE], env=env)
        data = json.loads(result.stdout)
        assert set(data["modules"]) == {"app", "dep"}
        assert data["modules"]["dep"]["versions"]["0.1.0"]["ref_count"] == 1

    def test_dump_file(self, cli, env, project, tmp_path):
        dump = tmp_path / "dump.json"
        cli.invoke(main, [str(project), "--dump", str(dump), *OFFLINE], env=env)
        assert "app" in json.loads(dump.read_text())["modules"]

    def test_no_tests_reports_tests_not_run(self, cli, env, tmp_path, write_pkg):
        write_pkg(tmp_path, name="tidy", version="1.0.0", scripts={"test": "exit 0"})
        result = cli.invoke(main, [str(tmp_path), "-a", *OFFLINE], env=env)
        assert result.exit_code == 0
        assert "1.0.0 tests not run" in result.output
        assert "tests failing" not in result.output
        assert "Errors: 0" in result.output

    def test_nothing_discovered(self, cli, env, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = cli.invoke(main, [str(empty), *OFFLINE], env=env)
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_parallel_must_be_positive(self, cli, env, project):
        result = cli.invoke(main, [str(project), "-p", "0", *OFFLINE], env=env)
        assert result.exit_code == 2

    def test_invalid_env_setting(self, cli, project):
        result = cli.invoke(main, [str(project), *OFFLINE], env={"PKGSENTINEL_PARALLEL": "many"})
        assert result.exit_code == 1
        assert "PKGSENTINEL_" in result.output

    def test_version(self, cli):
        result = cli.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
