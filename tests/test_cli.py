"""
Tests for the snapstore command line.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from snapstore._src.exceptions import StoreCapabilityError, UsageError
from snapstore._src.store.local import LocalStore
from snapstore.cli.root import app


@pytest.fixture
def env(tmp_path: Path) -> dict:
    return {
        "SNAPSTORE_ROOT": str(tmp_path / "root"),
        "SNAPSTORE_STORE": "local",
        "SNAPSTORE_CATALOG": None,
        "SNAPSTORE_PROFILES_DIR": None,
    }


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCLIGlobal:

    def test_help(self, runner: CliRunner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "path-info" in result.output
        assert "profile" in result.output


class TestPathInfo:

    def test_paths(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        a = local_store.print_store_path(chain["a"])
        result = runner.invoke(app, ["path-info", a, a], env=env)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [a]

    def test_recursive(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        a = local_store.print_store_path(chain["a"])
        result = runner.invoke(app, ["path-info", "--recursive", a], env=env)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [local_store.print_store_path(p) for p in sorted(chain.values())]

    def test_all(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        result = runner.invoke(app, ["path-info", "--all"], env=env)
        assert result.exit_code == 0, result.output
        assert len(result.output.splitlines()) == 3

    def test_all_with_installables(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        result = runner.invoke(app, ["path-info", "--all", local_store.print_store_path(chain["a"])], env=env)
        assert isinstance(result.exception, UsageError)

    def test_derivation(self, runner: CliRunner, env: dict, local_store: LocalStore, hello_drv: dict):
        drv = local_store.print_store_path(hello_drv["drv"])
        result = runner.invoke(app, ["path-info", "--derivation", f"{drv}!out"], env=env)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [drv]

    def test_package_name(self, runner: CliRunner, env: dict, local_store: LocalStore, catalog_file: Path, hello_drv: dict):
        result = runner.invoke(app, ["--catalog", str(catalog_file), "path-info", "hello"], env=env)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [local_store.print_store_path(hello_drv["out"])]


class TestVerify:

    def test_recursive_by_default(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        result = runner.invoke(app, ["verify", local_store.print_store_path(chain["a"])], env=env)
        assert result.exit_code == 0, result.output
        assert "checked 3 path(s), 0 missing" in result.output

    def test_no_recursive(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        result = runner.invoke(app, ["verify", "--no-recursive", local_store.print_store_path(chain["a"])], env=env)
        assert "checked 1 path(s), 0 missing" in result.output

    def test_missing_contents(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        Path(local_store.print_store_path(chain["c"])).unlink()
        result = runner.invoke(app, ["verify", "--all"], env=env)
        assert result.exit_code == 1
        assert "1 missing" in result.output


class TestShow:

    def test_single_path(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        result = runner.invoke(app, ["show", local_store.print_store_path(chain["b"])], env=env)
        assert result.exit_code == 0, result.output
        assert "references" in result.output

    def test_requires_exactly_one(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        paths = [local_store.print_store_path(chain[n]) for n in ("a", "b")]
        result = runner.invoke(app, ["show", *paths], env=env)
        assert isinstance(result.exception, UsageError)


class TestAddFile:

    def test_add(self, runner: CliRunner, env: dict, local_store: LocalStore, tmp_path: Path):
        source = tmp_path / "notes.txt"
        source.write_text("remember")
        result = runner.invoke(app, ["add-file", str(source)], env=env)
        assert result.exit_code == 0, result.output
        printed = result.output.strip()
        assert printed.endswith("-notes.txt")
        assert local_store.is_valid_path(local_store.parse_store_path(printed))


class TestBuild:

    def test_realised_output_to_profile(self, runner: CliRunner, env: dict, local_store: LocalStore, hello_drv: dict, tmp_path: Path):
        drv = local_store.print_store_path(hello_drv["drv"])
        profile = tmp_path / "p"
        result = runner.invoke(app, ["build", f"{drv}!out", "--profile", str(profile)], env=env)
        assert result.exit_code == 0, result.output
        assert "is now at generation 1" in result.output
        assert profile.resolve() == Path(local_store.print_store_path(hello_drv["out"])).resolve()

    def test_unrealised_output(self, runner: CliRunner, env: dict, local_store: LocalStore, hello_drv: dict):
        drv = local_store.print_store_path(hello_drv["drv"])
        result = runner.invoke(app, ["build", f"{drv}!doc"], env=env)
        assert result.exit_code != 0

    def test_dry_run(self, runner: CliRunner, env: dict, local_store: LocalStore, hello_drv: dict):
        drv = local_store.print_store_path(hello_drv["drv"])
        result = runner.invoke(app, ["build", "--dry-run", f"{drv}!*"], env=env)
        assert result.exit_code == 0, result.output
        assert "(not realised)" in result.output


class TestProfile:

    def _set(self, runner, env, local_store, path):
        return runner.invoke(app, ["profile", "set", local_store.print_store_path(path)], env=env)

    def test_set_and_current(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict, tmp_path: Path):
        result = self._set(runner, env, local_store, chain["a"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "root" / "profiles" / "default").is_symlink()

        result = runner.invoke(app, ["profile", "current"], env=env)
        assert result.output.strip() == local_store.print_store_path(chain["a"])

    def test_current_without_generations(self, runner: CliRunner, env: dict):
        result = runner.invoke(app, ["profile", "current"], env=env)
        assert result.exit_code == 1
        assert "has no generations" in result.output

    def test_history_and_rollback(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        for name in ("a", "b"):
            assert self._set(runner, env, local_store, chain[name]).exit_code == 0

        result = runner.invoke(app, ["profile", "history"], env=env)
        assert result.exit_code == 0, result.output
        assert "Generations" in result.output

        result = runner.invoke(app, ["profile", "rollback"], env=env)
        assert result.exit_code == 0, result.output
        assert "generation 1" in result.output

        result = runner.invoke(app, ["profile", "current"], env=env)
        assert result.output.strip() == local_store.print_store_path(chain["a"])

    def test_set_requires_single_path(self, runner: CliRunner, env: dict, local_store: LocalStore, chain: dict):
        paths = [local_store.print_store_path(p) for p in (chain["a"], chain["b"])]
        result = runner.invoke(app, ["profile", "set", *paths], env=env)
        assert "there are 2" in str(result.exception)


class TestCatalogErrors:

    def test_missing_catalog(self, runner: CliRunner, env: dict, tmp_path: Path):
        catalog = tmp_path / "nope.yaml"
        result = runner.invoke(app, ["--catalog", str(catalog), "path-info", "hello"], env=env)
        assert isinstance(result.exception, UsageError)
        assert str(catalog) in str(result.exception)

    def test_malformed_catalog(self, runner: CliRunner, env: dict, tmp_path: Path):
        catalog = tmp_path / "broken.yaml"
        catalog.write_text("packages: [")
        result = runner.invoke(app, ["--catalog", str(catalog), "path-info", "hello"], env=env)
        assert isinstance(result.exception, UsageError)
        assert "invalid catalog" in str(result.exception)

    def test_catalog_with_wrong_shape(self, runner: CliRunner, env: dict, tmp_path: Path):
        catalog = tmp_path / "shape.yaml"
        catalog.write_text("packages:\n  hello: 3\n")
        result = runner.invoke(app, ["--catalog", str(catalog), "path-info", "hello"], env=env)
        assert isinstance(result.exception, UsageError)
        assert str(catalog) in str(result.exception)


class TestProfileOnMemoryStore:

    @pytest.mark.parametrize("args", [
        ["profile", "current"],
        ["profile", "history"],
        ["profile", "rollback"],
        ["profile", "set", "hello"],
    ])
    def test_rejected(self, runner: CliRunner, env: dict, args: list):
        result = runner.invoke(app, ["--store", "dummy://", *args], env=env)
        assert isinstance(result.exception, StoreCapabilityError)
