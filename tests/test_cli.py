"""End-to-end tests for the magro command line."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner, Result

from magro.cli import cli


@pytest.fixture
def run(magro_env: Path) -> Any:
    runner = CliRunner()

    def invoke(*args: str) -> Result:
        return runner.invoke(cli, list(args))

    return invoke


@pytest.fixture
def work(run: Any, base_dir: Path) -> Path:
    """A 'work' collection at base_dir, set as default."""
    result = run("collection", "add", "work", str(base_dir), "--default")
    assert result.exit_code == 0, result.output
    return base_dir


class TestCollectionCommands:
    """Tests for 'magro collection'."""

    def test_add_and_list(self, run: Any, tmp_path: Path) -> None:
        result = run("collection", "add", "work", str(tmp_path / "work"))
        assert result.exit_code == 0
        assert "Added collection 'work'" in result.output

        result = run("collection", "ls", "--json")
        assert result.exit_code == 0
        assert '"name": "work"' in result.output
        assert '"default": false' in result.output

    def test_list_empty(self, run: Any) -> None:
        result = run("collection", "list")
        assert result.exit_code == 0
        assert "No collections" in result.output

    def test_duplicate_add_fails(self, run: Any, work: Path) -> None:
        result = run("collection", "add", "work", str(work))
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_name_is_usage_error(self, run: Any, tmp_path: Path) -> None:
        result = run("collection", "add", "a.b", str(tmp_path))
        assert result.exit_code == 2
        assert "Invalid collection name" in result.output

    def test_del_mixed_names(self, run: Any, work: Path, tmp_path: Path) -> None:
        run("collection", "add", "oss", str(tmp_path / "oss"))

        result = run("collection", "del", "work", "nope", "oss")

        assert result.exit_code == 1
        assert "Unregistered collection 'work'" in result.output
        assert "Unregistered collection 'oss'" in result.output
        assert "'nope' does not exist" in result.output
        assert "No collections" in run("collection", "list").output

    def test_del_allow_remove_nothing(self, run: Any) -> None:
        result = run("collection", "del", "nope", "--allow-remove-nothing")
        assert result.exit_code == 0

    def test_rename_keeps_default(self, run: Any, work: Path) -> None:
        result = run("collection", "rename", "work", "job")
        assert result.exit_code == 0

        result = run("collection", "set-default")
        assert result.output.strip() == "job"

    def test_set_default_and_unset(self, run: Any, work: Path) -> None:
        assert run("collection", "set-default", "--unset").exit_code == 0
        assert "No default collection" in run("collection", "set-default").output

        assert run("collection", "set-default", "work").exit_code == 0
        assert run("collection", "set-default").output.strip() == "work"

    def test_set_default_unknown(self, run: Any) -> None:
        result = run("collection", "set-default", "nope")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_set_default_name_and_unset_conflict(self, run: Any, work: Path) -> None:
        result = run("collection", "set-default", "work", "--unset")
        assert result.exit_code == 2

    def test_set_path_drops_cache(self, run: Any, work: Path, tmp_path: Path) -> None:
        run("list")
        elsewhere = tmp_path / "elsewhere"

        result = run("collection", "set-path", "work", str(elsewhere))

        assert result.exit_code == 0
        assert run("list").output == ""


class TestListCommand:
    """Tests for 'magro list'."""

    def test_lists_repositories(self, run: Any, work: Path) -> None:
        result = run("list")

        assert result.exit_code == 0
        assert result.output == f"{work / 'a'}\n{work / 'b'}\n"

    def test_null_separated(self, run: Any, work: Path) -> None:
        result = run("list", "-z")
        assert result.output == f"{work / 'a'}\0{work / 'b'}\0"

    def test_kind_filter(self, run: Any, work: Path) -> None:
        result = run("ls", "--kind", "bare")
        assert result.output == f"{work / 'b'}\n"

    def test_path_base_collection(self, run: Any, work: Path) -> None:
        result = run("list", "--path-base", "collection")
        assert result.output == "a\nb\n"

    def test_list_is_served_from_cache(
        self, run: Any, work: Path, make_workdir: Any
    ) -> None:
        run("list")
        make_workdir(work / "new")

        assert str(work / "new") not in run("list").output
        assert str(work / "new") in run("list", "--refresh").output

    def test_unknown_collection(self, run: Any, work: Path) -> None:
        result = run("list", "-c", "work,nope")
        assert result.exit_code == 1
        assert "'nope' does not exist" in result.output

    def test_scan_error_exit_code(self, run: Any, tmp_path: Path) -> None:
        target = tmp_path / "dangling"
        target.symlink_to(tmp_path / "nowhere")
        assert run("collection", "add", "broken", str(target)).exit_code == 0

        result = run("list", "--keep-going")

        assert result.exit_code == 4
        assert "broken symlink" in result.output

    def test_corrupt_config_exit_code(self, run: Any, magro_env: Path) -> None:
        config = magro_env / "config" / "collections.json"
        config.parent.mkdir(parents=True)
        config.write_text("{")

        result = run("list")

        assert result.exit_code == 3
        assert "Corrupt config file" in result.output

    def test_pick(self, run: Any, work: Path, mocker: Any) -> None:
        select = mocker.patch("magro.repo.cli.fuzzy_select", return_value=1)

        result = run("list", "--pick")

        assert result.exit_code == 0
        assert result.output.strip() == str(work / "b")
        options = select.call_args.args[0]
        assert options[0].startswith("work/a")


class TestRefreshCommand:
    """Tests for 'magro refresh'."""

    def test_refresh_all(self, run: Any, work: Path) -> None:
        result = run("refresh")
        assert result.exit_code == 0
        assert "work: 2 repositories" in result.output

    def test_refresh_unknown_collection(self, run: Any, work: Path) -> None:
        result = run("refresh", "-c", "nope")
        assert result.exit_code == 1

    def test_keep_going_reports_unknown_but_refreshes_rest(
        self, run: Any, work: Path
    ) -> None:
        result = run("refresh", "-c", "work", "-c", "nope", "--keep-going")

        assert result.exit_code == 4
        assert "work: 2 repositories" in result.output
        assert "'nope' does not exist" in result.output


class TestCloneCommand:
    """Tests for 'magro clone'."""

    @pytest.fixture
    def fake_clone(self, mocker: Any) -> Any:
        def clone(source: str, destination: Path, *, bare: bool = False) -> None:
            destination.mkdir(parents=True)

        return mocker.patch("magro.repo.cli.clone_repository", side_effect=clone)

    def test_clone_into_default(self, run: Any, work: Path, fake_clone: Any) -> None:
        result = run("clone", "https://example.com/owner/repo.git")

        assert result.exit_code == 0, result.output
        dest = work / "example.com" / "owner" / "repo"
        fake_clone.assert_called_once_with(
            "https://example.com/owner/repo.git", dest, bare=False
        )

    def test_clone_updates_existing_cache(
        self, run: Any, work: Path, fake_clone: Any
    ) -> None:
        run("list")

        run("clone", "git@example.com:owner/repo.git", "-c", "work", "--bare")

        assert str(work / "example.com" / "owner" / "repo.git") in run(
            "list", "--kind", "bare"
        ).output

    def test_clone_local_path_rejected(self, run: Any, work: Path, fake_clone: Any) -> None:
        result = run("clone", "/srv/git/repo")
        assert result.exit_code == 2
        fake_clone.assert_not_called()

    def test_clone_without_default(self, run: Any, tmp_path: Path, fake_clone: Any) -> None:
        run("collection", "add", "work", str(tmp_path / "work"))

        result = run("clone", "https://example.com/owner/repo.git")

        assert result.exit_code == 1
        assert "no default collection" in result.output
        fake_clone.assert_not_called()

    def test_clone_into_non_empty_destination(
        self, run: Any, work: Path, fake_clone: Any
    ) -> None:
        dest = work / "example.com" / "owner" / "repo"
        dest.mkdir(parents=True)
        (dest / "file").write_text("x")

        result = run("clone", "https://example.com/owner/repo.git")

        assert result.exit_code == 1
        assert "already exists" in result.output
        fake_clone.assert_not_called()
