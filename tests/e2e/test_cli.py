# ABOUTME: End-to-end tests for the uopds CLI.
# ABOUTME: Tests inspect, scan, ls, and serve argument handling via Click's CliRunner.

from collections.abc import Callable
from pathlib import Path

from click.testing import CliRunner

from uopds.cli import cli


class TestCliInspect:
    """E2e tests for `uopds inspect`."""

    def test_inspect_shows_metadata(self, sample_epub: Path) -> None:
        """Inspect command displays metadata for a valid EPUB."""
        runner = CliRunner()
        result = runner.invoke(cli, ["inspect", str(sample_epub)])
        assert result.exit_code == 0
        assert "The Name of the Rose" in result.output
        assert "Umberto Eco" in result.output

    def test_inspect_shows_cover(
        self, tmp_path: Path, make_epub: Callable[..., Path], cover_bytes: bytes
    ) -> None:
        path = make_epub(tmp_path / "c.epub", cover=cover_bytes)
        result = CliRunner().invoke(cli, ["inspect", str(path)])
        assert result.exit_code == 0
        assert "OEBPS/images/cover.jpg" in result.output

    def test_inspect_nonexistent_file_fails(self) -> None:
        """Inspect command fails gracefully for nonexistent file."""
        runner = CliRunner()
        result = runner.invoke(cli, ["inspect", "/nonexistent/path.epub"])
        assert result.exit_code != 0

    def test_inspect_corrupt_epub_reports_error(self, corrupt_epub: Path) -> None:
        """Inspect command reports a clear error for corrupt files."""
        runner = CliRunner()
        result = runner.invoke(cli, ["inspect", str(corrupt_epub)])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestCliScan:
    """E2e tests for `uopds scan`."""

    def _args(self, tmp_path: Path) -> list[str]:
        return [
            "scan",
            "--books", str(tmp_path / "books"),
            "--covers", str(tmp_path / "covers"),
            "--db", str(tmp_path / "catalog.db"),
        ]

    def test_scan_reports_counts(
        self, tmp_path: Path, make_epub: Callable[..., Path], cover_bytes: bytes
    ) -> None:
        make_epub(tmp_path / "books" / "rose.epub", cover=cover_bytes)
        (tmp_path / "books" / "broken.epub").write_text("not a zip")
        (tmp_path / "books" / "notes.zzqx").write_text("x")

        result = CliRunner().invoke(cli, self._args(tmp_path))

        assert result.exit_code == 0
        assert "1 added" in result.output
        assert "1 skipped" in result.output
        assert "1 error(s)" in result.output
        assert "broken.epub" in result.output
        assert len(list((tmp_path / "covers").iterdir())) == 1

    def test_rescan_is_cached(self, tmp_path: Path, make_epub: Callable[..., Path]) -> None:
        make_epub(tmp_path / "books" / "rose.epub")
        runner = CliRunner()
        runner.invoke(cli, self._args(tmp_path))

        result = runner.invoke(cli, self._args(tmp_path))

        assert result.exit_code == 0
        assert "0 added" in result.output
        assert "1 cached" in result.output

    def test_import_unknown_flag(self, tmp_path: Path) -> None:
        (tmp_path / "books").mkdir()
        (tmp_path / "books" / "notes.zzqx").write_text("x")

        result = CliRunner().invoke(cli, [*self._args(tmp_path), "--import-unknown"])

        assert result.exit_code == 0
        assert "1 added" in result.output

    def test_env_vars(self, tmp_path: Path, make_epub: Callable[..., Path]) -> None:
        make_epub(tmp_path / "lib" / "rose.epub")
        env = {
            "UOPDS_BOOKS": str(tmp_path / "lib"),
            "UOPDS_COVERS": str(tmp_path / "covers"),
            "UOPDS_DB": str(tmp_path / "env.db"),
            "UOPDS_IDENTITY": "random",
        }

        result = CliRunner().invoke(cli, ["scan"], env=env)

        assert result.exit_code == 0
        assert "1 added" in result.output
        assert (tmp_path / "env.db").exists()

    def test_missing_book_dir(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, self._args(tmp_path))
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_identity_choice(self, tmp_path: Path) -> None:
        (tmp_path / "books").mkdir()
        result = CliRunner().invoke(cli, [*self._args(tmp_path), "--identity", "isbn"])
        assert result.exit_code == 2


class TestCliLs:
    """E2e tests for `uopds ls`."""

    def test_ls_without_store(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["ls", "--db", str(tmp_path / "none.db")])
        assert result.exit_code == 0
        assert "No store" in result.output

    def test_ls_empty_store(self, tmp_path: Path) -> None:
        (tmp_path / "books").mkdir()
        db = tmp_path / "catalog.db"
        runner = CliRunner()
        runner.invoke(cli, ["scan", "--books", str(tmp_path / "books"), "--db", str(db)])

        result = runner.invoke(cli, ["ls", "--db", str(db)])

        assert result.exit_code == 0
        assert "No entries" in result.output

    def test_ls_after_scan(self, tmp_path: Path, make_epub: Callable[..., Path]) -> None:
        make_epub(tmp_path / "books" / "rose.epub", title="Rose")
        db = tmp_path / "catalog.db"
        runner = CliRunner()
        runner.invoke(
            cli,
            [
                "scan",
                "--books", str(tmp_path / "books"),
                "--covers", str(tmp_path / "covers"),
                "--db", str(db),
            ],
        )

        result = runner.invoke(cli, ["ls", "--db", str(db)])

        assert result.exit_code == 0
        assert "rose.epub" in result.output
        assert "Rose" in result.output
        assert "1 entry" in result.output


class TestCliServe:
    """E2e tests for `uopds serve` startup validation."""

    def test_bad_addr(self, tmp_path: Path) -> None:
        (tmp_path / "books").mkdir()
        result = CliRunner().invoke(
            cli, ["serve", "--books", str(tmp_path / "books"), "--addr", "nonsense"]
        )
        assert result.exit_code == 2
        assert "--addr" in result.output

    def test_missing_book_dir(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli,
            [
                "serve",
                "--books", str(tmp_path / "missing"),
                "--db", str(tmp_path / "catalog.db"),
                "--addr", "127.0.0.1:0",
            ],
        )
        assert result.exit_code == 1


class TestCliVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
