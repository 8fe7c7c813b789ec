"""Tests for the directory service."""

from pathlib import Path

import pytest

from lazconv.services.directory import DirectoryService, select_files


@pytest.fixture
def service(tmp_path: Path) -> DirectoryService:
    return DirectoryService(tmp_path / "input", tmp_path / "output", tmp_path / "temp")


class TestEnsureDirectories:
    """Tests for ensure_directories."""

    def test_creates_all(self, service: DirectoryService):
        service.ensure_directories()

        assert service.input_dir.is_dir()
        assert service.output_dir.is_dir()
        assert service.temp_dir.is_dir()

    def test_idempotent(self, service: DirectoryService):
        """Running twice leaves existing content alone."""
        service.ensure_directories()
        (service.output_dir / "keep.txt").write_text("x")

        service.ensure_directories()

        assert (service.output_dir / "keep.txt").exists()


class TestListInputFiles:
    """Tests for list_input_files."""

    def test_missing_input_dir(self, service: DirectoryService):
        assert service.list_input_files() == []

    def test_recursive_case_insensitive(self, service: DirectoryService):
        service.ensure_directories()
        (service.input_dir / "area1").mkdir()
        (service.input_dir / "b.laz").write_bytes(b"1")
        (service.input_dir / "area1" / "A.LAZ").write_bytes(b"1")
        (service.input_dir / "readme.txt").write_text("x")

        files = service.list_input_files()

        assert files == sorted(files)
        assert all(p.is_absolute() for p in files)
        assert sorted(p.name for p in files) == ["A.LAZ", "b.laz"]


class TestPurgeTempArea:
    """Tests for purge_temp_area."""

    def test_removes_files_and_directories(self, service: DirectoryService):
        service.ensure_directories()
        nested = service.temp_dir / "left" / "over"
        nested.mkdir(parents=True)
        (nested / "chunk_000_abc.laz").write_bytes(b"x")
        (service.temp_dir / "chunk_001_def.laz").write_bytes(b"x")

        service.purge_temp_area()

        assert service.temp_dir.is_dir()
        assert list(service.temp_dir.iterdir()) == []

    def test_idempotent(self, service: DirectoryService):
        service.ensure_directories()
        (service.temp_dir / "chunk.laz").write_bytes(b"x")

        service.purge_temp_area()
        service.purge_temp_area()

        assert list(service.temp_dir.iterdir()) == []

    def test_missing_temp_dir(self, service: DirectoryService):
        """A missing temp root is not an error."""
        service.purge_temp_area()

        assert not service.temp_dir.exists()

    def test_failures_are_skipped(self, service: DirectoryService, monkeypatch):
        service.ensure_directories()
        stuck = service.temp_dir / "stuck.laz"
        stuck.write_bytes(b"x")
        (service.temp_dir / "other.laz").write_bytes(b"x")
        original_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "stuck.laz":
                raise PermissionError("in use")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        service.purge_temp_area()

        assert stuck.exists()
        assert not (service.temp_dir / "other.laz").exists()


class TestSelectFiles:
    """Tests for select_files."""

    @pytest.fixture
    def available(self) -> list[Path]:
        return [Path("/data/a/Site1.laz"), Path("/data/b/site2.laz"), Path("/data/c/site1.laz")]

    def test_case_insensitive_first_match(self, available):
        matched, unmatched = select_files(["SITE1.LAZ"], available)

        assert matched == [Path("/data/a/Site1.laz")]
        assert unmatched == []

    def test_keeps_request_order(self, available):
        matched, _ = select_files(["site2.laz", "site1.laz"], available)

        assert matched == [Path("/data/b/site2.laz"), Path("/data/a/Site1.laz")]

    def test_reports_unmatched(self, available):
        matched, unmatched = select_files(["site2.laz", "missing.laz"], available)

        assert matched == [Path("/data/b/site2.laz")]
        assert unmatched == ["missing.laz"]

    def test_no_available_files(self):
        assert select_files(["a.laz"], []) == ([], ["a.laz"])
