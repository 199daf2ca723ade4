"""
Unit tests for the audit log.
"""

import io
import re
import tempfile
from pathlib import Path

import pytest

from ou_mover.audit import AuditLog, LogLevel, record
from ou_mover.errors import SetupError

LINE_PATTERN = re.compile(
    r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}[+-]\d{2}:\d{2}\] "
    r"\[(INFO|SUCCESS|WARNING|ERROR)\] .+$"
)


class FullDiskStream:
    """File stand-in whose writes always fail."""

    def write(self, text):
        raise OSError(28, "No space left on device")

    def flush(self):
        pass

    def close(self):
        pass


def open_quiet(path):
    return AuditLog.open(path, stdout=io.StringIO(), stderr=io.StringIO())


class TestLineFormat:
    """Tests for the log line format."""

    def test_line_has_timestamp_level_and_message(self):
        """Each entry is [timestamp] [LEVEL] message."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            with open_quiet(path) as audit:
                audit.info("hello world")

            lines = path.read_text(encoding="utf-8").splitlines()
            assert len(lines) == 1
            assert LINE_PATTERN.match(lines[0])
            assert lines[0].endswith("[INFO] hello world")

    def test_all_levels(self):
        """All four levels are written with their names."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            with open_quiet(path) as audit:
                audit.info("a")
                audit.success("b")
                audit.warning("c")
                audit.error("d")

            lines = path.read_text(encoding="utf-8").splitlines()
            levels = [re.search(r"\] \[(\w+)\] ", line).group(1) for line in lines]
            assert levels == ["INFO", "SUCCESS", "WARNING", "ERROR"]

    def test_entries_in_emission_order(self):
        """Entries are appended in the order they were recorded."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            with open_quiet(path) as audit:
                for i in range(20):
                    audit.info(f"entry {i}")

            lines = path.read_text(encoding="utf-8").splitlines()
            assert [line.split("] ", 2)[2] for line in lines] == [
                f"entry {i}" for i in range(20)
            ]

    def test_message_with_line_breaks_stays_one_line(self):
        """Embedded line breaks are folded so one entry is one line."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            with open_quiet(path) as audit:
                audit.error("first\nsecond\r\nthird\u2028fourth")
                audit.info("next")

            lines = path.read_text(encoding="utf-8").split("\n")[:-1]
            assert len(lines) == 2
            assert lines[0].endswith("[ERROR] first | second | third | fourth")
            assert all(LINE_PATTERN.match(line) for line in lines)


class TestFileHandling:
    """Tests for creating and appending to the log file."""

    def test_creates_parent_directories(self):
        """Missing parent directories are created."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "a" / "b" / "run.log"
            with open_quiet(path) as audit:
                audit.info("created")

            assert path.exists()

    def test_appends_to_existing_file(self):
        """Existing content is never rewritten."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            path.write_text("previous line\n", encoding="utf-8")

            with open_quiet(path) as audit:
                audit.info("next")

            lines = path.read_text(encoding="utf-8").splitlines()
            assert lines[0] == "previous line"
            assert lines[1].endswith("[INFO] next")

    def test_uncreatable_directory_is_setup_error(self):
        """A parent that cannot be created raises SetupError."""
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "not_a_dir"
            blocker.write_text("file")

            with pytest.raises(SetupError) as exc_info:
                open_quiet(blocker / "logs" / "run.log")

            assert "Cannot open log file" in str(exc_info.value)

    def test_write_failure_is_reported_not_raised(self, capsys):
        """A failed write returns False and is counted."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            audit = open_quiet(path)
            try:
                audit._file_handler.stream.close()
                audit._file_handler.stream = FullDiskStream()

                assert audit.error("lost entry") is False
                assert audit.write_failures == 1
            finally:
                audit.close()


class TestConsoleMirror:
    """Tests for console output routing."""

    def test_info_and_success_go_to_stdout(self):
        """INFO and SUCCESS entries go to the stdout stream only."""
        with tempfile.TemporaryDirectory() as tmp:
            out, err = io.StringIO(), io.StringIO()
            with AuditLog.open(Path(tmp) / "run.log", stdout=out, stderr=err) as audit:
                audit.info("informational")
                audit.success("it worked")

            assert "[INFO] informational" in out.getvalue()
            assert "[SUCCESS] it worked" in out.getvalue()
            assert err.getvalue() == ""

    def test_warning_and_error_go_to_stderr(self):
        """WARNING and ERROR entries go to the stderr stream only."""
        with tempfile.TemporaryDirectory() as tmp:
            out, err = io.StringIO(), io.StringIO()
            with AuditLog.open(Path(tmp) / "run.log", stdout=out, stderr=err) as audit:
                audit.warning("careful")
                audit.error("broken")

            assert "[WARNING] careful" in err.getvalue()
            assert "[ERROR] broken" in err.getvalue()
            assert out.getvalue() == ""


class TestRecordFunction:
    """Tests for the module-level record() helper."""

    def test_record_appends_one_entry(self, capsys):
        """record() writes one entry and mirrors it to the console."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "run.log"

            assert record("moved PC1", LogLevel.SUCCESS, path) is True
            assert record("failed PC2", LogLevel.ERROR, path) is True

            lines = path.read_text(encoding="utf-8").splitlines()
            assert len(lines) == 2
            assert lines[0].endswith("[SUCCESS] moved PC1")
            assert lines[1].endswith("[ERROR] failed PC2")

            captured = capsys.readouterr()
            assert "moved PC1" in captured.out
            assert "failed PC2" in captured.err

    def test_record_requires_path(self):
        """record() has no default log location; the caller names the file."""
        with pytest.raises(TypeError):
            record("moved PC1", LogLevel.SUCCESS)
