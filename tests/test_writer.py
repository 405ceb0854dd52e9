"""Unit tests for DotenvWriter buffer mutations and persistence."""

from pathlib import Path

import pytest

from dotenv_editor.errors import WriteUnauthorized
from dotenv_editor.reader import DotenvReader
from dotenv_editor.writer import DotenvWriter

BUFFER = """\
# settings
A=1
export B=two  # second

C="three x"
"""


def _parse(buffer: str, tmp_path: Path):
    path = tmp_path / "parsed.env"
    path.write_text(buffer)
    return DotenvReader().load(path).keys()


class TestAppend:
    def test_append_setter_keeps_existing_lines(self, tmp_path: Path):
        """
        Given a buffer without key K
        When append_setter(K, ...) is called
        Then the original lines are unchanged and K parses back exactly once
        """
        writer = DotenvWriter().set_buffer(BUFFER)
        writer.append_setter("K", "hello world", "new key", export=True)

        buffer = writer.get_buffer()
        assert buffer.startswith(BUFFER)
        assert buffer.splitlines()[:-1] == BUFFER.splitlines()

        keys = _parse(buffer, tmp_path)
        assert keys["K"].value == "hello world"
        assert keys["K"].comment == "new key"
        assert keys["K"].export is True

    def test_append_to_empty_buffer(self):
        """
        Given no buffer
        When a setter is appended
        Then the buffer holds just that line with a terminator
        """
        writer = DotenvWriter().set_buffer(None)
        writer.append_setter("A", "1")
        assert writer.get_buffer() == "A=1\n"

    def test_append_after_unterminated_last_line(self):
        """
        Given a buffer whose last line has no newline
        When a setter is appended
        Then it goes on its own line instead of being glued to the last one
        """
        writer = DotenvWriter().set_buffer("A=1")
        writer.append_setter("B", "2")
        assert writer.get_buffer() == "A=1\nB=2\n"

    def test_append_empty_and_comment_lines(self):
        """
        Given a buffer
        When an empty line and a comment line are appended
        Then each adds exactly one line
        """
        writer = DotenvWriter().set_buffer("A=1\n")
        writer.append_empty_line().append_comment_line("section")
        assert writer.get_buffer() == "A=1\n\n# section\n"

    def test_value_with_line_break_is_rejected(self, tmp_path: Path):
        """
        Given a value that would smuggle in a second setter
        When append_setter is called
        Then ValueError is raised and the buffer still parses to the original keys
        """
        writer = DotenvWriter().set_buffer("A=1\n")

        with pytest.raises(ValueError):
            writer.append_setter("B", "x\nEVIL=1")

        assert writer.get_buffer() == "A=1\n"
        assert list(_parse(writer.get_buffer(), tmp_path)) == ["A"]

    def test_comment_line_with_line_break_is_rejected(self):
        """
        Given comment text containing a newline
        When append_comment_line is called
        Then ValueError is raised and the buffer is unchanged
        """
        writer = DotenvWriter().set_buffer("A=1\n")
        with pytest.raises(ValueError):
            writer.append_comment_line("note\nEVIL=1")
        assert writer.get_buffer() == "A=1\n"


class TestUpdate:
    def test_update_changes_only_target_line(self):
        """
        Given setters A, B and C
        When update_setter(B, ...) is called
        Then only B's line changes and A, C stay byte-identical
        """
        writer = DotenvWriter().set_buffer(BUFFER)
        writer.update_setter("B", "new", "second", export=True)

        before = BUFFER.splitlines()
        after = writer.get_buffer().splitlines()
        assert len(before) == len(after)
        changed = [i for i, (x, y) in enumerate(zip(before, after)) if x != y]
        assert changed == [2]
        assert after[2] == "export B=new  # second"

    def test_update_rewrites_every_duplicate(self):
        """
        Given the same key on two lines
        When update_setter is called
        Then both lines are rewritten identically
        """
        writer = DotenvWriter().set_buffer("K=1\nX=0\nK=2\n")
        writer.update_setter("K", "9")
        assert writer.get_buffer() == "K=9\nX=0\nK=9\n"

    def test_update_value_with_replacement_metacharacters(self):
        """
        Given a value containing $1, \\1 and \\g<0>
        When update_setter is called
        Then the value lands in the buffer byte-for-byte
        """
        value = r"p$1a\1s\g<0>s"
        writer = DotenvWriter().set_buffer("SECRET=old\n")
        writer.update_setter("SECRET", value)
        assert writer.get_buffer() == f"SECRET={value}\n"

    def test_update_does_not_match_key_prefixes(self):
        """
        Given keys A and AB
        When update_setter(A, ...) is called
        Then AB is untouched
        """
        writer = DotenvWriter().set_buffer("AB=1\nA=2\n")
        writer.update_setter("A", "3")
        assert writer.get_buffer() == "AB=1\nA=3\n"

    def test_update_preserves_crlf(self):
        """
        Given a CRLF buffer
        When a line is updated
        Then its CRLF terminator is kept
        """
        writer = DotenvWriter().set_buffer("A=1\r\nB=2\r\n")
        writer.update_setter("A", "5")
        assert writer.get_buffer() == "A=5\r\nB=2\r\n"

    def test_commented_out_setter_is_not_updated(self):
        """
        Given a commented-out assignment of the key
        When update_setter is called
        Then the comment line is untouched
        """
        writer = DotenvWriter().set_buffer("# A=old\nA=1\n")
        writer.update_setter("A", "2")
        assert writer.get_buffer() == "# A=old\nA=2\n"

    def test_update_with_line_break_is_rejected(self):
        """
        Given an existing key
        When update_setter is called with a CR in the value
        Then ValueError is raised and the buffer is unchanged
        """
        writer = DotenvWriter().set_buffer(BUFFER)
        with pytest.raises(ValueError):
            writer.update_setter("A", "1\rEVIL=1")
        assert writer.get_buffer() == BUFFER


class TestDelete:
    def test_delete_removes_all_duplicates_only(self):
        """
        Given duplicate lines for K among other lines
        When delete_setter(K) is called
        Then every K line is gone and nothing else changes
        """
        writer = DotenvWriter().set_buffer("K=1\nA=1\n# K\nexport K=2\nB=2\n")
        writer.delete_setter("K")
        assert writer.get_buffer() == "A=1\n# K\nB=2\n"

    def test_delete_unterminated_last_line(self):
        """
        Given the key is on the last line with no trailing newline
        When delete_setter is called
        Then the line is removed and the previous line keeps its newline
        """
        writer = DotenvWriter().set_buffer("A=1\nK=2")
        writer.delete_setter("K")
        assert writer.get_buffer() == "A=1\n"

    def test_delete_missing_key_is_noop(self):
        """
        Given a buffer without the key
        When delete_setter is called
        Then the buffer is unchanged
        """
        writer = DotenvWriter().set_buffer(BUFFER)
        writer.delete_setter("NOPE")
        assert writer.get_buffer() == BUFFER


class TestSave:
    def test_save_writes_buffer(self, tmp_path: Path):
        """
        Given a buffer
        When save is called on a new path
        Then the file holds exactly the buffer and no temp files remain
        """
        target = tmp_path / ".env"
        DotenvWriter().set_buffer(BUFFER).save(target)
        assert target.read_text() == BUFFER
        assert [p.name for p in tmp_path.iterdir()] == [".env"]

    def test_save_overwrites_and_keeps_mode(self, tmp_path: Path):
        """
        Given an existing file with mode 0640
        When save is called
        Then the content is replaced and the mode is kept
        """
        target = tmp_path / ".env"
        target.write_text("OLD=1\n")
        target.chmod(0o640)
        DotenvWriter().set_buffer("NEW=1\n").save(target)
        assert target.read_text() == "NEW=1\n"
        assert target.stat().st_mode & 0o777 == 0o640

    def test_unwritable_directory_raises(self, tmp_path: Path, monkeypatch):
        """
        Given a target that does not exist in a non-writable directory
        When save is called
        Then WriteUnauthorized is raised and no file is created
        """
        monkeypatch.setattr("dotenv_editor.writer._is_writable", lambda path: False)
        target = tmp_path / "locked" / ".env"
        target.parent.mkdir()

        with pytest.raises(WriteUnauthorized):
            DotenvWriter().set_buffer("A=1\n").save(target)

        assert list(target.parent.iterdir()) == []

    def test_unwritable_file_raises(self, tmp_path: Path, monkeypatch):
        """
        Given an existing file that is not writable
        When save is called
        Then WriteUnauthorized is raised and the file is untouched
        """
        target = tmp_path / ".env"
        target.write_text("A=1\n")
        monkeypatch.setattr("dotenv_editor.writer._is_writable", lambda path: path != target)

        with pytest.raises(WriteUnauthorized, match="Unable to write"):
            DotenvWriter().set_buffer("A=2\n").save(target)

        assert target.read_text() == "A=1\n"

    def test_writable_file_in_locked_directory_is_written_in_place(
        self, tmp_path: Path, monkeypatch
    ):
        """
        Given a writable file whose directory is not writable
        When save is called
        Then the file is overwritten directly
        """
        target = tmp_path / ".env"
        target.write_text("A=1\n")
        monkeypatch.setattr("dotenv_editor.writer._is_writable", lambda path: path == target)

        DotenvWriter().set_buffer("A=2\n").save(target)

        assert target.read_text() == "A=2\n"
