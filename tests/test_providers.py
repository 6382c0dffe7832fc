import io
from pathlib import Path

import pytest

from texio.filesystem import FilesystemIo, FilesystemPrimaryInputIo
from texio.handles import InputHandle, OutputHandle
from texio.memory import STDOUT_NAME, MemoryIo
from texio.models import InputOrigin, OpenResult, OpenStatus
from texio.stack import IoStack
from texio.stdstreams import GenuineStdoutIo
from texio.testing import SingleInputFileIo


def test_open_result_invariants() -> None:
    handle = InputHandle.from_bytes("a", b"")
    assert OpenResult.ok(handle).status == OpenStatus.OK
    assert OpenResult.not_available().handle is None
    assert OpenResult.not_available().error is None
    with pytest.raises(ValueError):
        OpenResult(status=OpenStatus.FATAL)
    with pytest.raises(ValueError):
        OpenResult(status=OpenStatus.NOT_AVAILABLE, error=RuntimeError("x"))
    with pytest.raises(ValueError):
        OpenResult(status=OpenStatus.OK)


def test_input_handle_tracks_reads_and_closes_once() -> None:
    reader = io.BytesIO(b"line one\nline two\n")
    with InputHandle("doc.tex", reader, InputOrigin.FILESYSTEM) as handle:
        assert handle.origin == InputOrigin.FILESYSTEM
        assert handle.get_size() == 18
        assert not handle.ever_read
        assert list(handle) == [b"line one\n", b"line two\n"]
        assert handle.ever_read
    assert reader.closed
    handle.close()
    with pytest.raises(ValueError):
        handle.read()


def test_input_handle_size_of_host_file(tmp_path: Path) -> None:
    path = tmp_path / "f.bin"
    path.write_bytes(b"12345")
    with InputHandle("f.bin", path.open("rb")) as handle:
        assert handle.read(2) == b"12"
        assert handle.get_size() == 5
        assert handle.read() == b"345"


def test_memory_io_round_trip() -> None:
    memory = MemoryIo()
    with memory.output_open_name("texput.log").unwrap() as handle:
        handle.write(b"This is TeX")
    assert memory.files["texput.log"] == b"This is TeX"

    with memory.input_open_name("texput.log").unwrap() as handle:
        assert handle.read() == b"This is TeX"
        assert handle.origin == InputOrigin.OTHER
    assert memory.input_open_name("other.log").is_not_available


def test_memory_io_stdout_policy() -> None:
    assert MemoryIo().output_open_stdout().is_not_available

    memory = MemoryIo(stdout_allowed=True)
    with memory.output_open_stdout().unwrap() as handle:
        handle.write(b"terminal output")
    assert memory.stdout_bytes() == b"terminal output"
    assert memory.files[STDOUT_NAME] == b"terminal output"
    # stdout is not an input and cannot be reopened by name.
    assert memory.input_open_name(STDOUT_NAME).is_not_available
    assert memory.output_open_name(STDOUT_NAME).is_not_available


def test_filesystem_io_reads_below_root(tmp_path: Path) -> None:
    (tmp_path / "tex").mkdir()
    (tmp_path / "tex" / "plain.tex").write_bytes(b"\\bye")
    fs = FilesystemIo(tmp_path)

    with fs.input_open_name("tex/plain.tex").unwrap() as handle:
        assert handle.read() == b"\\bye"
        assert handle.origin == InputOrigin.FILESYSTEM
    assert fs.input_open_name("tex/missing.tex").is_not_available
    assert fs.input_open_name("tex").is_not_available
    assert fs.input_open_name("tex/plain.tex/child").is_not_available


def test_filesystem_io_write_gating(tmp_path: Path) -> None:
    assert FilesystemIo(tmp_path).output_open_name("out.pdf").is_not_available

    fs = FilesystemIo(tmp_path, writes_allowed=True)
    with fs.output_open_name("build/out.pdf").unwrap() as handle:
        handle.write(b"%PDF")
    assert (tmp_path / "build" / "out.pdf").read_bytes() == b"%PDF"
    assert fs.output_open_stdout().is_not_available


def test_filesystem_io_absolute_gating(tmp_path: Path) -> None:
    target = tmp_path / "abs.tex"
    target.write_bytes(b"abs")
    other_root = tmp_path / "root"
    other_root.mkdir()

    assert FilesystemIo(other_root).input_open_name(str(target)).is_not_available
    with FilesystemIo(other_root, absolute_allowed=True).input_open_name(str(target)).unwrap() as handle:
        assert handle.read() == b"abs"


def test_filesystem_io_hidden_inputs(tmp_path: Path) -> None:
    (tmp_path / "doc.aux").write_bytes(b"stale")
    fs = FilesystemIo(tmp_path, hidden_inputs=["./doc.aux"])
    assert fs.input_open_name("doc.aux").is_not_available


def test_filesystem_io_declines_names_with_nul_bytes(tmp_path: Path) -> None:
    (tmp_path / "ab.tex").write_bytes(b"x")
    fs = FilesystemIo(tmp_path, writes_allowed=True, absolute_allowed=True)
    assert fs.input_open_name("a\x00b.tex").is_not_available
    assert fs.output_open_name("a\x00b.tex").is_not_available
    assert fs.input_open_name("/tmp/a\x00b.tex").is_not_available

    stack = IoStack([MemoryIo(), FilesystemIo(tmp_path)])
    assert stack.input_open_name("a\x00b.tex").is_not_available


def test_primary_input_with_nul_byte_is_fatal(tmp_path: Path) -> None:
    result = FilesystemPrimaryInputIo(tmp_path / "doc\x00.tex").input_open_primary()
    assert result.is_fatal
    assert isinstance(result.error, ValueError)


def test_primary_input_is_only_served_as_primary(tmp_path: Path) -> None:
    doc = tmp_path / "doc.tex"
    doc.write_bytes(b"Hello\\bye")
    primary = FilesystemPrimaryInputIo(doc)

    with primary.input_open_primary().unwrap() as handle:
        assert handle.name == "doc.tex"
        assert handle.read() == b"Hello\\bye"
    assert primary.input_open_name("doc.tex").is_not_available
    assert primary.input_open_format("doc.tex").is_not_available


def test_missing_primary_input_is_fatal(tmp_path: Path) -> None:
    result = FilesystemPrimaryInputIo(tmp_path / "absent.tex").input_open_primary()
    assert result.is_fatal
    assert isinstance(result.error, FileNotFoundError)


def test_genuine_stdout_never_closes_stream() -> None:
    stream = io.BytesIO()
    handle: OutputHandle = GenuineStdoutIo(stream).output_open_stdout().unwrap()
    with handle:
        handle.write(b"to the terminal")
    assert handle.closed
    assert not stream.closed
    assert stream.getvalue() == b"to the terminal"
    assert GenuineStdoutIo(stream).output_open_name("x").is_not_available


def test_single_input_file_io(tmp_path: Path) -> None:
    path = tmp_path / "plain.fmt"
    path.write_bytes(b"format")
    single = SingleInputFileIo(path)
    with single.input_open_name("plain.fmt").unwrap() as handle:
        assert handle.read() == b"format"
    with single.input_open_format("plain.fmt").unwrap() as handle:
        assert handle.read() == b"format"
    assert single.input_open_name("other.fmt").is_not_available
    assert single.output_open_name("plain.fmt").is_not_available
    assert single.output_open_stdout().is_not_available
