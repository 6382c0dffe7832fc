import pytest

from texio.handles import InputHandle, OutputHandle
from texio.memory import MemoryIo
from texio.models import IoError, OpenResult, OpenStatus
from texio.provider import IoProvider
from texio.stack import IoStack


class _StubIo(IoProvider):
    """Answers every request with a fixed result and records the names it saw."""

    def __init__(self, status: OpenStatus, payload: bytes = b"", error: BaseException | None = None) -> None:
        self.status = status
        self.payload = payload
        self.error = error
        self.calls: list[str] = []

    def _answer(self, name: str) -> OpenResult[InputHandle]:
        self.calls.append(name)
        if self.status == OpenStatus.OK:
            return OpenResult.ok(InputHandle.from_bytes(name, self.payload))
        if self.status == OpenStatus.FATAL:
            assert self.error is not None
            return OpenResult.fatal(self.error)
        return OpenResult.not_available()

    def input_open_name(self, name: str) -> OpenResult[InputHandle]:
        return self._answer(name)

    def input_open_primary(self) -> OpenResult[InputHandle]:
        return self._answer("<primary>")


def test_stack_returns_first_success_and_stops_searching() -> None:
    first = _StubIo(OpenStatus.NOT_AVAILABLE)
    second = _StubIo(OpenStatus.NOT_AVAILABLE)
    third = _StubIo(OpenStatus.OK, payload=b"third")
    fourth = _StubIo(OpenStatus.OK, payload=b"fourth")
    stack = IoStack([first, second, third, fourth])

    result = stack.input_open_name("X")

    assert result.is_ok
    with result.unwrap() as handle:
        assert handle.read() == b"third"
    assert first.calls == ["X"]
    assert second.calls == ["X"]
    assert third.calls == ["X"]
    assert fourth.calls == []


def test_stack_short_circuits_on_fatal() -> None:
    error = IoError("archive corrupted")
    first = _StubIo(OpenStatus.NOT_AVAILABLE)
    second = _StubIo(OpenStatus.FATAL, error=error)
    third = _StubIo(OpenStatus.OK, payload=b"never")
    stack = IoStack([first, second, third])

    result = stack.input_open_name("X")

    assert result.is_fatal
    assert result.error is error
    assert third.calls == []
    with pytest.raises(IoError, match="archive corrupted"):
        result.unwrap()


def test_stack_reports_not_available_when_exhausted() -> None:
    stack = IoStack([_StubIo(OpenStatus.NOT_AVAILABLE), _StubIo(OpenStatus.NOT_AVAILABLE)])
    result = stack.input_open_name("missing.tex")
    assert result.is_not_available
    with pytest.raises(FileNotFoundError):
        result.unwrap()


def test_empty_stack_has_nothing() -> None:
    stack = IoStack([])
    assert stack.input_open_name("a.tex").is_not_available
    assert stack.output_open_name("a.log").is_not_available
    assert stack.output_open_stdout().is_not_available


def test_stack_passes_normalized_names_to_providers() -> None:
    recorder = _StubIo(OpenStatus.NOT_AVAILABLE)
    stack = IoStack([recorder])
    stack.input_open_name("./tex/../latex//article.cls")
    stack.input_open_name("/abs/../../escape.tex")
    assert recorder.calls == ["latex/article.cls", "/abs/../../escape.tex"]


def test_stack_primary_input_uses_same_fallback() -> None:
    first = _StubIo(OpenStatus.NOT_AVAILABLE)
    second = _StubIo(OpenStatus.OK, payload=b"\\bye")
    stack = IoStack([first, second])
    with stack.input_open_primary().unwrap() as handle:
        assert handle.read() == b"\\bye"
    assert first.calls == ["<primary>"]


def test_stack_format_defaults_to_named_input() -> None:
    provider = _StubIo(OpenStatus.OK, payload=b"fmt")
    stack = IoStack([provider])
    with stack.input_open_format("plain.fmt").unwrap() as handle:
        assert handle.read() == b"fmt"
    assert provider.calls == ["plain.fmt"]


def test_stack_outputs_go_to_first_accepting_provider() -> None:
    read_only = _StubIo(OpenStatus.NOT_AVAILABLE)
    first_memory = MemoryIo()
    second_memory = MemoryIo()
    stack = IoStack([read_only, first_memory, second_memory])

    result = stack.output_open_name("./out/texput.log")
    handle: OutputHandle = result.unwrap()
    with handle:
        handle.write(b"log text")

    assert first_memory.files == {"out/texput.log": b"log text"}
    assert second_memory.files == {}


def test_stack_keeps_registration_order() -> None:
    providers = [MemoryIo(), MemoryIo()]
    stack = IoStack(providers)
    assert list(stack.providers) == providers
    providers.reverse()
    assert list(stack.providers) != providers


def test_stack_refuses_requests_once_not_live() -> None:
    live = {"value": True}
    stack = IoStack([MemoryIo()], is_live=lambda: live["value"])
    assert stack.input_open_name("a").is_not_available
    live["value"] = False
    with pytest.raises(RuntimeError):
        stack.input_open_name("a")
