"""
Tests for sandbox.py - JavaScript evaluation and the program runner.
"""
import shutil
import subprocess
import sys
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from core.errors import SandboxRuntimeError
from core.sandbox import (
    NO_OUTPUT_MESSAGE,
    ExecutionResult,
    JavaScriptSandbox,
    SandboxResult,
    _communicate,
    execute,
    run_program,
    run_python,
)

requires_node = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")


# =============================================================================
# Result types
# =============================================================================

class TestResults:
    """Tests for result rendering and status mapping."""

    def test_render_value(self):
        assert SandboxResult(ok=True, value="2").render() == "2"

    def test_render_error(self):
        assert SandboxResult(ok=False, error="x").render() == "Error: x"

    def test_timeout_is_recorded_as_error(self):
        result = ExecutionResult(output="", error="Execution timed out", status="timeout", execution_time=10)
        assert result.record_status == "error"
        assert result.to_dict()["status"] == "timeout"

    def test_completed_is_recorded_as_completed(self):
        result = ExecutionResult(output="hi", error="", status="completed", execution_time=1)
        assert result.record_status == "completed"


# =============================================================================
# JavaScriptSandbox without a Node.js runtime
# =============================================================================

class TestJavaScriptSandboxOffline:
    """Behaviour that does not need a real child process."""

    def test_empty_source_is_empty_result(self):
        sandbox = JavaScriptSandbox(timeout_ms=100, node_binary="node")
        with patch("core.sandbox._spawn") as spawn:
            assert sandbox.execute("   ") == ""
        spawn.assert_not_called()

    def test_non_string_source(self):
        sandbox = JavaScriptSandbox(timeout_ms=100, node_binary="node")
        assert sandbox.execute(42) == "Error: source must be a string"

    def test_missing_runtime_never_raises(self):
        sandbox = JavaScriptSandbox(timeout_ms=100, node_binary="definitely-not-a-node-binary")
        output = sandbox.execute("1+1")
        assert output.startswith("Error: Runtime not available")

    def test_garbled_reply_becomes_error(self):
        process = MagicMock(returncode=1)
        process.communicate.return_value = ("not json", "SyntaxError: boom\n")
        sandbox = JavaScriptSandbox(timeout_ms=100, node_binary="node")
        with patch("core.sandbox._spawn", return_value=process):
            assert sandbox.execute("1+1") == "Error: SyntaxError: boom"

    def test_reply_passthrough(self):
        process = MagicMock(returncode=0)
        process.communicate.return_value = ('{"ok": true, "value": "2"}', "")
        sandbox = JavaScriptSandbox(timeout_ms=100, node_binary="node")
        with patch("core.sandbox._spawn", return_value=process):
            assert sandbox.execute("1+1") == "2"

    def test_unsupported_language(self):
        result = run_program("puts 1", "ruby")
        assert result.status == "error"
        assert "ruby" in result.error
        assert "JavaScript, Python" in result.error


class TestCommunicate:
    """Tests for the bounded wait on a child process."""

    @staticmethod
    def _hanging_process():
        process = MagicMock()

        def communicate(input_text=None, timeout=None):
            if process.kill.called:
                return ("", "")
            time.sleep(timeout or 0)
            raise subprocess.TimeoutExpired("node", timeout)

        process.communicate.side_effect = communicate
        return process

    def test_timeout_kills_child(self):
        process = self._hanging_process()
        with pytest.raises(SandboxRuntimeError, match="timed out"):
            _communicate(process, "src", 0.1)
        process.kill.assert_called_once()

    def test_cancel_kills_child(self):
        process = self._hanging_process()
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(SandboxRuntimeError, match="cancelled"):
            _communicate(process, "src", 5, cancel)
        process.kill.assert_called_once()

    def test_input_sent_only_once(self):
        process = MagicMock()
        process.communicate.side_effect = [subprocess.TimeoutExpired("node", 0.05), ("out", "")]
        assert _communicate(process, "src", 5) == ("out", "")
        first, second = process.communicate.call_args_list
        assert first.args[0] == "src"
        assert second.args[0] is None


# =============================================================================
# JavaScriptSandbox with Node.js
# =============================================================================

@requires_node
class TestJavaScriptSandbox:
    """End-to-end evaluation through a real Node.js child."""

    def test_arithmetic(self):
        assert execute("1+1") == "2"

    def test_string_result(self):
        assert execute("'a' + 'b'") == "ab"

    def test_undefined_is_empty(self):
        assert execute("var x = 1;") == ""

    def test_throw_is_rendered(self):
        assert execute("throw new Error('x')") == "Error: x"

    def test_throw_non_error(self):
        assert execute("throw 'plain'") == "Error: plain"

    def test_no_ambient_bindings(self):
        assert execute("typeof require") == "undefined"
        assert execute("typeof process") == "undefined"

    def test_string_code_generation_blocked(self):
        assert execute("eval('1+1')").startswith("Error:")

    def test_infinite_loop_times_out(self):
        sandbox = JavaScriptSandbox(timeout_ms=200)
        started = time.monotonic()
        output = sandbox.execute("while (true) {}")
        assert output.startswith("Error:")
        assert "timed out" in output
        assert time.monotonic() - started < 10

    def test_program_console_output(self):
        result = run_program("console.log('hello', 1); console.log({a: 1});", "javascript")
        assert result.status == "completed"
        assert result.output == 'hello 1\n{"a":1}\n'

    def test_program_without_output(self):
        result = run_program("const a = 1;", "js")
        assert result.status == "completed"
        assert result.output == NO_OUTPUT_MESSAGE

    def test_program_throw_keeps_output(self):
        result = run_program("console.log('before'); throw new Error('bad');", "javascript")
        assert result.status == "error"
        assert result.output == "before\n"
        assert result.error == "bad"


# =============================================================================
# Python programs
# =============================================================================

@pytest.mark.skipif(sys.platform == "win32", reason="rlimits are POSIX only")
class TestPythonPrograms:
    """Tests for the Python child interpreter runner."""

    def test_print(self):
        result = run_python("print('hi')")
        assert result.status == "completed"
        assert result.output == "hi\n"

    def test_no_output(self):
        result = run_python("x = 1")
        assert result.output == NO_OUTPUT_MESSAGE

    def test_exception(self):
        result = run_program("raise ValueError('nope')", "python")
        assert result.status == "error"
        assert "Error: nope" in result.error

    def test_input_disabled(self):
        result = run_python("input()")
        assert result.status == "error"
        assert "disabled" in result.error

    def test_timeout(self):
        result = run_python("while True: pass", timeout=1)
        assert result.status in ("timeout", "error")
        assert result.record_status == "error"


# =============================================================================
# Program runner isolation and cancellation
# =============================================================================

@requires_node
class TestProgramIsolation:
    """The program console lives in the context realm; no host object leaks in."""

    def test_console_constructor_cannot_reach_process(self):
        result = run_program(
            "const p = console.log.constructor('return process')(); console.log(typeof p.pid);",
            "javascript",
        )
        assert result.status == "error"
        assert "disallowed" in result.error
        assert result.output == ""

    def test_no_host_globals(self):
        result = run_program("console.log(typeof process, typeof require, typeof Math.max);", "javascript")
        assert result.output == "undefined undefined function\n"

    def test_console_error_marks_error(self):
        result = run_program("console.error('bad', {a: 1});", "javascript")
        assert result.status == "error"
        assert result.error == 'bad {"a":1}\n'

    def test_thrown_plain_value(self):
        result = run_program("throw 'plain'", "javascript")
        assert result.error == "plain"

    def test_timeout(self, monkeypatch):
        monkeypatch.setattr("core.sandbox.PROGRAM_JS_TIMEOUT_MS", 200)
        result = run_program("while (true) {}", "javascript")
        assert result.status == "timeout"
        assert result.record_status == "error"

    def test_cancel_stops_program(self):
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            result = run_program("while (true) {}", "javascript", cancel)
        finally:
            timer.cancel()
        assert result.status == "error"
        assert result.error == "Execution cancelled"
        assert time.monotonic() - started < 4


@pytest.mark.skipif(sys.platform == "win32", reason="rlimits are POSIX only")
class TestPythonCancellation:
    """Cancellation for Python programs."""

    def test_cancel_stops_program(self):
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        try:
            result = run_python("while True: pass", cancel=cancel)
        finally:
            timer.cancel()
        assert result.status == "error"
        assert result.error == "Execution cancelled"
