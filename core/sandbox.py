"""Sandboxed code execution.

Source text is never evaluated in this process. JavaScript runs inside a fresh
Node.js ``vm`` context (no ``require``, ``process``, timers or console) in a
short-lived child process; the ``vm`` timeout stops runaway scripts and the
child is killed at ``timeout + KILL_GRACE_SECONDS`` if the interpreter cannot
be preempted. Python programs run in a child interpreter with CPU and memory
rlimits.
"""
from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from tempfile import gettempdir
from textwrap import dedent
from typing import Optional, Tuple

from config import get_settings

from .errors import SandboxRuntimeError

logger = logging.getLogger(__name__)

KILL_GRACE_SECONDS = 2.0
POLL_INTERVAL = 0.05

PROGRAM_JS_TIMEOUT_MS = 5000
PROGRAM_PY_TIMEOUT_S = 10
PROGRAM_PY_MEMORY_LIMIT = 200 * 1024 * 1024

NO_OUTPUT_MESSAGE = "Code executed successfully (no output)"

# Evaluates one script in an empty global scope and prints {ok, value|error}.
_EVAL_WRAPPER = dedent(
    """
    const vm = require("vm");
    const chunks = [];
    const describe = (err) =>
      err !== null && typeof err === "object" && "message" in err ? String(err.message) : String(err);
    process.stdin.on("data", (chunk) => chunks.push(chunk));
    process.stdin.on("end", () => {
      const source = Buffer.concat(chunks).toString("utf8");
      let reply;
      try {
        const context = vm.createContext(Object.create(null), {
          codeGeneration: { strings: false, wasm: false },
          microtaskMode: "afterEvaluate",
        });
        const value = vm.runInContext(source, context, {
          filename: "sandbox.js",
          timeout: __TIMEOUT_MS__,
        });
        reply = { ok: true, value: value === undefined ? "" : String(value) };
      } catch (err) {
        reply = { ok: false, error: describe(err) };
      }
      process.stdout.write(JSON.stringify(reply));
    });
    """
)

# Installs a console inside the context realm; the returned drain function
# hands back the captured text as primitive strings.
_CONSOLE_BOOTSTRAP = dedent(
    """
    (function () {
      const S = String;
      const stringify = JSON.stringify;
      let output = "";
      let error = "";
      const show = (arg) => {
        if (arg !== null && typeof arg === "object") {
          try {
            return S(stringify(arg));
          } catch (err) {
            return S(arg);
          }
        }
        return S(arg);
      };
      const line = (args) => {
        let text = "";
        for (let i = 0; i < args.length; i++) {
          text += (i ? " " : "") + show(args[i]);
        }
        return text + "\\n";
      };
      globalThis.console = {
        log: function (...args) { output += line(args); },
        error: function (...args) { error += line(args); },
      };
      return function drain(stream) { return stream === "error" ? error : output; };
    })()
    """
)

# Describes a value thrown by the program, evaluated inside the context realm.
_DESCRIBE_THROWN = dedent(
    """
    (function (e) {
      try {
        return e !== null && typeof e === "object" && "message" in e ? String(e.message) : String(e);
      } catch (err) {
        return "Unknown error";
      }
    })(globalThis.__thrown__)
    """
)

# Runs a program with a capturing console and prints {output, error, thrown}.
# Nothing from the host realm is placed in the context.
_PROGRAM_WRAPPER = dedent(
    """
    const vm = require("vm");
    const chunks = [];
    const BOOTSTRAP = __BOOTSTRAP__;
    const DESCRIBE = __DESCRIBE__;
    const primitive = (value, fallback) => (typeof value === "string" ? value : fallback);
    process.stdin.on("data", (chunk) => chunks.push(chunk));
    process.stdin.on("end", () => {
      const source = Buffer.concat(chunks).toString("utf8");
      const options = { timeout: __TIMEOUT_MS__ };
      let output = "";
      let error = "";
      let thrown = null;
      try {
        const context = vm.createContext(Object.create(null), {
          codeGeneration: { strings: false, wasm: false },
          microtaskMode: "afterEvaluate",
        });
        const drain = vm.runInContext(BOOTSTRAP, context, options);
        try {
          vm.runInContext(source, context, { filename: "program.js", ...options });
        } catch (err) {
          if (err instanceof Error) {
            thrown = String(err.message);
          } else {
            context.__thrown__ = err;
            try {
              thrown = primitive(vm.runInContext(DESCRIBE, context, options), "Unknown error");
            } catch (inner) {
              thrown = "Unknown error";
            }
          }
        }
        output = primitive(drain("output"), "");
        error = primitive(drain("error"), "");
      } catch (err) {
        thrown = err instanceof Error ? String(err.message) : "Unknown error";
      }
      process.stdout.write(JSON.stringify({ output, error, thrown }));
    });
    """
).replace("__BOOTSTRAP__", json.dumps(_CONSOLE_BOOTSTRAP)).replace("__DESCRIBE__", json.dumps(_DESCRIBE_THROWN))

# Python programs: rlimits first, then exec the user's code as __main__.
_PYTHON_WRAPPER = dedent(
    """
    import resource
    import sys
    try:
        resource.setrlimit(resource.RLIMIT_CPU, ({timeout}, {timeout}))
    except (ValueError, OSError):
        pass
    try:
        resource.setrlimit(resource.RLIMIT_AS, ({memory_limit}, {memory_limit}))
    except (ValueError, OSError, AttributeError):
        pass

    def disabled_input(*args, **kwargs):
        raise RuntimeError("The input() function is disabled in the sandbox.")

    code_source = {code_literal}
    namespace = {{
        "__builtins__": __builtins__,
        "__name__": "__main__",
        "input": disabled_input,
    }}

    try:
        compiled = compile(code_source, "<sandbox>", "exec")
        exec(compiled, namespace, namespace)
    except Exception as e:
        print(f"Error: {{e}}", file=sys.stderr)
        sys.exit(1)
    """
)


@dataclass(frozen=True)
class SandboxResult:
    """Outcome of one sandboxed evaluation: a value or a fault message."""

    ok: bool
    value: str = ""
    error: Optional[str] = None

    def render(self) -> str:
        return self.value if self.ok else f"Error: {self.error}"


@dataclass(frozen=True)
class ExecutionResult:
    output: str
    error: str
    status: str  # completed | error | timeout
    execution_time: int  # milliseconds

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def record_status(self) -> str:
        """Status as stored on a code execution row."""
        return "completed" if self.status == "completed" else "error"


def _child_env() -> dict:
    return {"PATH": os.environ.get("PATH", "")}


def _communicate(
    process: subprocess.Popen,
    input_text: Optional[str],
    timeout: float,
    cancel: Optional[threading.Event] = None,
) -> Tuple[str, str]:
    """Wait for ``process`` and return (stdout, stderr).

    Kills the child and raises :class:`SandboxRuntimeError` once ``timeout``
    seconds have passed or ``cancel`` is set.
    """
    deadline = time.monotonic() + timeout
    pending_input = input_text
    while True:
        if cancel is not None and cancel.is_set():
            process.kill()
            process.communicate()
            raise SandboxRuntimeError("Execution cancelled")
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            process.kill()
            process.communicate()
            raise SandboxRuntimeError("Execution timed out")
        try:
            return process.communicate(pending_input, timeout=min(POLL_INTERVAL, remaining))
        except subprocess.TimeoutExpired:
            pending_input = None


def _spawn(args, cwd: Optional[str] = None) -> subprocess.Popen:
    try:
        return subprocess.Popen(
            args,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=_child_env(),
            cwd=cwd,
        )
    except OSError as exc:
        raise SandboxRuntimeError(f"Runtime not available: {exc}") from exc


class JavaScriptSandbox:
    """Evaluate untrusted JavaScript with no ambient bindings and a time budget."""

    def __init__(self, timeout_ms: Optional[int] = None, node_binary: Optional[str] = None):
        settings = get_settings()
        self.timeout_ms = int(timeout_ms if timeout_ms is not None else settings.sandbox_timeout_ms)
        self.node_binary = node_binary or settings.node_binary

    def _run_node(self, wrapper: str, source: str, timeout_ms: int, cancel: Optional[threading.Event]) -> dict:
        script = wrapper.replace("__TIMEOUT_MS__", str(int(timeout_ms)))
        process = _spawn([self.node_binary, "-e", script], cwd=gettempdir())
        try:
            stdout, stderr = _communicate(process, source, timeout_ms / 1000 + KILL_GRACE_SECONDS, cancel)
        except SandboxRuntimeError as exc:
            if str(exc) == "Execution timed out":
                raise SandboxRuntimeError(f"Script execution timed out after {timeout_ms}ms") from exc
            raise
        try:
            reply = json.loads(stdout)
        except json.JSONDecodeError as exc:
            detail = (stderr or "").strip().splitlines()
            message = detail[-1] if detail else f"sandbox exited with code {process.returncode}"
            raise SandboxRuntimeError(message) from exc
        if not isinstance(reply, dict):
            raise SandboxRuntimeError("sandbox returned an invalid reply")
        return reply

    def evaluate(self, source: str, cancel: Optional[threading.Event] = None) -> SandboxResult:
        if not isinstance(source, str):
            return SandboxResult(ok=False, error="source must be a string")
        if not source.strip():
            return SandboxResult(ok=True, value="")
        try:
            reply = self._run_node(_EVAL_WRAPPER, source, self.timeout_ms, cancel)
        except SandboxRuntimeError as exc:
            logger.info("sandbox evaluation failed: %s", exc)
            return SandboxResult(ok=False, error=str(exc))
        if reply.get("ok"):
            return SandboxResult(ok=True, value=str(reply.get("value") or ""))
        return SandboxResult(ok=False, error=str(reply.get("error") or "Unknown error"))

    def execute(self, source: str, cancel: Optional[threading.Event] = None) -> str:
        return self.evaluate(source, cancel).render()

    def run_program(self, code: str, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        started = time.monotonic()
        try:
            reply = self._run_node(_PROGRAM_WRAPPER, code, PROGRAM_JS_TIMEOUT_MS, cancel)
        except SandboxRuntimeError as exc:
            error = str(exc)
            status = "timeout" if "timed out" in error else "error"
            elapsed = int((time.monotonic() - started) * 1000)
            return ExecutionResult(output="", error=error, status=status, execution_time=elapsed)

        output = str(reply.get("output") or "")
        error = str(reply.get("error") or "")
        thrown = reply.get("thrown")
        if thrown is not None:
            error = str(thrown)
            status = "timeout" if "timed out" in error else "error"
        else:
            output = output or NO_OUTPUT_MESSAGE
            status = "error" if error else "completed"
        elapsed = int((time.monotonic() - started) * 1000)
        return ExecutionResult(output=output, error=error, status=status, execution_time=elapsed)


def run_python(code: str, timeout: int = PROGRAM_PY_TIMEOUT_S, cancel: Optional[threading.Event] = None) -> ExecutionResult:
    """Run a Python program in a child interpreter with rlimits."""
    started = time.monotonic()
    tmp_dir = Path(gettempdir()) / "codeide_sandbox"
    tmp_dir.mkdir(exist_ok=True)
    code_file = tmp_dir / f"sandbox_code_{os.urandom(8).hex()}.py"
    wrapped_code = _PYTHON_WRAPPER.format(
        timeout=timeout,
        memory_limit=PROGRAM_PY_MEMORY_LIMIT,
        code_literal=repr(code),
    )
    code_file.write_text(wrapped_code, encoding="utf-8")

    output = ""
    status = "completed"
    try:
        process = _spawn([get_settings().python_binary, str(code_file)], cwd=str(tmp_dir))
        output, error = _communicate(process, "", timeout, cancel)
        if process.returncode != 0 or error:
            status = "error"
    except SandboxRuntimeError as exc:
        error = str(exc)
        status = "timeout" if error == "Execution timed out" else "error"
    finally:
        if code_file.exists():
            code_file.unlink()

    elapsed = int((time.monotonic() - started) * 1000)
    if status != "timeout":
        output = output or NO_OUTPUT_MESSAGE
    return ExecutionResult(output=output, error=error or "", status=status, execution_time=elapsed)


SUPPORTED_LANGUAGES = {
    "javascript": "javascript",
    "js": "javascript",
    "python": "python",
    "py": "python",
}


def run_program(code: str, language: str, cancel: Optional[threading.Event] = None) -> ExecutionResult:
    """Run a whole program and capture what it prints."""
    normalized = SUPPORTED_LANGUAGES.get((language or "").strip().lower())
    if normalized == "javascript":
        return JavaScriptSandbox().run_program(code, cancel)
    if normalized == "python":
        return run_python(code, cancel=cancel)
    return ExecutionResult(
        output="",
        error=f"Language '{language}' is not supported. Supported languages: JavaScript, Python",
        status="error",
        execution_time=0,
    )


def execute(source: str) -> str:
    """Evaluate ``source`` in the JavaScript sandbox and return its string result.

    Failures of any kind come back as ``"Error: <message>"``; this never raises.
    """
    return JavaScriptSandbox().execute(source)


__all__ = [
    "SandboxResult",
    "ExecutionResult",
    "JavaScriptSandbox",
    "run_program",
    "run_python",
    "execute",
    "SUPPORTED_LANGUAGES",
]
