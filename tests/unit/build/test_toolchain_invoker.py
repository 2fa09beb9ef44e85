"""
Unit tests for ToolchainInvoker.

Tests subprocess invocation, error capture and batched compilation.
"""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from lvpreview.build.toolchain_invoker import (
    MAX_BATCH_SIZE,
    ToolchainInvoker,
    ToolchainOutput,
    ToolchainProcessError,
    default_batch_size,
    object_path_for,
)

RUN = "lvpreview.build.toolchain_invoker.subprocess.run"


@pytest.fixture
def invoker(tmp_path):
    """Invoker pointing at a fake emcc."""
    return ToolchainInvoker(tmp_path / "emsdk" / "emcc")


def completed(returncode=0, stdout="", stderr=""):
    return Mock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestInvoke:
    """Test cases for invoke."""

    def test_success_returns_output(self, invoker, tmp_path):
        """Test a zero exit returns captured streams."""
        with patch(RUN, return_value=completed(stdout="ok", stderr="warn")) as mock_run:
            output = invoker.invoke(["-v"], cwd=tmp_path, timeout=5)

        assert output == ToolchainOutput(stdout="ok", stderr="warn")
        cmd = mock_run.call_args[0][0]
        assert cmd == [str(invoker.emcc_path), "-v"]
        kwargs = mock_run.call_args[1]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["timeout"] == 5
        assert kwargs["capture_output"] is True

    def test_nonzero_exit_raises_with_output(self, invoker):
        """Test failures carry stdout, stderr and the exit code."""
        with patch(RUN, return_value=completed(1, "partial", "a.c:1:1: error: x")):
            with pytest.raises(ToolchainProcessError) as exc_info:
                invoker.invoke(["-c", "a.c"])

        error = exc_info.value
        assert error.returncode == 1
        assert error.stdout == "partial"
        assert error.stderr == "a.c:1:1: error: x"
        assert "partial" in error.output
        assert "error: x" in error.output

    def test_timeout_raises_with_partial_output(self, invoker):
        """Test timeouts become ToolchainProcessError with partial output."""
        timeout = subprocess.TimeoutExpired(cmd="emcc", timeout=1, output=b"half", stderr=b"way")
        with patch(RUN, side_effect=timeout):
            with pytest.raises(ToolchainProcessError) as exc_info:
                invoker.invoke(["big.c"], timeout=1)

        assert exc_info.value.returncode is None
        assert exc_info.value.stdout == "half"
        assert exc_info.value.stderr == "way"
        assert "timed out" in str(exc_info.value)

    def test_launch_failure_raises(self, invoker):
        """Test a missing executable becomes ToolchainProcessError."""
        with patch(RUN, side_effect=FileNotFoundError("no emcc")):
            with pytest.raises(ToolchainProcessError, match="Failed to launch emcc"):
                invoker.invoke(["-v"])

    def test_output_truncated(self, tmp_path):
        """Test captured output is capped at max_output_bytes."""
        invoker = ToolchainInvoker(tmp_path / "emcc", max_output_bytes=4)
        with patch(RUN, return_value=completed(stdout="0123456789")):
            output = invoker.invoke([])

        assert output.stdout == "0123"

    def test_output_truncated_by_encoded_size(self, tmp_path):
        """Test the cap counts UTF-8 bytes, not characters."""
        invoker = ToolchainInvoker(tmp_path / "emcc", max_output_bytes=5)
        with patch(RUN, return_value=completed(stderr="\u00e9\u00e9\u00e9\u00e9")):
            output = invoker.invoke([])

        assert output.stderr == "\u00e9\u00e9"
        assert len(output.stderr.encode("utf-8")) <= 5


class TestObjectPaths:
    """Test cases for object_path_for."""

    def test_same_stem_different_dirs_do_not_collide(self, tmp_path):
        """Test sources with equal names map to distinct objects."""
        a = object_path_for(tmp_path / "core" / "lv_obj.c", tmp_path / "out")
        b = object_path_for(tmp_path / "widgets" / "lv_obj.c", tmp_path / "out")

        assert a != b
        assert a.parent == tmp_path / "out"
        assert a.name.startswith("lv_obj-")
        assert a.suffix == ".o"

    def test_deterministic(self, tmp_path):
        """Test the same source always maps to the same object."""
        source = tmp_path / "a.c"
        assert object_path_for(source, tmp_path) == object_path_for(source, tmp_path)


class TestCompile:
    """Test cases for compile_object and compile_to_objects."""

    def test_compile_object_args(self, invoker, tmp_path):
        """Test the compile command line."""
        source = tmp_path / "a.c"
        out_dir = tmp_path / "out"

        with patch.object(invoker, "invoke") as mock_invoke:
            obj = invoker.compile_object(
                source, out_dir, [tmp_path / "inc"], "-O3", ["FOO=1"]
            )

        args = mock_invoke.call_args[0][0]
        assert args[:3] == ["-O3", "-DLVGL_LIVE_PREVIEW", "-DFOO=1"]
        assert ["-c", str(source), "-o", str(obj)] == args[3:7]
        assert f"-I{tmp_path / 'inc'}" in args
        assert obj == object_path_for(source, out_dir)

    def test_compile_object_failure_returns_none(self, invoker, tmp_path):
        """Test a failed compile is logged and skipped."""
        with patch.object(invoker, "invoke", side_effect=ToolchainProcessError("boom")):
            assert invoker.compile_object(tmp_path / "a.c", tmp_path, []) is None

    def test_compile_to_objects_preserves_order_and_skips_failures(self, invoker, tmp_path):
        """Test results follow source order without failed files."""
        sources = [tmp_path / f"s{i}.c" for i in range(5)]

        def fake_invoke(args, cwd=None, timeout=None):
            if "s2.c" in " ".join(args):
                raise ToolchainProcessError("s2.c:1:1: error: bad")
            return ToolchainOutput("", "")

        with patch.object(invoker, "invoke", side_effect=fake_invoke):
            objects = invoker.compile_to_objects(sources, tmp_path / "out", [], batch_size=2)

        expected = [object_path_for(s, tmp_path / "out") for s in sources if s.name != "s2.c"]
        assert objects == expected
        assert (tmp_path / "out").is_dir()

    def test_compile_to_objects_empty(self, invoker, tmp_path):
        """Test an empty source list compiles nothing."""
        with patch.object(invoker, "invoke") as mock_invoke:
            assert invoker.compile_to_objects([], tmp_path / "out", []) == []
        mock_invoke.assert_not_called()


class TestBatchSize:
    """Test cases for default_batch_size."""

    def test_clamped_to_maximum(self):
        """Test large machines are capped."""
        with patch("lvpreview.build.toolchain_invoker.psutil.cpu_count", return_value=64):
            assert default_batch_size() == MAX_BATCH_SIZE

    def test_unknown_cpu_count(self):
        """Test an unknown CPU count falls back to one worker."""
        with patch("lvpreview.build.toolchain_invoker.psutil.cpu_count", return_value=None):
            assert default_batch_size() == 1

    def test_uses_cpu_count(self):
        """Test small machines use their CPU count."""
        with patch("lvpreview.build.toolchain_invoker.psutil.cpu_count", return_value=4):
            assert default_batch_size() == 4
