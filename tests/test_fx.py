"""Tests for the transform pipeline using real short-lived processes."""
import asyncio
import json
import sys
from unittest.mock import AsyncMock, patch

import pytest

from pipeboard.config import Config, FxConfig
from pipeboard.errors import ConfigError, TransformError
from pipeboard.fx import Transform, chain_label, load_transforms, resolve_chain, run_chain

PY = sys.executable

STRIP_ANSI = r"import re,sys; sys.stdout.write(re.sub(r'\x1b\[[0-9;]*m', '', sys.stdin.read()))"
PRETTY_JSON = "import json,sys; json.dump(json.load(sys.stdin), sys.stdout, indent=2, sort_keys=True)"
UPPER = "import sys; sys.stdout.write(sys.stdin.read().upper())"
FAIL = "import sys; sys.stderr.write('bad input'); sys.exit(2)"
SILENT = "import sys; sys.stdin.read()"


def py(code: str) -> FxConfig:
    return FxConfig(cmd=[PY, "-c", code])


@pytest.fixture
def config() -> Config:
    return Config(
        fx={
            "strip-ansi": py(STRIP_ANSI),
            "redact-secrets": FxConfig(shell="sed -E 's/(password=)[^ \"]+/\\1[REDACTED]/g'"),
            "pretty-json": py(PRETTY_JSON),
            "upper": py(UPPER),
            "fail": py(FAIL),
            "silent": py(SILENT),
        }
    )


class TestRunChain:
    """Tests for ordered, all-or-nothing chains."""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_three_step_chain(self, config):
        """Test strip-ansi, redact-secrets, pretty-json applied in order."""
        original = b'\x1b[32m{"user": "bob", "auth": "password=hunter2"}\x1b[0m'
        chain = resolve_chain(config, ["strip-ansi", "redact-secrets", "pretty-json"])
        result = await run_chain(original, chain)
        assert json.loads(result) == {"auth": "password=[REDACTED]", "user": "bob"}
        assert b"\n  " in result
        assert b"\x1b" not in result

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_failing_middle_step_names_it(self, config):
        """Test chain [A, B, C] with B failing raises for step 2 and never runs C."""
        chain = resolve_chain(config, ["upper", "fail", "pretty-json"])
        with pytest.raises(TransformError) as exc_info:
            await run_chain(b"abc", chain)
        err = exc_info.value
        assert err.step_name == "fail"
        assert err.step_index == 2
        assert "bad input" in str(err)
        assert "content unchanged" in str(err)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_empty_output_is_an_error(self, config):
        chain = resolve_chain(config, ["silent"])
        with pytest.raises(TransformError, match="empty output"):
            await run_chain(b"abc", chain)

    @pytest.mark.asyncio
    async def test_missing_program(self):
        chain = [Transform(name="ghost", cmd=("no-such-program-xyz",))]
        with pytest.raises(TransformError, match="could not start"):
            await run_chain(b"abc", chain)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_timeout(self):
        chain = [Transform(name="slow", shell="sleep 5")]
        with pytest.raises(TransformError, match="timed out"):
            await run_chain(b"abc", chain, timeout=0.2)

    @pytest.mark.asyncio
    async def test_timeout_reported_as_timeout(self):
        """Test that a timeout is not mistaken for a failure to start the program."""
        chain = [Transform(name="first", cmd=("cat",)), Transform(name="slow", cmd=("sleep",))]
        with patch("pipeboard.fx.run_process", new=AsyncMock(side_effect=asyncio.TimeoutError())):
            with pytest.raises(TransformError, match="timed out") as exc_info:
                await run_chain(b"abc", chain, timeout=3)
        assert exc_info.value.step_name == "first"

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_dry_run_computes_same_result(self, config):
        chain = resolve_chain(config, ["upper"])
        assert await run_chain(b"abc", chain, dry_run=True) == b"ABC"


class TestResolve:
    def test_unknown_name_fails_before_running(self, config):
        with pytest.raises(ConfigError, match="unknown transform 'nope'"):
            resolve_chain(config, ["upper", "nope"])

    def test_order_preserved(self, config):
        chain = resolve_chain(config, ["pretty-json", "upper"])
        assert chain_label(chain) == "pretty-json → upper"

    def test_shell_transform_argv(self):
        transform = load_transforms(Config(fx={"u": FxConfig(shell="tr a-z A-Z")}))["u"]
        assert transform.argv() == ["sh", "-c", "tr a-z A-Z"]

    def test_summary_falls_back_to_command(self):
        transform = Transform(name="j", cmd=("jq", "."))
        assert transform.summary() == "jq ."
        long = Transform(name="l", shell="x" * 100)
        assert len(long.summary()) == 50
        assert long.summary().endswith("...")
