"""
Tests for type environments, execution contexts, built-ins and configuration.
"""

import io
import math
import urllib.error
from unittest import mock

import pytest

from intrear import (
    TypeEnvironment, ExecutionContext, create_context, InterpreterConfig, load_config,
    UnboundNameError, HostError, UNDEFINED, NUMBER, STRING, get_builtin_registry,
)
from intrear.types import FunctionType
from intrear.config import config_from_mapping


BUILTIN_NAMES = ["print", "typeOf", "now", "random", "isNaN",
                 "abs", "sqrt", "floor", "ceil", "fetch"]


# =============================================================================
# Type Environment
# =============================================================================

class TestTypeEnvironment:
    """Test type environment chains."""

    def test_lookup_walks_to_parent(self):
        root = TypeEnvironment()
        root.define("x", NUMBER)
        child = root.child().child()
        assert child.lookup("x") == NUMBER

    def test_define_shadows(self):
        root = TypeEnvironment()
        root.define("x", NUMBER)
        child = root.child()
        child.define("x", STRING)
        assert child.lookup("x") == STRING
        assert root.lookup("x") == NUMBER

    def test_unbound(self):
        env = TypeEnvironment()
        with pytest.raises(UnboundNameError) as exc_info:
            env.lookup("missing")
        assert exc_info.value.code == "E202"
        assert "missing" in exc_info.value.message
        assert not env.contains("missing")

    def test_root_has_builtin_signatures(self):
        env = TypeEnvironment.root()
        for name in BUILTIN_NAMES:
            assert isinstance(env.lookup(name), FunctionType)
        assert env.lookup("print").variadic


# =============================================================================
# Execution Context
# =============================================================================

class TestExecutionContext:
    """Test execution context chains and built-in seeding."""

    def test_root_seeded_with_builtins(self):
        ctx = create_context()
        for name in BUILTIN_NAMES:
            assert callable(ctx.lookup(name))

    def test_builtins_only_in_root_frame(self):
        ctx = create_context()
        child = ctx.child()
        assert "print" not in child.variables
        assert callable(child.lookup("print"))

    def test_local_shadowing_of_builtin(self):
        ctx = create_context()
        child = ctx.child()
        child.define("print", 42)
        assert child.lookup("print") == 42
        assert callable(ctx.lookup("print"))

    def test_define_writes_current_frame(self):
        ctx = create_context()
        ctx.define("x", 1)
        child = ctx.child()
        child.define("x", 2)
        assert child.lookup("x") == 2
        assert ctx.lookup("x") == 1

    def test_unbound_variable(self):
        ctx = create_context()
        with pytest.raises(UnboundNameError) as exc_info:
            ctx.child().lookup("ghost")
        assert exc_info.value.message == "undefined variable: ghost"

    def test_config_and_output_shared_by_children(self):
        out = io.StringIO()
        config = InterpreterConfig(random_seed=7)
        ctx = create_context(config=config, output=out)
        child = ctx.child().child()
        assert child.config is config
        assert child.output is out

    def test_bare_context_without_builtins(self):
        ctx = ExecutionContext(install_builtins=False)
        assert not ctx.contains("print")


# =============================================================================
# Built-ins
# =============================================================================

class TestBuiltins:
    """Test the built-in callables."""

    def setup_method(self):
        self.out = io.StringIO()
        self.ctx = create_context(config=InterpreterConfig(random_seed=1), output=self.out)

    def call(self, name, *args):
        return self.ctx.lookup(name)(*args)

    def test_registry_names(self):
        assert sorted(get_builtin_registry().names()) == sorted(BUILTIN_NAMES)

    def test_print_is_variadic(self):
        assert self.call("print", "a", 1, True, None) is UNDEFINED
        self.call("print")
        assert self.out.getvalue() == "a 1 true null\n\n"

    def test_type_of(self):
        assert self.call("typeOf", 1) == "number"
        assert self.call("typeOf", [1]) == "array"
        assert self.call("typeOf", self.ctx.lookup("print")) == "function"

    def test_math(self):
        assert self.call("abs", -3) == 3
        assert self.call("floor", 2.7) == 2
        assert self.call("ceil", 2.1) == 3
        assert self.call("sqrt", 9) == 3.0
        assert math.isnan(self.call("sqrt", -1))
        assert self.call("floor", math.inf) == math.inf

    def test_is_nan(self):
        assert self.call("isNaN", "abc")
        assert not self.call("isNaN", "12")
        assert self.call("isNaN", math.nan)

    def test_random_is_seeded(self):
        other = create_context(config=InterpreterConfig(random_seed=1))
        first = [self.call("random") for _ in range(3)]
        second = [other.lookup("random")() for _ in range(3)]
        assert first == second
        assert all(0 <= r < 1 for r in first)

    def test_now_is_milliseconds(self):
        assert self.call("now") > 1_000_000_000_000

    def test_fetch_returns_text(self):
        response = mock.MagicMock()
        response.read.return_value = b"hello"
        response.headers.get_content_charset.return_value = "utf-8"
        response.__enter__.return_value = response
        with mock.patch("urllib.request.urlopen", return_value=response) as urlopen:
            assert self.call("fetch", "http://example.test/") == "hello"
        urlopen.assert_called_once_with("http://example.test/", timeout=10.0)

    def test_fetch_failure_is_host_error(self):
        with mock.patch("urllib.request.urlopen",
                        side_effect=urllib.error.URLError("no route")):
            with pytest.raises(HostError) as exc_info:
                self.call("fetch", "http://example.test/")
        assert exc_info.value.code == "E402"


# =============================================================================
# Configuration
# =============================================================================

class TestConfig:
    """Test YAML configuration loading."""

    def test_defaults(self):
        config = InterpreterConfig()
        assert config.memoize_pure is True
        assert config.max_errors == 20

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "intrear.yaml"
        path.write_text("fetch_timeout: 2.5\nrandom_seed: 3\nmemoize_pure: false\n")
        config = load_config(path)
        assert config.fetch_timeout == 2.5
        assert config.random_seed == 3
        assert config.memoize_pure is False

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == InterpreterConfig()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown configuration key"):
            config_from_mapping({"speed": 11})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(path)
