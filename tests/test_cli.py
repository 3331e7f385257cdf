"""
Tests for the command-line interface.
"""

import json
import textwrap
from pathlib import Path

import pytest

from intrear.__main__ import main

FIZZBUZZ = Path(__file__).resolve().parent.parent / "examples" / "fizzbuzz.yaml"


def write_program(tmp_path, nodes, name="prog.json"):
    path = tmp_path / name
    path.write_text(json.dumps({"program": nodes}))
    return str(path)


def declare(kind, name, value):
    return {"node": "VariableDeclaration", "kind": kind, "name": name,
            "initializer": {"node": "Literal", "value": value}}


class TestCheckCommand:
    """Test the check subcommand."""

    def test_clean_program(self, capsys):
        assert main(["check", str(FIZZBUZZ)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("OK: ")
        assert "no errors" in out

    def test_type_errors(self, tmp_path, capsys):
        path = write_program(tmp_path, [declare("number", "x", "five")])
        assert main(["check", path]) == 1
        out = capsys.readouterr().out
        assert "Type checking failed with 1 error(s):" in out
        assert "E201" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "absent.yaml")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_document(self, tmp_path, capsys):
        path = write_program(tmp_path, [{"node": "Teleport"}])
        assert main(["check", path]) == 1
        assert "invalid program" in capsys.readouterr().err

    def test_requires_subcommand(self):
        with pytest.raises(SystemExit):
            main([])


class TestRunCommand:
    """Test the run subcommand."""

    def test_fizzbuzz(self, capsys):
        assert main(["run", str(FIZZBUZZ), "--check", "--show", "count"]) == 0
        out = capsys.readouterr().out
        assert "1,2,Fizz,4,Buzz" in out
        assert "count = 15" in out

    def test_show_unbound(self, tmp_path, capsys):
        path = write_program(tmp_path, [declare("string", "s", "hi")])
        assert main(["run", path, "-s", "s", "-s", "nope"]) == 0
        out = capsys.readouterr().out
        assert "s = hi" in out
        assert "nope: <unbound>" in out

    def test_check_blocks_execution(self, tmp_path, capsys):
        path = write_program(tmp_path, [
            declare("number", "x", "five"),
            {"node": "FunctionCall", "name": "print",
             "args": [{"node": "Literal", "value": "ran"}]},
        ])
        assert main(["run", path, "--check"]) == 1
        out = capsys.readouterr().out
        assert "Type checking failed" in out
        assert "ran" not in out

    def test_runtime_error(self, tmp_path, capsys):
        path = write_program(tmp_path, [
            {"node": "Error", "message": {"node": "Literal", "value": "boom"}},
        ])
        assert main(["run", path]) == 1
        assert "Error[E401]: boom" in capsys.readouterr().err

    def test_config_file(self, tmp_path, capsys):
        config = tmp_path / "intrear.yaml"
        config.write_text(textwrap.dedent("""\
            memoize_pure: false
            log_level: WARNING
        """))
        path = write_program(tmp_path, [declare("number", "n", 3)])
        assert main(["run", path, "--config", str(config), "--show", "n"]) == 0
        assert "n = 3" in capsys.readouterr().out

    def test_missing_config(self, tmp_path, capsys):
        path = write_program(tmp_path, [declare("number", "n", 3)])
        assert main(["run", path, "--config", str(tmp_path / "absent.yaml")]) == 1
        assert "Error:" in capsys.readouterr().err
