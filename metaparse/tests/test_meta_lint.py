"""
Tests for the attribute linter command line.
"""

import pytest

from metaparse.meta_attrs import FIELD_ATTRS, STRUCT_ATTRS
from metaparse.meta_lint import lint_line, lint_source, main


class TestLintSource:
    """Per-line diagnostics."""

    def test_clean(self):
        source = "// byte order\nbig, count(4)\n\nlittle, magic = 1u8\n"
        assert lint_source(source, FIELD_ATTRS) == []

    def test_error_positions_are_file_positions(self):
        source = "big\n\nmagic = b\"PK\", bogus\n"
        errors = lint_source(source, FIELD_ATTRS)
        assert len(errors) == 1
        line, column, message = errors[0]
        assert (line, column) == (3, 16)
        assert message.startswith("unknown field attribute `bogus`")

    def test_indented_line(self):
        errors = lint_source("    count(\n", FIELD_ATTRS)
        assert errors[0][:2] == (1, 10)

    def test_lexer_error(self):
        assert lint_line("big, $", FIELD_ATTRS) == (1, 6, "Unexpected character: '$'")

    def test_unbalanced_brackets(self):
        line, column, message = lint_line("count(4", FIELD_ATTRS)
        assert (line, column) == (1, 6)
        assert "Unclosed" in message

    def test_attribute_set_matters(self):
        assert lint_line("import(a: u8)", STRUCT_ATTRS) is None
        assert lint_line("import(a: u8)", FIELD_ATTRS) is not None

    def test_malformed_literals(self):
        assert lint_line("count = 3foo", FIELD_ATTRS) == (1, 9, "invalid suffix `foo` for number literal")
        assert lint_line('magic = b"€"', FIELD_ATTRS)[:2] == (1, 9)
        errors = lint_source('big\ncount(len * 1.5u8)\nmagic = "\\xzz"\n', FIELD_ATTRS)
        assert [error[:2] for error in errors] == [(2, 13), (3, 9)]


class TestLintMain:
    """Exit codes and output."""

    def test_clean_file(self, tmp_path, capsys):
        path = tmp_path / "ok.attrs"
        path.write_text("big, count(len)\nlittle\n")
        assert main([str(path)]) == 0
        assert capsys.readouterr().out == ""

    def test_errors_reported(self, tmp_path, capsys):
        path = tmp_path / "bad.attrs"
        path.write_text("big\nmagic = b\"PK\", bogus\ncount = \n")
        assert main([str(path)]) == 1
        out = capsys.readouterr().out
        assert f"{path}:2:16: error: unknown field attribute `bogus`" in out
        assert f"{path}:3:" in out
        assert "2 error(s)" in out

    def test_struct_attrs(self, tmp_path):
        path = tmp_path / "struct.attrs"
        path.write_text("import { len: u32 }, repr = u8\n")
        assert main(["--attrs", "struct", str(path)]) == 0

    def test_yaml_attrs(self, tmp_path):
        defs = tmp_path / "defs.yaml"
        defs.write_text("name: custom\nattributes:\n  checksum: void\n")
        path = tmp_path / "custom.attrs"
        path.write_text("checksum\n")
        assert main(["--attrs", str(defs), str(path)]) == 0

    def test_bad_attrs(self, tmp_path, capsys):
        assert main(["--attrs", str(tmp_path / "missing.yaml"), "x"]) == 2
        assert "error:" in capsys.readouterr().out

    def test_mistyped_attrs(self, tmp_path, capsys):
        defs = tmp_path / "defs.yaml"
        defs.write_text("name: custom\nattributes:\n  checksum:\n    shape: [value]\n")
        assert main(["--attrs", str(defs), "x"]) == 2
        assert "attributes.checksum.shape: expected a string, got list" in capsys.readouterr().out

    def test_list(self, capsys):
        assert main(["--list", "--attrs", "struct"]) == 0
        assert "import" in capsys.readouterr().out.split()

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.attrs")]) == 1
        assert "nope.attrs: error:" in capsys.readouterr().out

    def test_no_files(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out
