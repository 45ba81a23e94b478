"""Tests for plugin source loading (scripts and YAML data files)."""

from __future__ import annotations

from pathlib import Path

import pytest

from launchr.domain.exceptions import RegistrationError, ScriptLoadError
from launchr.infrastructure.plugins.loader import compile_script, load_data_plugin

# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


class TestCompileScript:
    def test_compiles_valid_script(self, write_plugin) -> None:
        path = write_plugin("ok.py", 'plugin(name="ok", entries=[entry("true")])\n')
        code = compile_script(path)
        assert code.co_filename == str(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ScriptLoadError, match="cannot read"):
            compile_script(tmp_path / "missing.py")

    def test_syntax_error_reports_line(self, write_plugin) -> None:
        path = write_plugin("bad.py", "x = 1\nplugin(name=\n")
        with pytest.raises(ScriptLoadError, match="SyntaxError"):
            compile_script(path)

    def test_guard_violation(self, write_plugin) -> None:
        path = write_plugin("os.py", "import os\n")
        with pytest.raises(ScriptLoadError, match="import of 'os' is not allowed"):
            compile_script(path)

    def test_undecodable_file(self, plugin_dir: Path) -> None:
        path = plugin_dir / "latin.py"
        path.write_bytes(b"name = '\xff\xfe'\n")
        with pytest.raises(ScriptLoadError):
            compile_script(path)


# ---------------------------------------------------------------------------
# Data plugins
# ---------------------------------------------------------------------------


class TestLoadDataPlugin:
    def test_valid_file(self, write_plugin) -> None:
        path = write_plugin(
            "tools.yaml",
            """\
            name: Tools
            entries:
              - htop
              - name: Editor
                exec: nvim
                exec_flags: {is_term: true}
              - name: Power
                children:
                  - {name: Reboot, exec: systemctl reboot}
            """,
        )
        output = load_data_plugin(path)
        assert output.name == "Tools"
        assert [e.name for e in output.entries] == ["htop", "Editor", "Power"]
        assert output.entries[1].flags.is_term is True
        assert output.entries[2].is_group
        assert output.rejected == ()

    def test_invalid_entry_is_rejected_alone(self, write_plugin) -> None:
        path = write_plugin(
            "mixed.yaml",
            """\
            name: Mixed
            entries:
              - firefox
              - name: Broken
              - name: Unknown
                exec: x
                icon: x.png
            """,
        )
        output = load_data_plugin(path)
        assert [e.name for e in output.entries] == ["firefox"]
        assert len(output.rejected) == 2
        assert str(output.rejected[0]).startswith("entry #1:")
        assert "icon" in str(output.rejected[1])

    def test_exec_flags_must_be_booleans(self, write_plugin) -> None:
        path = write_plugin(
            "flags.yaml",
            """\
            name: Flags
            entries:
              - {exec: htop, exec_flags: {is_term: "yes"}}
            """,
        )
        output = load_data_plugin(path)
        assert output.entries == ()
        assert len(output.rejected) == 1

    def test_empty_file(self, write_plugin) -> None:
        with pytest.raises(RegistrationError, match="empty"):
            load_data_plugin(write_plugin("empty.yaml", ""))

    def test_root_not_mapping(self, write_plugin) -> None:
        with pytest.raises(RegistrationError, match="mapping"):
            load_data_plugin(write_plugin("list.yaml", "- a\n- b\n"))

    def test_missing_name(self, write_plugin) -> None:
        with pytest.raises(RegistrationError):
            load_data_plugin(write_plugin("noname.yaml", "entries: [htop]\n"))

    def test_blank_name(self, write_plugin) -> None:
        with pytest.raises(RegistrationError):
            load_data_plugin(write_plugin("blank.yaml", "name: '  '\nentries: []\n"))

    def test_unknown_top_level_field(self, write_plugin) -> None:
        with pytest.raises(RegistrationError):
            load_data_plugin(
                write_plugin("extra.yaml", "name: x\nentries: []\nversion: 2\n")
            )

    def test_invalid_yaml(self, write_plugin) -> None:
        with pytest.raises(ScriptLoadError, match="invalid YAML"):
            load_data_plugin(write_plugin("broken.yaml", "name: [unclosed\n"))
