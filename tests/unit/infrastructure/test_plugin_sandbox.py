"""Tests for PluginSandbox: every fault becomes a PluginError."""

from __future__ import annotations

import pytest

from launchr.domain.exceptions import (
    RegistrationError,
    ScriptLoadError,
    ScriptRuntimeError,
)
from launchr.domain.plugins import PluginUnit
from launchr.infrastructure.plugins.builtins import BuiltinOptions
from launchr.infrastructure.plugins.sandbox import PluginSandbox


def _script_unit(path) -> PluginUnit:
    return PluginUnit(name=path.stem, location=path, kind="script")


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


class TestScriptUnits:
    def test_happy_path(self, fake_caps, write_plugin) -> None:
        path = write_plugin(
            "games.py",
            """\
            import re

            games = []
            for rom in ["smw.sfc", "zelda.sfc"]:
                title = re.sub(r"\\.sfc$", "", rom)
                games.append(entry(name=title, exec="snes9x " + rom))

            plugin(name="Games", entries=games)
            """,
        )
        output = PluginSandbox(fake_caps).run(_script_unit(path))
        assert output.name == "Games"
        assert [e.name for e in output.entries] == ["smw", "zelda"]

    def test_uses_capabilities(self, make_caps, write_plugin) -> None:
        caps = make_caps(
            files={"/roms/a.sfc": "", "/roms/b.sfc": ""},
            env={"ROM_DIR": "/roms"},
        )
        path = write_plugin(
            "roms.py",
            """\
            root = getenv("ROM_DIR")
            plugin(
                name="Roms",
                entries=[entry("snes9x " + join_path(root, f)) for f in list_dir(root)],
            )
            """,
        )
        output = PluginSandbox(caps).run(_script_unit(path))
        assert [e.exec for e in output.entries] == [
            "snes9x /roms/a.sfc",
            "snes9x /roms/b.sfc",
        ]
        assert ("list_dir", "/roms") in caps.calls

    def test_runtime_error(self, fake_caps, write_plugin) -> None:
        path = write_plugin("boom.py", "x = 1 / 0\n")
        with pytest.raises(ScriptRuntimeError, match="ZeroDivisionError"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_capability_error_surfaces_as_runtime_error(
        self, fake_caps, write_plugin
    ) -> None:
        path = write_plugin("missing.py", 'list_dir("/nope")\n')
        with pytest.raises(ScriptRuntimeError, match="FileNotFoundError"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_forbidden_builtin_is_a_name_error(self, fake_caps, write_plugin) -> None:
        path = write_plugin("open.py", 'open("/etc/passwd")\n')
        with pytest.raises(ScriptRuntimeError, match="NameError"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_never_registers(self, fake_caps, write_plugin) -> None:
        path = write_plugin("silent.py", "x = 1\n")
        with pytest.raises(RegistrationError, match="never called"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_registers_twice(self, fake_caps, write_plugin) -> None:
        path = write_plugin(
            "twice.py",
            'plugin(name="a", entries=[])\nplugin(name="b", entries=[])\n',
        )
        with pytest.raises(RegistrationError, match="exactly once"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_guard_violation(self, fake_caps, write_plugin) -> None:
        path = write_plugin("escape.py", "x = ().__class__\n")
        with pytest.raises(ScriptLoadError, match="__class__"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_match_pattern_attribute_walk_rejected(self, fake_caps, write_plugin) -> None:
        path = write_plugin(
            "escape_match.py",
            """\
            match ():
                case object(__class__=t):
                    match t:
                        case object(__base__=b):
                            plugin(name=str(b), entries=[])
            """,
        )
        with pytest.raises(ScriptLoadError, match="__class__"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_generator_fault_during_harvest(self, fake_caps, write_plugin) -> None:
        path = write_plugin(
            "lazy.py",
            """\
            def produce():
                yield entry("a")
                raise ValueError("disk went away")

            plugin(name="Lazy", entries=produce())
            """,
        )
        with pytest.raises(ScriptRuntimeError, match="disk went away"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_invalid_entry_does_not_fail_unit(self, fake_caps, write_plugin) -> None:
        path = write_plugin(
            "partial.py",
            'plugin(name="P", entries=[entry("a"), entry(name="empty")])\n',
        )
        output = PluginSandbox(fake_caps).run(_script_unit(path))
        assert [e.name for e in output.entries] == ["a"]
        assert len(output.rejected) == 1

    def test_unknown_entry_field_fails_unit(self, fake_caps, write_plugin) -> None:
        # entry() validates its field names at call time
        path = write_plugin(
            "typo.py", 'plugin(name="T", entries=[entry("a", serch_terms=["x"])])\n'
        )
        with pytest.raises(ScriptRuntimeError, match="serch_terms"):
            PluginSandbox(fake_caps).run(_script_unit(path))

    def test_scripts_do_not_share_globals(self, fake_caps, write_plugin) -> None:
        first = write_plugin("first.py", 'shared = 1\nplugin(name="a", entries=[])\n')
        second = write_plugin(
            "second.py", 'plugin(name="b", entries=[entry(str(shared))])\n'
        )
        sandbox = PluginSandbox(fake_caps)
        sandbox.run(_script_unit(first))
        with pytest.raises(ScriptRuntimeError, match="NameError"):
            sandbox.run(_script_unit(second))


# ---------------------------------------------------------------------------
# Data and built-in units
# ---------------------------------------------------------------------------


class TestOtherUnits:
    def test_data_unit(self, fake_caps, write_plugin) -> None:
        path = write_plugin("tools.yaml", "name: Tools\nentries: [htop]\n")
        output = PluginSandbox(fake_caps).run(
            PluginUnit(name="tools", location=path, kind="data")
        )
        assert output.name == "Tools"
        assert output.entries[0].exec == "htop"

    def test_path_builtin(self, make_caps) -> None:
        caps = make_caps(
            env={"PATH": "/usr/bin"},
            executables={"/usr/bin/htop"},
        )
        output = PluginSandbox(caps).run(
            PluginUnit(name="path", location="path", kind="builtin")
        )
        assert output.name == "$PATH"
        assert [e.exec for e in output.entries] == ["/usr/bin/htop"]

    def test_builtin_options_passed_through(self, make_caps) -> None:
        caps = make_caps(
            env={"HOME": "/home/u", "XDG_DATA_DIRS": "/usr/share"},
            files={
                "/usr/share/applications/files.desktop": (
                    "[Desktop Entry]\nType=Application\n"
                    "Name=Files\nName[de]=Dateien\nExec=nautilus %U\n"
                ),
            },
        )
        output = PluginSandbox(
            caps, builtin_options=BuiltinOptions(language="de_DE.UTF-8")
        ).run(PluginUnit(name="xdg", location="xdg", kind="builtin"))
        assert [e.name for e in output.entries] == ["Dateien"]

    def test_unknown_builtin(self, fake_caps) -> None:
        with pytest.raises(ScriptLoadError, match="unknown built-in"):
            PluginSandbox(fake_caps).run(
                PluginUnit(name="lua", location="lua", kind="builtin")
            )

    def test_unknown_kind(self, fake_caps) -> None:
        with pytest.raises(ScriptLoadError, match="unknown plugin kind"):
            PluginSandbox(fake_caps).run(
                PluginUnit(name="x", location="x", kind="binary")  # type: ignore[arg-type]
            )
