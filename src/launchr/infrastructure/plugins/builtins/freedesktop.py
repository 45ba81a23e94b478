"""Applications declared by freedesktop.org ``.desktop`` files.

Files are looked up in ``$XDG_DATA_HOME/applications`` followed by each
``$XDG_DATA_DIRS`` entry's ``applications`` directory. A desktop file id
seen earlier shadows later ones, matching the XDG lookup order.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from launchr.domain.entries import Entry
from launchr.domain.exceptions import InvalidEntry
from launchr.domain.ports.capabilities import Capabilities

log = structlog.get_logger(__name__)

DESKTOP_ENTRY = "Desktop Entry"
_ACTION_PREFIX = "Desktop Action "
_DEFAULT_DATA_DIRS = ("/usr/local/share", "/usr/share")

_KEY_RE = re.compile(r"^(?P<key>[A-Za-z0-9-]+)(?:\[(?P<locale>[^\]]+)\])?\s*=\s*(?P<value>.*)$")
# %f %F %u %U %d %D %n %N %i %c %k %v %m; "%%" is a literal percent
_FIELD_CODE_RE = re.compile(r"%%|%[fFuUdDnNickvm]")


@dataclass
class DesktopKey:
    default: str | None = None
    localized: dict[str, str] = field(default_factory=dict)

    def get(self, language: str | None) -> str | None:
        for candidate in _locale_candidates(language):
            if candidate in self.localized:
                return self.localized[candidate]
        return self.default


DesktopSection = dict[str, DesktopKey]


def parse_desktop_file(lines: list[str]) -> dict[str, DesktopSection]:
    """Parse desktop-entry lines into ``{section: {key: DesktopKey}}``.

    Unparseable lines are skipped; keys outside any section are ignored.
    """
    sections: dict[str, DesktopSection] = {}
    current: DesktopSection | None = None
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1], {})
            continue
        if current is None:
            continue
        m = _KEY_RE.match(line)
        if not m:
            continue
        key = current.setdefault(m.group("key"), DesktopKey())
        value = _unescape(m.group("value"))
        locale = m.group("locale")
        if locale:
            key.localized[locale] = value
        else:
            key.default = value
    return sections


def strip_field_codes(command: str) -> str:
    """Drop ``%f``-style field codes from an ``Exec`` value."""
    out = _FIELD_CODE_RE.sub(lambda m: "%" if m.group(0) == "%%" else "", command)
    return " ".join(out.split())


def entry_from_desktop(
    sections: dict[str, DesktopSection],
    *,
    language: str | None = None,
) -> Entry | None:
    """Build an entry from a parsed desktop file, or ``None`` to skip it."""
    main = sections.get(DESKTOP_ENTRY)
    if main is None:
        return None
    kind = _value(main, "Type")
    if kind is not None and kind != "Application":
        return None
    if _flag(main, "NoDisplay") or _flag(main, "Hidden"):
        return None

    name = _value(main, "Name", language)
    command = strip_field_codes(_value(main, "Exec") or "")
    if not name or not command:
        return None

    terms = [name]
    generic = _value(main, "GenericName", language)
    if generic:
        terms.append(generic)
    keywords = _value(main, "Keywords", language) or ""
    terms.extend(k.strip() for k in keywords.split(";") if k.strip())

    flags = {"is_term": _flag(main, "Terminal"), "should_fork": False}
    children = list(_actions(sections, main, flags, language))

    return Entry.create(
        name=name,
        exec=command,
        search_terms=terms,
        children=children,
        exec_flags=flags,
    )


def freedesktop_entries(caps: Capabilities, *, language: str | None = None) -> Iterator[Entry]:
    seen: set[str] = set()
    for directory in application_dirs(caps):
        try:
            names = caps.list_dir(directory)
        except OSError as e:
            log.debug("xdg_dir_unreadable", directory=directory, error_message=str(e))
            continue
        for filename in names:
            if not filename.endswith(".desktop") or filename in seen:
                continue
            seen.add(filename)
            path = posixpath.join(directory, filename)
            try:
                sections = parse_desktop_file(caps.read_lines(path))
                entry = entry_from_desktop(sections, language=language)
            except OSError as e:
                log.debug("xdg_file_unreadable", path=path, error_message=str(e))
                continue
            except InvalidEntry as e:
                log.debug("xdg_file_skipped", path=path, error_message=str(e))
                continue
            if entry is not None:
                yield entry


def application_dirs(caps: Capabilities) -> list[str]:
    home = caps.getenv("XDG_DATA_HOME") or ""
    if not home:
        user_home = caps.getenv("HOME")
        home = posixpath.join(user_home, ".local/share") if user_home else ""
    data_dirs = (caps.getenv("XDG_DATA_DIRS") or "").split(":")
    if not any(data_dirs):
        data_dirs = list(_DEFAULT_DATA_DIRS)

    out: list[str] = []
    for base in [home, *data_dirs]:
        if not base:
            continue
        candidate = posixpath.join(base, "applications")
        if candidate not in out:
            out.append(candidate)
    return out


def _actions(
    sections: dict[str, DesktopSection],
    main: DesktopSection,
    flags: dict[str, bool],
    language: str | None,
) -> Iterator[Entry]:
    declared = _value(main, "Actions") or ""
    for action_id in (a.strip() for a in declared.split(";")):
        if not action_id:
            continue
        section = sections.get(_ACTION_PREFIX + action_id)
        if section is None:
            continue
        name = _value(section, "Name", language)
        command = strip_field_codes(_value(section, "Exec") or "")
        if not name or not command:
            continue
        yield Entry.create(name=name, exec=command, exec_flags=dict(flags))


def _value(section: DesktopSection, key: str, language: str | None = None) -> str | None:
    entry = section.get(key)
    return entry.get(language) if entry is not None else None


def _flag(section: DesktopSection, key: str) -> bool:
    return (_value(section, key) or "").strip().lower() == "true"


def _locale_candidates(language: str | None) -> list[str]:
    """``de_DE.UTF-8@euro`` -> ``de_DE@euro``, ``de_DE``, ``de@euro``, ``de``."""
    if not language:
        return []
    lang = language
    modifier = ""
    if "@" in lang:
        lang, modifier = lang.split("@", 1)
    lang = lang.split(".", 1)[0]
    base, _, country = lang.partition("_")

    out: list[str] = []
    if country and modifier:
        out.append(f"{base}_{country}@{modifier}")
    if country:
        out.append(f"{base}_{country}")
    if modifier:
        out.append(f"{base}@{modifier}")
    out.append(base)
    return out


def _unescape(value: str) -> str:
    return (
        value.replace("\\s", " ")
        .replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\r", "\r")
        .replace("\\\\", "\\")
    )
