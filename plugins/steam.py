"""Steam games exported as desktop shortcuts by the Flatpak client."""

import re

STEAM = (
    "/usr/bin/flatpak run --branch=stable --arch=x86_64 "
    "--command=/app/bin/steam-wrapper com.valvesoftware.Steam"
)
SHORTCUTS = join_path(getenv("HOME", ""), ".var/app/com.valvesoftware.Steam/Desktop")

_HEADER = re.compile(r"^\[([^\]]*)\]$")


def read_desktop(path):
    sections = {}
    current = None
    for line in read_lines(path):
        line = line.strip()
        header = _HEADER.match(line)
        if header:
            current = sections.setdefault(header.group(1), {})
        elif current is not None and "=" in line:
            key, value = line.split("=", 1)
            current[key.strip()] = value.strip()
    return sections


def games():
    try:
        names = list_dir(SHORTCUTS)
    except OSError:
        return
    for name in names:
        if not name.endswith(".desktop"):
            continue
        try:
            info = read_desktop(join_path(SHORTCUTS, name)).get("Desktop Entry", {})
        except OSError:
            continue
        if "Name" not in info or "Exec" not in info:
            continue
        yield entry(
            name=info["Name"],
            exec=info["Exec"].replace("steam", STEAM, 1),
            search_terms=[info["Name"], "Steam", "Game"],
        )


plugin(name="Steam", entries=games())
