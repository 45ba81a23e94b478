"""ROMs under ~/roms/<system>/, launched with a matching RetroArch core.

A ROM playable by exactly one core becomes a plain entry; otherwise it
becomes a group with one child per core (the first child is the default).
"""

import shlex
from collections import defaultdict

HOME = getenv("HOME", "")
ROM_ROOT = join_path(HOME, "roms")
ARCHIVES = ("zip", "7z")
# systems whose ROM sets each core family can also run
SHARED_SYSTEMS = {"mame": "fb_alpha", "fb_alpha": "mame"}


def config_dir():
    return getenv("XDG_CONFIG_HOME") or join_path(HOME, ".config")


def read_kv(path):
    """Parse ``key = "value"`` lines as written by RetroArch."""
    out = {}
    for line in read_lines(path):
        if "=" not in line or line.lstrip().startswith("#"):
            continue
        key, value = line.split("=", 1)
        out[key.strip()] = value.strip().strip('"')
    return out


def expand(path):
    return HOME + path[1:] if path.startswith("~") else path


def listing(path):
    try:
        return [n for n in list_dir(path) if not n.startswith(".")]
    except OSError:
        return []


def load_cores():
    cfg = read_kv(join_path(config_dir(), "retroarch/retroarch.cfg"))
    core_dir = expand(cfg.get("libretro_directory", ""))
    info_dir = expand(cfg.get("libretro_info_path", ""))

    cores = {}
    for filename in listing(core_dir):
        if filename.endswith(".so"):
            cores[filename[:-3]] = {"path": join_path(core_dir, filename)}

    for filename in listing(info_dir):
        name = filename[: -len(".info")] if filename.endswith(".info") else None
        if name not in cores:
            continue
        info = read_kv(join_path(info_dir, filename))
        cores[name]["extensions"] = [e for e in info.get("supported_extensions", "").split("|") if e]
        cores[name]["systemid"] = info.get("systemid", "")
    return cores


def index_cores(cores):
    by_ext = defaultdict(list)
    by_system = defaultdict(list)
    for name in sorted(cores):
        data = cores[name]
        for ext in data.get("extensions", []):
            by_ext[ext].append(name)
        by_system[data.get("systemid", "")].append(name)
    return by_ext, by_system


def command(core_path, rom_path):
    return "retroarch -L " + shlex.quote(core_path) + " " + shlex.quote(rom_path)


def roms():
    cores = load_cores()
    by_ext, by_system = index_cores(cores)

    for system in listing(ROM_ROOT):
        for filename in listing(join_path(ROM_ROOT, system)):
            stem, dot, ext = filename.rpartition(".")
            if not dot or not stem:
                stem, ext = filename, ""
            rom_path = join_path(ROM_ROOT, system, filename)

            candidates = list(by_system[system] if ext in ARCHIVES else by_ext[ext])
            if system in SHARED_SYSTEMS:
                candidates.extend(by_system[SHARED_SYSTEMS[system]])
            if not candidates:
                continue

            terms = [stem, ext, system]
            if len(candidates) == 1:
                core = candidates[0]
                yield entry(
                    name=stem,
                    exec=command(cores[core]["path"], rom_path),
                    search_terms=terms + [core],
                )
                continue

            group = entry(name=stem, search_terms=terms)
            for core in candidates:
                group.children.append(
                    entry(
                        name=core,
                        exec=command(cores[core]["path"], rom_path),
                        search_terms=terms + [core],
                    )
                )
                group.search_terms.append(core)
            yield group


plugin(name="Retroarch ROMs", entries=roms())
