from __future__ import annotations


# Path fragments that mark a directory as belonging to a game or game store.
GAME_VENDOR_TOKENS: tuple[str, ...] = (
    "game",
    "steam",
    "gog",
    "epic",
    "origin",
    "ubisoft",
    "bethesda",
    "rockstar",
)

# Only these vendor tokens rescue an exactly browser-named directory.
BROWSER_DIR_RESCUE_TOKENS: tuple[str, ...] = ("game", "steam", "epic", "gog")

GAME_DIRECTORY_SUFFIXES: tuple[str, ...] = ("bin", "binaries")


# Directory names pruned when they match exactly.
BROWSER_DIRECTORY_NAMES: frozenset[str] = frozenset(
    {"chrome", "firefox", "edge", "opera", "brave", "mozilla"}
)

OS_INTERNAL_TOKENS: tuple[str, ...] = (
    "system32",
    "syswow64",
    "$recycle.bin",
    "system volume information",
    "winsxs",
    "driverstore",
)

# Pruned unless the path also contains "game".
OS_SOFT_TOKENS: tuple[str, ...] = ("windows", "drivers")

INSTALLER_DIRECTORY_NAMES: frozenset[str] = frozenset(
    {
        "installer",
        "installers",
        "install",
        "setup",
        "redist",
        "redistributable",
        "redistributables",
        "uninstall",
        "uninstaller",
        "vcredist",
        "packages",
        "_install",
        "_installer",
        "_setup",
    }
)

TRANSIENT_DIRECTORY_NAMES: frozenset[str] = frozenset({"temp", "tmp", "cache", "logs", "log"})

# Transient only when the path has no "game" in it.
UPDATE_DIRECTORY_NAMES: frozenset[str] = frozenset({"update", "updates"})


# Executable file name fragments.
BROWSER_FILE_TOKENS: tuple[str, ...] = (
    "chrome",
    "firefox",
    "edge",
    "opera",
    "brave",
    "mozilla",
    "iexplore",
    "msedge",
    "browser",
)

NON_GAME_COMPONENT_SUFFIXES: tuple[str, ...] = (
    "crashreport",
    "updater",
    "helper",
    "gpu",
    "broker",
    "crashpad",
    "notification-helper",
    "plugin-container",
    "service",
)

ENGINE_TOKENS: tuple[str, ...] = ("unreal", "unity", "cryengine", "godot")

PLAY_VERB_TOKENS: tuple[str, ...] = ("start", "launch")

# "play" and "run" only count as whole names; "game" also counts as a suffix (e.g. "mygame").
GENERIC_ENTRY_STEMS: frozenset[str] = frozenset({"game", "client", "app", "main", "default", "play", "run"})

# Registry install folders are expanded recursively; these names are utilities, not programs.
UTILITY_EXECUTABLE_TOKENS: tuple[str, ...] = (
    "unins",
    "install",
    "setup",
    "update",
    "patch",
    "helper",
    "redist",
    "vcredist",
    "dotnet",
    "uninstall",
    "repair",
)


# Folders probed at the root of every local volume.
COMMON_INSTALL_DIRECTORIES: tuple[str, ...] = (
    "Program Files",
    "Program Files (x86)",
    "Games",
    "SteamLibrary",
    "Steam",
    "SteamApps",
    "Epic Games",
    "GoG Games",
    "Origin Games",
    "Ubisoft Games",
    "Xbox Games",
)

# Relative to each <volume>/Users/<name> directory.
USER_GAME_FOLDERS: tuple[tuple[str, ...], ...] = (
    ("Documents", "My Games"),
    ("Saved Games",),
    ("Games",),
    ("Downloads",),
    ("Desktop",),
)

# Relative to ProgramFiles and ProgramFiles(x86).
LAUNCHER_DIRECTORIES: tuple[str, ...] = (
    "Steam",
    "Epic Games",
    "GOG Galaxy",
    "Origin",
    "EA Games",
    "Ubisoft",
    "Rockstar Games",
    "Bethesda.net Launcher",
)

# Probed at the root of every local volume after the launcher folders.
VOLUME_LIBRARY_DIRECTORIES: tuple[str, ...] = ("SteamLibrary", "Games")


# Store folders expanded by the registry source, relative to ProgramFiles / ProgramFiles(x86).
STORE_GAME_DIRECTORIES: dict[str, tuple[tuple[str, ...], ...]] = {
    "gog": (("GOG Galaxy", "Games"),),
    "ea": (("EA Games",), ("Origin Games",), ("Electronic Arts",)),
    "ubisoft": (("Ubisoft", "Ubisoft Game Launcher", "games"),),
    "bethesda": (("Bethesda.net Launcher", "games"),),
    "rockstar": (("Rockstar Games",),),
    "battlenet": (("Battle.net",), ("Blizzard Entertainment",)),
}

UNINSTALL_KEY_PATHS: tuple[str, ...] = (
    r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
)

STEAM_KEY_PATHS: tuple[str, ...] = (
    r"SOFTWARE\Valve\Steam",
    r"SOFTWARE\WOW6432Node\Valve\Steam",
)


# Filesystem types that are never crawled.
NETWORK_FILESYSTEMS: frozenset[str] = frozenset(
    {"nfs", "nfs4", "cifs", "smbfs", "smb", "smb2", "afpfs", "sshfs", "fuse.sshfs", "9p", "davfs", "webdav"}
)
