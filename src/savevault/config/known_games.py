from __future__ import annotations

from savevault.core.models import KnownGameDescriptor


# Built-in catalog. Install paths are relative to a volume root.
KNOWN_GAMES: tuple[KnownGameDescriptor, ...] = (
    KnownGameDescriptor(
        name="Cyberpunk 2077",
        relative_install_path=r"Program Files (x86)\Steam\steamapps\common\Cyberpunk 2077\bin\x64",
        executable_file_name="Cyberpunk2077.exe",
        save_path_template="%USERPROFILE%/Saved Games/CD Projekt Red/Cyberpunk 2077",
    ),
    KnownGameDescriptor(
        name="Cyberpunk 2077 (GOG)",
        relative_install_path=r"GOG Games\Cyberpunk 2077",
        executable_file_name="REDprelauncher.exe",
        save_path_template="%USERPROFILE%/Saved Games/CD Projekt Red/Cyberpunk 2077",
    ),
    KnownGameDescriptor(
        name="Abiotic Factor",
        relative_install_path=r"Program Files (x86)\Steam\steamapps\common\AbioticFactor",
        executable_file_name="AbioticFactor.exe",
        save_path_template="%USERPROFILE%/AppData/Local/AbioticFactor/Saved",
    ),
    KnownGameDescriptor(
        name="The Lord of the Rings: Return to Moria",
        relative_install_path=r"Program Files\Epic Games\ReturnToMoria",
        executable_file_name="Moria.exe",
        save_path_template="%LOCALAPPDATA%/Moria/Saved/SaveGames",
    ),
    KnownGameDescriptor(
        name="Stardew Valley",
        relative_install_path=r"Program Files (x86)\Steam\steamapps\common\Stardew Valley",
        executable_file_name="Stardew Valley.exe",
        save_path_template="%APPDATA%/StardewValley/Saves",
    ),
    KnownGameDescriptor(
        name="Hollow Knight",
        relative_install_path=r"Program Files (x86)\Steam\steamapps\common\Hollow Knight",
        executable_file_name="hollow_knight.exe",
        save_path_template="%USERPROFILE%/AppData/LocalLow/Team Cherry/Hollow Knight",
    ),
)
