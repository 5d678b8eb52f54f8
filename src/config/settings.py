"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use DVSERIALIZER_ prefix (e.g., DVSERIALIZER_ADD_TRAILING_NEWLINE=true).

Settings can also be loaded from a .env file in the project root.
"""

from pathlib import PurePosixPath
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use DVSERIALIZER_ prefix. List values are given
    as JSON.

    Examples:
        DVSERIALIZER_ENGINE_COMMAND="dataview-cli render"
        DVSERIALIZER_IGNORED_FOLDERS='["templates", "archive"]'
        DVSERIALIZER_SERIALIZATION_TIMEOUT=10
    """

    model_config = SettingsConfigDict(
        env_prefix="DVSERIALIZER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Rewriter configuration
    add_trailing_newline: bool = Field(
        default=False,
        description="Add a blank line before the result end marker, even for unindented directives",
    )

    # Scan configuration
    ignored_folders: List[str] = Field(
        default_factory=list,
        description="Folders (relative to the notes root) whose notes are never processed",
    )

    folders_to_scan: List[str] = Field(
        default_factory=list,
        description="Folders scanned on a full pass; empty means the whole notes root",
    )

    minimum_seconds_between_updates: int = Field(
        default=5,
        description="Minimum delay before a note written by a pass may be processed again",
    )

    # Engine configuration
    engine_command: str = Field(
        default="",
        description="External command that evaluates one query (query text on stdin)",
    )

    serialization_timeout: float = Field(
        default=30.0,
        description="Seconds a single query evaluation may take before it fails",
    )

    # Reporting configuration
    max_error_notifications: int = Field(
        default=3,
        description="Individual query errors reported per pass before summarizing the rest",
    )

    debug_logging: bool = Field(
        default=False,
        description="Force debug-level trace output regardless of -v",
    )

    def folder_isIgnored(self, relative_path: str) -> bool:
        """
        Check whether a note lies inside one of the ignored folders.

        Args:
            relative_path: Note path relative to the notes root, "/" separated

        Returns:
            True when the note is inside an ignored folder

        Example:
            >>> settings = AppSettings(ignored_folders=["templates"])
            >>> settings.folder_isIgnored("templates/daily.md")
            True
            >>> settings.folder_isIgnored("templates-old/daily.md")
            False
        """
        parents = PurePosixPath(relative_path).parents
        ignored = {PurePosixPath(folder.strip("/")) for folder in self.ignored_folders if folder.strip("/")}
        return any(parent in ignored for parent in parents)

    def folder_isScanned(self, relative_path: str) -> bool:
        """True when folders_to_scan is empty or contains the note's folder"""
        folders = [PurePosixPath(folder.strip("/")) for folder in self.folders_to_scan if folder.strip("/")]
        if not folders:
            return True
        parents = PurePosixPath(relative_path).parents
        return any(folder in parents for folder in folders)


# Singleton instance - import this in your code
appsettings = AppSettings()
