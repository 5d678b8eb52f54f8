"""
Settings tests
"""

import pytest

from dvserializer.config.settings import AppSettings


class TestFolders:
    """Test folder filters"""

    def test_ignored(self):
        """Notes inside ignored folders, at any depth"""
        settings = AppSettings(ignored_folders=["templates", "/archive/old/"])

        assert settings.folder_isIgnored("templates/daily.md")
        assert settings.folder_isIgnored("templates/sub/daily.md")
        assert settings.folder_isIgnored("archive/old/a.md")
        assert not settings.folder_isIgnored("archive/a.md")
        assert not settings.folder_isIgnored("templates-old/daily.md")
        assert not settings.folder_isIgnored("daily.md")

    def test_nothing_ignored(self):
        """No ignored folders by default"""
        assert not AppSettings(ignored_folders=[]).folder_isIgnored("templates/daily.md")

    def test_scanned(self):
        """folders_to_scan limits notes to the listed folders"""
        settings = AppSettings(folders_to_scan=["projects"])

        assert settings.folder_isScanned("projects/a.md")
        assert settings.folder_isScanned("projects/sub/a.md")
        assert not settings.folder_isScanned("a.md")
        assert not settings.folder_isScanned("other/a.md")

    def test_scan_everything(self):
        """An empty list scans everything"""
        assert AppSettings(folders_to_scan=[]).folder_isScanned("any/where.md")
