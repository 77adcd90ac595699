# src/i18n_checker/utils/path_utils.py
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving the paths of files shipped with the package.
    """

    @staticmethod
    def get_package_root() -> Path:
        """Returns the absolute path of the i18n_checker package directory."""
        return Path(__file__).resolve().parent.parent

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_package_root() / "settings.json"

    @staticmethod
    def get_templates_file(name: Optional[str] = None) -> Path:
        """
        Resolves the assertion template catalog. Relative names are looked up
        inside the package, absolute paths are returned unchanged.
        """
        path = Path(name or "assertions_en.json")
        if path.is_absolute():
            return path
        return PathUtils.get_package_root() / path
