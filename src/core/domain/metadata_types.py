"""Known metadata types and their top-level output directories.

Every retrieve clears these directories under the target root before any
archive is extracted, so the set lives in the domain layer where both the
CLI and the retrieve pipeline can share it.
"""

from __future__ import annotations

from enum import Enum


class MetadataType(str, Enum):
    """Metadata types served by the site, valued by their directory name."""

    APPS = "apps"
    AUTH_PROVIDERS = "authproviders"
    COMPONENT_PACKS = "componentpacks"
    DATA_SOURCES = "datasources"
    DESIGN_SYSTEMS = "designsystems"
    FILES = "files"
    PAGES = "pages"
    PERMISSION_SETS = "permissionsets"
    SITE_PERMISSION_SETS = "sitepermissionsets"
    SITE = "site"
    THEMES = "themes"
    VARIABLES = "variables"

    @property
    def dir_name(self) -> str:
        return self.value

    @classmethod
    def dir_names(cls) -> list[str]:
        """Return every metadata directory name, in declaration order."""

        return [member.dir_name for member in cls]
