"""Category selection for audio files."""

from typing import Optional, Union

from ..models.audio_metadata import AudioMetadata, OrganizeMode
from ..models.config import CategoryConfig

# Characters that cannot appear in a folder name on common filesystems.
RESERVED_CHARACTERS = frozenset('/\\:*?"<>|')


def sanitize_folder_name(name: str) -> str:
    """Replace reserved characters with underscores and trim whitespace."""
    return "".join("_" if c in RESERVED_CHARACTERS else c for c in name).strip()


class Categorizer:
    """Map a metadata record and an organize mode to a category label.

    Files whose name lacks the catalog prefix are effects and always land in
    the miscellaneous bucket, whatever their tags or override say.
    """

    CATALOG_PREFIX = "ES_"
    MISC_CATEGORY = "SFX"
    UNKNOWN_CATEGORY = "Unknown"

    def __init__(
        self,
        catalog_prefix: Optional[str] = None,
        misc_category: Optional[str] = None,
        unknown_category: Optional[str] = None,
    ) -> None:
        self.catalog_prefix = self.CATALOG_PREFIX if catalog_prefix is None else catalog_prefix
        self.misc_category = misc_category or self.MISC_CATEGORY
        self.unknown_category = unknown_category or self.UNKNOWN_CATEGORY

    @classmethod
    def from_config(cls, config: CategoryConfig) -> "Categorizer":
        return cls(
            catalog_prefix=config.catalog_prefix,
            misc_category=config.misc_category,
            unknown_category=config.unknown_category,
        )

    def is_catalog_file(self, filename: str) -> bool:
        """Case-sensitive check for the catalog prefix."""
        return filename.startswith(self.catalog_prefix)

    def category_for(self, metadata: AudioMetadata, mode: Union[str, OrganizeMode]) -> str:
        """Raw (unsanitized) category label for ``metadata``."""
        if not self.is_catalog_file(metadata.filename):
            return self.misc_category

        category = metadata.category_override
        if category is None:
            mode = OrganizeMode.parse(mode)
            if mode is OrganizeMode.GENRE:
                category = metadata.genre
            elif mode is OrganizeMode.MOOD and metadata.mood is not None:
                category = metadata.mood.split(',', 1)[0].strip()

        # A blank label would put the file in the destination root.
        if category is None or not category.strip():
            return self.unknown_category
        return category

    def folder_for(self, metadata: AudioMetadata, mode: Union[str, OrganizeMode]) -> str:
        """Category label made safe for use as a folder name."""
        return sanitize_folder_name(self.category_for(metadata, mode))


_default_categorizer = Categorizer()


def category_for(metadata: AudioMetadata, mode: Union[str, OrganizeMode]) -> str:
    return _default_categorizer.category_for(metadata, mode)


def folder_for(metadata: AudioMetadata, mode: Union[str, OrganizeMode]) -> str:
    return _default_categorizer.folder_for(metadata, mode)
