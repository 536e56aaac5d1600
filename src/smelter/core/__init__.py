"""Core smelter modules."""

from .cache import MetadataStore
from .cached_metadata import CachedMetadataHandler, find_audio_files
from .categorizer import Categorizer, category_for, folder_for, sanitize_folder_name
from .metadata import MetadataHandler, read_audio_metadata
from .naming import NameResolver, numbered_filename
from .organizer import OrganizeEngine

__all__ = [
    'CachedMetadataHandler',
    'Categorizer',
    'MetadataHandler',
    'MetadataStore',
    'NameResolver',
    'OrganizeEngine',
    'category_for',
    'find_audio_files',
    'folder_for',
    'numbered_filename',
    'read_audio_metadata',
    'sanitize_folder_name',
]
