"""Dependency scanner engine: extract resolved Maven dependencies per repository."""

from repointel.engines.dependency_scanner.acquirer import (
    Acquirer,
    DefaultAcquirer,
    GitAcquirer,
    GitHubApiAcquirer,
    LocalAcquirer,
    build_acquirer,
)
from repointel.engines.dependency_scanner.extractor import DependencyExtractor, merge_by_coordinate
from repointel.engines.dependency_scanner.models import (
    AcquiredRepository,
    DependencyRecord,
    DescriptorDocument,
    DescriptorFile,
    ExtractedSet,
)
from repointel.engines.dependency_scanner.placeholders import PropertyResolver, tokenize
from repointel.engines.dependency_scanner.scanner import RepositoryScanner
from repointel.engines.dependency_scanner.store import ScanStore

__all__ = [
    "AcquiredRepository",
    "Acquirer",
    "DefaultAcquirer",
    "DependencyExtractor",
    "DependencyRecord",
    "DescriptorDocument",
    "DescriptorFile",
    "ExtractedSet",
    "GitAcquirer",
    "GitHubApiAcquirer",
    "LocalAcquirer",
    "PropertyResolver",
    "RepositoryScanner",
    "ScanStore",
    "build_acquirer",
    "merge_by_coordinate",
    "tokenize",
]
