"""Exception types raised inside the scanning pipeline.

None of these leave the engine: the scanner and extractor turn them into
failure results and log lines.
"""


class RepoIntelError(Exception):
    """Base exception for all repointel errors."""


class AcquisitionError(RepoIntelError):
    """Raised when a repository's descriptor files cannot be fetched."""

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"cannot acquire {reference}: {reason}")


class DescriptorParseError(RepoIntelError):
    """Raised when a single descriptor file is not a readable POM."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
