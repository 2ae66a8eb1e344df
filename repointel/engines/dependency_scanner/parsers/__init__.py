"""Descriptor parsers."""

from repointel.engines.dependency_scanner.parsers.maven_pom import MavenPomParser

__all__ = ["MavenPomParser"]
