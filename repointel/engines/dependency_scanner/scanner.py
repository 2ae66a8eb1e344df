"""RepositoryScanner: acquire -> parse -> extract, one task per repository."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import structlog

from repointel.core.errors import AcquisitionError
from repointel.core.github import repo_name_from_reference, strip_credentials
from repointel.engines.dependency_scanner.acquirer import Acquirer, DefaultAcquirer
from repointel.engines.dependency_scanner.extractor import DependencyExtractor
from repointel.engines.dependency_scanner.models import ExtractedSet
from repointel.engines.dependency_scanner.store import ScanStore

log = structlog.get_logger("repointel.engine")

_DEFAULT_CONCURRENCY = 4
_DEFAULT_ACQUIRE_TIMEOUT = 300.0


class RepositoryScanner:
    """Scans repositories concurrently and delivers each result to the store.

    Every scan ends with exactly one :meth:`ScanStore.put`, successful or
    not; a failing repository never affects its siblings.
    """

    def __init__(
        self,
        store: ScanStore,
        acquirer: Acquirer | None = None,
        *,
        extractor: DependencyExtractor | None = None,
        concurrency: int = _DEFAULT_CONCURRENCY,
        acquire_timeout: float | None = _DEFAULT_ACQUIRE_TIMEOUT,
    ) -> None:
        self._store = store
        self._acquirer = acquirer or DefaultAcquirer()
        self._extractor = extractor or DependencyExtractor()
        self._concurrency = max(1, concurrency)
        self._acquire_timeout = acquire_timeout

    async def scan(self, reference: str) -> ExtractedSet:
        """Scan one repository and store the result."""
        clean = strip_credentials(reference)
        name = repo_name_from_reference(reference)
        log.info("scanner.repo_started", repo=name, reference=clean)

        try:
            repo = await asyncio.wait_for(
                self._acquirer.acquire(reference), timeout=self._acquire_timeout
            )
        except asyncio.TimeoutError:
            result = ExtractedSet.failure(
                name, clean, f"acquisition timed out after {self._acquire_timeout}s"
            )
        except AcquisitionError as exc:
            result = ExtractedSet.failure(name, clean, exc.reason)
        except Exception as exc:
            log.exception("scanner.acquire_error", repo=name)
            result = ExtractedSet.failure(name, clean, str(exc) or type(exc).__name__)
        else:
            try:
                result = self._extractor.extract(repo)
            except Exception as exc:
                log.exception("scanner.extract_error", repo=name)
                result = ExtractedSet.failure(repo.name, repo.reference, str(exc))

        if result.success:
            log.info(
                "scanner.repo_done",
                repo=result.repo_name,
                dependencies=len(result.records),
                unresolved=len(result.unresolved),
                toolchain=result.toolchain_version,
            )
        else:
            log.warning("scanner.repo_failed", repo=result.repo_name, error=result.error)

        self._store.put(result)
        return result

    async def scan_many(self, references: Iterable[str]) -> list[ExtractedSet]:
        """Scan all *references* with bounded concurrency, in input order."""
        sem = asyncio.Semaphore(self._concurrency)

        async def _run_one(reference: str) -> ExtractedSet:
            async with sem:
                return await self.scan(reference)

        return list(await asyncio.gather(*(_run_one(ref) for ref in references)))
