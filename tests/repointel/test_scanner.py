"""Tests for RepositoryScanner and ScanStore."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from repointel.core.errors import AcquisitionError
from repointel.engines.dependency_scanner.models import (
    AcquiredRepository,
    DependencyRecord,
    DescriptorFile,
    ExtractedSet,
)
from repointel.engines.dependency_scanner.scanner import RepositoryScanner
from repointel.engines.dependency_scanner.store import ScanStore


class FakeAcquirer:
    """Serves canned repositories keyed by reference.

    A value may be an ``AcquiredRepository``, an exception to raise, or a
    ``(delay, value)`` pair.
    """

    def __init__(self, repos: dict[str, object]) -> None:
        self._repos = repos
        self.active = 0
        self.max_active = 0
        self.completed: list[str] = []

    async def acquire(self, reference: str) -> AcquiredRepository:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            value = self._repos[reference]
            if isinstance(value, tuple):
                delay, value = value
                await asyncio.sleep(delay)
            if isinstance(value, BaseException):
                raise value
            return value
        finally:
            self.active -= 1
            self.completed.append(reference)


def _acquired(name: str, content: bytes) -> AcquiredRepository:
    return AcquiredRepository(
        name=name, reference=f"/repos/{name}", files=(DescriptorFile("pom.xml", content),)
    )


# ── ScanStore ──


class TestScanStore:
    def test_put_get(self):
        store = ScanStore()
        result = ExtractedSet("a", "/a")
        store.put(result)
        assert store.get("a") is result
        assert store.get("b") is None
        assert "a" in store
        assert len(store) == 1

    def test_last_write_wins_keeps_position(self):
        store = ScanStore()
        store.put(ExtractedSet("a", "/a", toolchain_version="11"))
        store.put(ExtractedSet("b", "/b"))
        store.put(ExtractedSet("a", "/a", toolchain_version="17"))
        assert store.names() == ["a", "b"]
        assert store.get("a").toolchain_version == "17"

    def test_snapshot_is_a_copy(self):
        store = ScanStore()
        store.put(ExtractedSet("a", "/a"))
        snap = store.snapshot()
        store.put(ExtractedSet("b", "/b"))
        store.remove("a")
        assert list(snap) == ["a"]
        assert store.names() == ["b"]

    def test_items_iterates_snapshot(self):
        store = ScanStore()
        store.put(ExtractedSet("a", "/a"))
        store.put(ExtractedSet("b", "/b"))
        for name, _ in store.items():
            store.remove(name)
        assert len(store) == 0

    def test_remove_and_clear(self):
        store = ScanStore()
        store.put(ExtractedSet("a", "/a"))
        assert store.remove("a").repo_name == "a"
        assert store.remove("a") is None
        store.put(ExtractedSet("b", "/b"))
        store.clear()
        assert store.names() == []

    def test_concurrent_writers(self):
        store = ScanStore()

        def writer(prefix: str) -> None:
            for i in range(200):
                store.put(ExtractedSet(f"{prefix}{i}", "/x"))

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store) == 800


# ── RepositoryScanner ──


class TestScan:
    @pytest.mark.asyncio
    async def test_success_stored(self, make_pom):
        store = ScanStore()
        acquirer = FakeAcquirer(
            {"/repos/svc": _acquired("svc", make_pom(dependencies=[("g", "a", "1.0")]))}
        )
        result = await RepositoryScanner(store, acquirer).scan("/repos/svc")

        assert result.success
        assert result.records == (DependencyRecord("g", "a", "1.0"),)
        assert store.get("svc") is result

    @pytest.mark.asyncio
    async def test_acquisition_error_becomes_failure(self):
        store = ScanStore()
        acquirer = FakeAcquirer(
            {"https://tok@github.com/o/gone.git": AcquisitionError("x", "repository not found")}
        )
        with capture_logs() as logs:
            result = await RepositoryScanner(store, acquirer).scan(
                "https://tok@github.com/o/gone.git"
            )

        assert not result.success
        assert result.repo_name == "gone"
        assert result.reference == "https://github.com/o/gone.git"
        assert result.error == "repository not found"
        assert result.records == ()
        assert store.get("gone") is result
        failed = [e for e in logs if e["event"] == "scanner.repo_failed"]
        assert failed and failed[0]["log_level"] == "warning"
        assert all("tok" not in str(e.get("reference", "")) for e in logs)

    @pytest.mark.asyncio
    async def test_timeout(self):
        store = ScanStore()
        acquirer = FakeAcquirer({"/repos/slow": (5.0, _acquired("slow", b"<project/>"))})
        scanner = RepositoryScanner(store, acquirer, acquire_timeout=0.05)
        result = await scanner.scan("/repos/slow")
        assert not result.success
        assert "timed out" in result.error
        assert store.get("slow") is result

    @pytest.mark.asyncio
    async def test_unexpected_exception(self):
        store = ScanStore()
        acquirer = FakeAcquirer({"/repos/weird": RuntimeError("disk on fire")})
        with capture_logs() as logs:
            result = await RepositoryScanner(store, acquirer).scan("/repos/weird")
        assert not result.success
        assert result.error == "disk on fire"
        assert any(e["event"] == "scanner.acquire_error" for e in logs)

    @pytest.mark.asyncio
    async def test_extractor_exception(self):
        class Exploding:
            def extract(self, repo):
                raise ValueError("bad extractor")

        store = ScanStore()
        acquirer = FakeAcquirer({"/repos/svc": _acquired("svc", b"<project/>")})
        result = await RepositoryScanner(store, acquirer, extractor=Exploding()).scan(
            "/repos/svc"
        )
        assert not result.success
        assert result.error == "bad extractor"
        assert store.get("svc") is result

    @pytest.mark.asyncio
    async def test_rescan_replaces_previous_result(self, make_pom):
        store = ScanStore()
        repos = {"/repos/svc": _acquired("svc", make_pom(dependencies=[("g", "a", "1.0")]))}
        scanner = RepositoryScanner(store, FakeAcquirer(repos))
        await scanner.scan("/repos/svc")

        repos["/repos/svc"] = _acquired("svc", make_pom(dependencies=[("g", "a", "2.0")]))
        await scanner.scan("/repos/svc")

        assert len(store) == 1
        assert store.get("svc").records == (DependencyRecord("g", "a", "2.0"),)

    @pytest.mark.asyncio
    async def test_failed_rescan_replaces_success(self, make_pom):
        store = ScanStore()
        repos: dict[str, object] = {"/repos/svc": _acquired("svc", make_pom())}
        scanner = RepositoryScanner(store, FakeAcquirer(repos))
        await scanner.scan("/repos/svc")
        repos["/repos/svc"] = AcquisitionError("/repos/svc", "gone")
        await scanner.scan("/repos/svc")
        assert not store.get("svc").success


class TestScanMany:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self, make_pom):
        store = ScanStore()
        acquirer = FakeAcquirer(
            {
                "/repos/a": _acquired("a", make_pom(dependencies=[("g", "x", "1")])),
                "/repos/b": AcquisitionError("/repos/b", "boom"),
                "/repos/c": _acquired("c", make_pom(dependencies=[("g", "y", "2")])),
            }
        )
        results = await RepositoryScanner(store, acquirer).scan_many(
            ["/repos/a", "/repos/b", "/repos/c"]
        )
        assert [r.success for r in results] == [True, False, True]
        assert store.get("a").success and store.get("c").success
        assert store.get("b").error == "boom"

    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        acquirer = FakeAcquirer(
            {
                "/repos/slow": (0.1, _acquired("slow", b"<project/>")),
                "/repos/fast": (0.0, _acquired("fast", b"<project/>")),
            }
        )
        results = await RepositoryScanner(ScanStore(), acquirer).scan_many(
            ["/repos/slow", "/repos/fast"]
        )
        assert [r.repo_name for r in results] == ["slow", "fast"]
        assert acquirer.completed == ["/repos/fast", "/repos/slow"]

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        repos = {f"/repos/r{i}": (0.02, _acquired(f"r{i}", b"<project/>")) for i in range(10)}
        acquirer = FakeAcquirer(repos)
        await RepositoryScanner(ScanStore(), acquirer, concurrency=3).scan_many(list(repos))
        assert acquirer.max_active == 3

    @pytest.mark.asyncio
    async def test_concurrency_floor(self):
        acquirer = FakeAcquirer({"/repos/a": _acquired("a", b"<project/>")})
        scanner = RepositoryScanner(ScanStore(), acquirer, concurrency=0)
        assert len(await scanner.scan_many(["/repos/a"])) == 1

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await RepositoryScanner(ScanStore(), FakeAcquirer({})).scan_many([]) == []


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_local_checkouts(self, tmp_path: Path, make_pom):
        alpha = tmp_path / "alpha"
        (alpha / "core").mkdir(parents=True)
        (alpha / "pom.xml").write_bytes(
            make_pom(
                artifact="alpha-parent",
                properties={"jackson.version": "2.15.2", "java.version": "17"},
                managed=[("org.slf4j", "slf4j-api", "2.0.9")],
            )
        )
        (alpha / "core" / "pom.xml").write_bytes(
            make_pom(
                artifact="alpha-core",
                parent={"groupId": "com.example", "artifactId": "alpha-parent"},
                dependencies=[
                    ("com.fasterxml.jackson.core", "jackson-databind", "${jackson.version}"),
                    ("org.slf4j", "slf4j-api", None),
                ],
            )
        )
        (alpha / "target").mkdir()
        (alpha / "target" / "pom.xml").write_bytes(
            make_pom(dependencies=[("should", "not-appear", "1")])
        )
        missing = tmp_path / "missing"

        store = ScanStore()
        results = await RepositoryScanner(store).scan_many([str(alpha), str(missing)])

        ok, failed = results
        assert ok.success
        assert ok.repo_name == "alpha"
        assert ok.toolchain_version == "17"
        assert ok.descriptor_count == 2
        assert set(ok.records) == {
            DependencyRecord("com.fasterxml.jackson.core", "jackson-databind", "2.15.2"),
            DependencyRecord("org.slf4j", "slf4j-api", "2.0.9"),
        }
        assert not failed.success
        assert failed.error == "not a directory"
        assert sorted(store.names()) == ["alpha", "missing"]
