"""Tests for the module-level API."""
from __future__ import annotations

import asyncio
import dataclasses

import pytest

import qtimeit
from qtimeit import api
from qtimeit import config as config_module


@pytest.fixture
def fast_api(test_config):
    """Default engine built from the fast test settings."""
    saved = config_module._config
    qtimeit.configure(**dataclasses.asdict(test_config))
    yield qtimeit.get_config()
    config_module._config = saved
    api.reset_engine()


def noop() -> None:
    pass


class TestPackage:
    """Test the package surface."""

    def test_version(self) -> None:
        assert qtimeit.__version__ == "0.1.0"

    def test_fptime(self) -> None:
        assert qtimeit.fptime() <= qtimeit.fptime()

    def test_exports(self) -> None:
        for name in qtimeit.__all__:
            assert hasattr(qtimeit, name), name


class TestEngine:
    """Test the default engine lifecycle."""

    def test_get_engine_is_shared(self, fast_api) -> None:
        assert api.get_engine() is api.get_engine()

    def test_configure_rebuilds_engine(self, fast_api) -> None:
        engine = api.get_engine()

        qtimeit.configure(bench_budget=0.25)

        rebuilt = api.get_engine()
        assert rebuilt is not engine
        assert rebuilt.config.bench_budget == 0.25


class TestTimeit:
    """Test module-level timing."""

    def test_count(self, fast_api) -> None:
        sample = qtimeit.timeit(1000, noop)

        assert sample.call_count == 1000
        assert sample.wallclock > 0

    def test_statement(self, fast_api) -> None:
        sample = qtimeit.timeit(100, "x = [1, 2, 3]", qtimeit.SILENT)

        assert sample.call_count == 100

    def test_callback(self, fast_api) -> None:
        results = []

        returned = qtimeit.timeit(
            500, lambda done: done(), callback=lambda *args: results.append(args)
        )

        assert returned is None
        assert results[0][0] is None
        assert results[0][1] == 500

    def test_atimeit(self, fast_api) -> None:
        async def work() -> None:
            pass

        sample = asyncio.run(qtimeit.atimeit(20, work))

        assert sample.call_count == 20

    def test_labelled_report(self, fast_api, capsys) -> None:
        qtimeit.timeit(10, noop, "api")

        assert capsys.readouterr().out.startswith('api "noop": 10 loops in ')


class TestBench:
    """Test module-level benchmarking."""

    def test_bench_order(self, fast_api) -> None:
        digests = qtimeit.bench(
            {"b": noop, "a": "x = 1"},
            loops=100,
            repeats=3,
            label=qtimeit.SILENT,
        )

        assert list(digests) == ["b", "a"]
        assert digests["b"].name == "b"
        assert all(d.run_count == 3 for d in digests.values())

    def test_abench(self, fast_api) -> None:
        async def work() -> None:
            pass

        digests = asyncio.run(qtimeit.abench(
            {"cb": lambda done: done(), "coro": work},
            loops=50,
            repeats=2,
            label=qtimeit.SILENT,
        ))

        assert list(digests) == ["cb", "coro"]
        assert digests["coro"].total_count == 100

    def test_runit_reports(self, fast_api, capsys) -> None:
        qtimeit.configure(verbose=True)

        digest = qtimeit.runit(4, 100, 2, "noop", noop)

        assert digest.run_count == 4
        assert digest.items_per_call == 2
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "noop"
        assert out[2].startswith("item rate min-max-avg ")
