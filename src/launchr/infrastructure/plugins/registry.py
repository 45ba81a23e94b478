"""Plugin registry: runs every unit in isolation and merges a Corpus."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any, Union

import structlog

from launchr.domain.corpus import Corpus, PluginEntries
from launchr.domain.exceptions import PluginError, PluginTimeout, ScriptRuntimeError
from launchr.domain.plugins import PluginDiagnostic, PluginOutput, PluginRun, PluginUnit

from .sandbox import PluginSandbox

log = structlog.get_logger(__name__)

UnitSource = Union[Sequence[PluginUnit], Callable[[], Sequence[PluginUnit]]]


class PluginRegistry:
    """Owns the current Corpus and rebuilds it on refresh.

    A build never fails as a whole: each unit runs on its own worker
    thread, bounded by ``max_workers`` concurrent units and a per-unit
    timeout, and failures are recorded as diagnostics next to the
    corpus. The merge is a serial reduction in unit order.

    Overlapping refreshes are allowed; only the most recently started
    one may install its corpus, older results are discarded. Worker
    threads of timed-out or superseded units are not interrupted.
    """

    def __init__(
        self,
        sandbox: PluginSandbox,
        *,
        units: UnitSource = (),
        timeout_seconds: float = 5.0,
        max_workers: int = 4,
        max_depth: int | None = None,
        include_child_terms: bool = False,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._sandbox = sandbox
        self._units = units
        self._timeout = timeout_seconds
        self._max_workers = max_workers
        self._max_depth = max_depth
        self._include_child_terms = include_child_terms

        self._lock = threading.Lock()
        self._corpus = Corpus.empty()
        self._latest_generation = 0
        self._last_runs: tuple[PluginRun, ...] = ()

    @property
    def corpus(self) -> Corpus:
        with self._lock:
            return self._corpus

    @property
    def last_runs(self) -> tuple[PluginRun, ...]:
        """Per-unit state of the last installed build."""
        with self._lock:
            return self._last_runs

    def units(self) -> list[PluginUnit]:
        source = self._units
        return list(source() if callable(source) else source)

    async def build(
        self,
        units: Sequence[PluginUnit],
        *,
        generation: int = 0,
    ) -> Corpus:
        """Run all units and merge their entries; never raises for plugin faults."""
        corpus, _ = await self._build(units, generation)
        return corpus

    async def refresh_async(self) -> Corpus:
        """Rebuild from the unit source; returns the corpus now current."""
        with self._lock:
            self._latest_generation += 1
            generation = self._latest_generation

        corpus, runs = await self._build(self.units(), generation)

        with self._lock:
            if generation == self._latest_generation:
                self._corpus = corpus
                self._last_runs = runs
            else:
                log.info(
                    "refresh_superseded",
                    generation=generation,
                    latest_generation=self._latest_generation,
                )
            return self._corpus

    def refresh(self) -> Corpus:
        """Blocking ``refresh_async`` for synchronous frontends."""
        return asyncio.run(self.refresh_async())

    async def _build(
        self,
        units: Sequence[PluginUnit],
        generation: int,
    ) -> tuple[Corpus, tuple[PluginRun, ...]]:
        t0 = time.perf_counter_ns()
        runs = tuple(PluginRun(unit) for unit in units)
        semaphore = asyncio.Semaphore(self._max_workers)

        async def _run_one(run: PluginRun) -> None:
            async with semaphore:
                run.start()
                try:
                    output = await asyncio.wait_for(
                        self._start_worker(run.unit),
                        timeout=self._timeout,
                    )
                except TimeoutError:
                    run.fail(
                        PluginTimeout(
                            f"plugin did not finish within {self._timeout:g}s"
                        )
                    )
                except PluginError as e:
                    run.fail(e)
                except Exception as e:
                    # sandbox stand-ins that break the PluginError contract
                    run.fail(ScriptRuntimeError(f"{type(e).__name__}: {e}"))
                else:
                    run.succeed(output)

        await asyncio.gather(*(_run_one(run) for run in runs))

        contributions: list[PluginEntries] = []
        diagnostics: list[PluginDiagnostic] = []
        for index, run in enumerate(runs):
            if run.error is not None:
                diagnostic = PluginDiagnostic.from_error(run.unit, run.error)
                diagnostics.append(diagnostic)
                log.warning(
                    "plugin_failed",
                    plugin=diagnostic.plugin,
                    kind=diagnostic.kind,
                    error_message=diagnostic.message,
                    location=diagnostic.location,
                )
                continue

            output = run.output
            if output is None:
                raise RuntimeError(
                    f"plugin {run.unit.name!r} ended in state {run.status.value} without output"
                )
            for rejected in output.rejected:
                diagnostics.append(PluginDiagnostic.from_error(run.unit, rejected))
                log.warning(
                    "plugin_entry_rejected",
                    plugin=run.unit.name,
                    error_message=str(rejected),
                )
            contributions.append(
                PluginEntries(
                    plugin_index=index,
                    plugin=output.name,
                    entries=output.entries,
                )
            )

        corpus = Corpus.from_plugin_entries(
            contributions,
            diagnostics=diagnostics,
            max_depth=self._max_depth,
            include_child_terms=self._include_child_terms,
            generation=generation,
        )
        log.info(
            "corpus_built",
            generation=generation,
            units=len(runs),
            failed=sum(1 for r in runs if r.error is not None),
            records=len(corpus),
            diagnostics=len(diagnostics),
            duration_ms=(time.perf_counter_ns() - t0) // 1_000_000,
        )
        return corpus, runs

    def _start_worker(self, unit: PluginUnit) -> asyncio.Future[PluginOutput]:
        # Daemon threads: a runaway script must not block interpreter exit
        # or the event loop's executor shutdown.
        loop = asyncio.get_running_loop()
        future: asyncio.Future[PluginOutput] = loop.create_future()

        def _deliver(output: PluginOutput | None, error: BaseException | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(output)  # type: ignore[arg-type]

        def _work() -> None:
            try:
                output = self._sandbox.run(unit)
            except Exception as e:
                _post(loop, _deliver, None, e)
            else:
                _post(loop, _deliver, output, None)

        threading.Thread(
            target=_work,
            name=f"launchr-plugin-{unit.name}",
            daemon=True,
        ).start()
        return future


def _post(loop: asyncio.AbstractEventLoop, callback: Callable[..., Any], *args: Any) -> None:
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        # loop already closed; the build that started this unit is gone
        log.debug("plugin_result_abandoned")
