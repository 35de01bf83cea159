from __future__ import annotations

import os
import shutil
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from .errors import DuplicateRouteError, LoadError, PipelineError
from .render import write_text

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Task:
    name: str
    requires: tuple[str, ...]
    run: Callable[[Mapping[str, object]], object]


@dataclass(frozen=True)
class OutputFile:
    path: str
    text: Optional[str] = None
    source: Optional[Path] = None


def resolve_workers(workers: int) -> int:
    if workers <= 0:
        workers = os.cpu_count() or 1
    return max(1, min(workers, 32))


def parallel_map(func: Callable[[T], R], items: Sequence[T], workers: int = 1) -> list[R]:
    workers = max(1, int(workers or 1))
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(func, items))


class Pipeline:
    """A DAG of tasks.

    Each task receives a read-only mapping holding exactly the results of the
    tasks it requires. Tasks run in topological order; with more than one
    worker, every task whose inputs are ready is submitted to a thread pool.
    The first failure stops scheduling and is re-raised.
    """

    def __init__(self, workers: int = 1) -> None:
        self.workers = max(1, workers)
        self.tasks: dict[str, Task] = {}

    def add(self, name: str, run: Callable[[Mapping[str, object]], object], requires: Iterable[str] = ()) -> None:
        if name in self.tasks:
            raise PipelineError(f"Task {name!r} defined twice")
        self.tasks[name] = Task(name, tuple(requires), run)

    def _sorter(self) -> TopologicalSorter:
        for task in self.tasks.values():
            for dep in task.requires:
                if dep not in self.tasks:
                    raise PipelineError(f"Task {task.name!r} requires unknown task {dep!r}")
        sorter = TopologicalSorter({name: task.requires for name, task in self.tasks.items()})
        try:
            sorter.prepare()
        except CycleError as exc:
            raise PipelineError(f"Task graph has a cycle: {exc.args[1]}") from None
        return sorter

    def _inputs(self, task: Task, results: dict[str, object]) -> Mapping[str, object]:
        return MappingProxyType({dep: results[dep] for dep in task.requires})

    def run(self) -> Mapping[str, object]:
        sorter = self._sorter()
        results: dict[str, object] = {}
        if self.workers <= 1:
            while sorter.is_active():
                for name in sorter.get_ready():
                    task = self.tasks[name]
                    results[name] = task.run(self._inputs(task, results))
                    sorter.done(name)
            return MappingProxyType(results)

        pending: dict[Future, str] = {}
        executor = ThreadPoolExecutor(max_workers=self.workers)
        try:
            while sorter.is_active():
                for name in sorter.get_ready():
                    task = self.tasks[name]
                    pending[executor.submit(task.run, self._inputs(task, results))] = name
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    name = pending.pop(future)
                    results[name] = future.result()
                    sorter.done(name)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        return MappingProxyType(results)


def collect_outputs(groups: Iterable[Iterable[OutputFile]]) -> list[OutputFile]:
    outputs: list[OutputFile] = []
    owners: dict[str, OutputFile] = {}
    for group in groups:
        for output in group:
            path = output.path.lstrip("/")
            if path in owners:
                first = owners[path]
                raise DuplicateRouteError(path, str(first.source or "generated"), str(output.source or "generated"))
            owners[path] = output
            outputs.append(output)
    return outputs


def publish(outputs: Sequence[OutputFile], output_dir: Path) -> None:
    """Write every output into a staging directory, then swap it in.

    A failure while writing leaves the existing output directory untouched.
    """
    output_dir = output_dir.resolve()
    staging = output_dir.with_name(f".{output_dir.name}.staging")
    backup = output_dir.with_name(f".{output_dir.name}.old")
    for leftover in (staging, backup):
        if leftover.exists():
            shutil.rmtree(leftover)
    try:
        staging.mkdir(parents=True)
        for output in outputs:
            dest = staging / output.path.lstrip("/")
            if output.source is not None:
                dest.parent.mkdir(parents=True, exist_ok=True)
                try:
                    shutil.copy2(output.source, dest)
                except OSError as exc:
                    raise LoadError(f"Cannot copy {output.source}: {exc}") from exc
            else:
                write_text(dest, output.text or "")
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    if output_dir.exists():
        output_dir.rename(backup)
    staging.rename(output_dir)
    if backup.exists():
        shutil.rmtree(backup)
