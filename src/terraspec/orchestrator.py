"""Discover test cases, run each through the engine pipeline, and aggregate reports.

Every case runs on its own thread with its own engine context, plan and
assertion tree; reports are collected through a single queue in arrival
order. The run fails when any report carries an error diagnostic, which is
only known once every case has reported.
"""

from __future__ import annotations

import enum
import logging
import queue
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, TextIO, Union, cast

import click

from .config import RunConfig
from .constants import EXIT_FAILURE, EXIT_SUCCESS, SPEC_EXTENSION, VARIABLES_EXTENSION
from .diagnostics import Diagnostics
from .engine import build_engine
from .engine.base import Engine, EngineContext
from .errors import CaseDiscoveryError, ValidationCrash
from .matcher import validate
from .mocks import inject_mocks
from .plan import PlanAccessor
from .renderer import render_report
from .spec.parser import read_spec

logger = logging.getLogger("terraspec.orchestrator")


class Stage(enum.Enum):
    DISCOVERED = "discovered"
    CONFIG_PARSED = "config parsed"
    SPEC_PARSED = "spec parsed"
    MOCK_INJECTED = "mock injected"
    REFRESHED = "refreshed"
    PLANNED = "planned"
    VALIDATED = "validated"


@dataclass(frozen=True)
class TestCase:
    """One directory holding a spec file and an optional variables file."""

    __test__ = False

    directory: Path
    spec_file: Path
    variable_file: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.directory.name or self.directory.resolve().name


@dataclass
class TestReport:
    __test__ = False

    name: str
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    plan: str = ""
    stage: Stage = Stage.DISCOVERED

    @property
    def failed(self) -> bool:
        return self.diagnostics.has_errors()


def find_case(directory: Path) -> Optional[TestCase]:
    """Return the case held by ``directory`` or None when it has no spec file."""

    spec_file: Optional[Path] = None
    variable_file: Optional[Path] = None
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        if entry.suffix == SPEC_EXTENSION:
            spec_file = entry
        elif entry.suffix == VARIABLES_EXTENSION:
            variable_file = entry
    if spec_file is None:
        return None
    return TestCase(directory, spec_file, variable_file)


def find_cases(root: Union[str, Path]) -> List[TestCase]:
    """Discover one case per immediate subdirectory of ``root``, then ``root`` itself."""

    root = Path(root)
    try:
        subdirectories = sorted(entry for entry in root.iterdir() if entry.is_dir())
    except OSError as exc:
        raise CaseDiscoveryError(f"cannot read spec directory {root}: {exc}") from exc

    found: List[Optional[TestCase]] = []
    for directory in subdirectories:
        try:
            found.append(find_case(directory))
        except OSError as exc:
            logger.warning("skipping unreadable test case directory %s: %s", directory, exc)
    try:
        found.append(find_case(root))
    except OSError as exc:
        raise CaseDiscoveryError(f"cannot read spec directory {root}: {exc}") from exc

    cases = [case for case in found if case is not None]
    for case in cases:
        logger.debug("found test case %s (spec=%s, vars=%s)", case.name, case.spec_file, case.variable_file)
    logger.info("discovered %d test case(s) under %s", len(cases), root)
    return cases


class CaseRunner:
    """Run one case through the engine stages, stopping at the first failing one."""

    def __init__(self, engine: Engine, config_dir: Path, display_plan: bool = False) -> None:
        self.engine = engine
        self.config_dir = config_dir
        self.display_plan = display_plan

    def run(self, case: TestCase) -> TestReport:
        report = TestReport(case.name)
        context, diagnostics = self.engine.new_context(self.config_dir, case.variable_file, case_dir=case.directory)
        if context is None or diagnostics.has_errors():
            if context is not None:
                context.close()
            return self._fatal(report, diagnostics)
        with context:
            self._advance(report, Stage.CONFIG_PARSED, diagnostics)
            return self._run_stages(case, context, report)

    def _run_stages(self, case: TestCase, context: EngineContext, report: TestReport) -> TestReport:
        tree, diagnostics = read_spec(case.spec_file, context.schemas())
        if tree is None:
            return self._fatal(report, diagnostics)
        # Authoring errors stay in the report; the remaining assertions still run.
        self._advance(report, Stage.SPEC_PARSED, diagnostics)

        mocks = tree.all_mocks()
        if mocks:
            diagnostics = inject_mocks(context, mocks)
            if diagnostics.has_errors():
                return self._fatal(report, diagnostics)
            self._advance(report, Stage.MOCK_INJECTED, diagnostics)

        diagnostics = context.refresh()
        if diagnostics.has_errors():
            return self._fatal(report, diagnostics)
        self._advance(report, Stage.REFRESHED, diagnostics)

        snapshot, diagnostics = context.plan()
        if snapshot is None or diagnostics.has_errors():
            return self._fatal(report, diagnostics)
        self._advance(report, Stage.PLANNED, diagnostics)

        if self.display_plan:
            report.plan = context.render_plan(snapshot)

        accessor = PlanAccessor(snapshot, context.schemas())
        self._advance(report, Stage.VALIDATED, validate(tree, accessor))
        return report

    def _advance(self, report: TestReport, stage: Stage, diagnostics: Diagnostics) -> None:
        logger.debug("%s: %s", report.name, stage.value)
        report.stage = stage
        report.diagnostics.extend(diagnostics)

    def _fatal(self, report: TestReport, diagnostics: Diagnostics) -> TestReport:
        # A failed stage reports only its own diagnostics.
        logger.info("%s: stopped after stage %r", report.name, report.stage.value)
        report.diagnostics = Diagnostics(diagnostics)
        return report


_DONE = object()


def iter_reports(cases: Iterable[TestCase], run_case: Callable[[TestCase], TestReport]) -> Iterator[TestReport]:
    """Run every case on its own thread and yield reports as they arrive.

    An exception escaping ``run_case`` is re-raised as :class:`ValidationCrash`
    once it reaches the consumer.
    """

    results: "queue.Queue[object]" = queue.Queue()

    def _work(case: TestCase) -> None:
        try:
            results.put(run_case(case))
        except Exception as exc:  # noqa: BLE001
            results.put(ValidationCrash(case.name, exc))

    workers = [
        threading.Thread(target=_work, args=(case,), name=f"terraspec-{case.name}", daemon=True)
        for case in cases
    ]
    for worker in workers:
        worker.start()

    def _close() -> None:
        for worker in workers:
            worker.join()
        results.put(_DONE)

    threading.Thread(target=_close, name="terraspec-closer", daemon=True).start()

    while True:
        item = results.get()
        if item is _DONE:
            return
        if isinstance(item, ValidationCrash):
            raise item
        yield cast(TestReport, item)


def exec_terraspec(
    config: RunConfig,
    *,
    engine: Optional[Engine] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """Run every case under ``config.spec_dir`` and print the reports.

    Returns ``EXIT_SUCCESS`` when no report holds an error and
    ``EXIT_FAILURE`` otherwise. Raises :class:`CaseDiscoveryError` when no
    case is found and :class:`ValidationCrash` when a case crashes.
    """

    if engine is None:
        engine = build_engine(config)
    cases = find_cases(config.spec_dir)
    if not cases:
        raise CaseDiscoveryError(f"no test case found in {config.spec_dir}")

    out = stream if stream is not None else sys.stdout
    runner = CaseRunner(engine, config.config_dir, config.display_plan)
    failed = 0
    for report in iter_reports(cases, runner.run):
        click.echo(render_report(report, display_plan=config.display_plan, use_color=config.use_color), file=out)
        if report.failed:
            failed += 1

    if failed:
        logger.info("%d of %d test case(s) failed", failed, len(cases))
        return EXIT_FAILURE
    return EXIT_SUCCESS


__all__ = [
    "Stage",
    "TestCase",
    "TestReport",
    "CaseRunner",
    "find_case",
    "find_cases",
    "iter_reports",
    "exec_terraspec",
]
