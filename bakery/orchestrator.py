"""Run build stages as a dependency graph.

A :class:`Stage` names its prerequisites; :func:`run_stages` starts every
stage whose prerequisites have succeeded, as soon as they have, on a thread
pool. A failed stage does not stop unrelated stages. Stages that depend on it
(directly or transitively) are skipped.

:func:`build_site` wires the site stages into this graph::

    clean ───────┬──────────────┬─────────────┬─────────────┐
                 │              │             │             │
                 v              v             v             v
            copy_assets    compile_css    render_html   render_feed
                                              ^             ^
    load_pages ──> render_content ────────────┴─────────────┘

Examples
--------
>>> from pathlib import Path
>>> from bakery.orchestrator import build_site
>>> result = build_site(Path("site"), include_drafts=False)  # doctest: +SKIP
>>> result.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as typ
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from .errors import AggregatedBuildError, BakeryError, StageError
from .site import Site

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class Stage:
    """A named unit of build work and the stages it waits for."""

    name: str
    run: cabc.Callable[[], object]
    requires: frozenset[str] = frozenset()


class StageStatus(enum.Enum):
    """Final state of a stage after a run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dc.dataclass(frozen=True, slots=True)
class StageOutcome:
    """Result of one stage, in the order stages finished."""

    name: str
    status: StageStatus
    value: object = None
    error: StageError | None = None


@dc.dataclass(slots=True)
class BuildResult:
    """Outcomes of a stage-graph run."""

    outcomes: list[StageOutcome] = dc.field(default_factory=list)

    @property
    def errors(self) -> list[StageError]:
        """Return every stage error in completion order."""
        return [outcome.error for outcome in self.outcomes if outcome.error]

    @property
    def first_error(self) -> StageError | None:
        """Return the first stage error to complete, if any."""
        errors = self.errors
        return errors[0] if errors else None

    @property
    def ok(self) -> bool:
        """Return ``True`` when no stage failed."""
        return not self.errors

    @property
    def skipped(self) -> list[str]:
        """Return the names of stages skipped after a failed prerequisite."""
        return [
            outcome.name
            for outcome in self.outcomes
            if outcome.status is StageStatus.SKIPPED
        ]

    def value(self, name: str) -> object:
        """Return the value produced by stage ``name``."""
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome.value
        msg = f"No stage named {name!r}."
        raise KeyError(msg)

    def raise_for_errors(self) -> None:
        """Raise :class:`AggregatedBuildError` if any stage failed."""
        if self.errors:
            raise AggregatedBuildError(self.errors)


def _validate(stages: cabc.Sequence[Stage]) -> dict[str, Stage]:
    """Index stages by name, rejecting duplicates, unknown names, and cycles."""
    by_name: dict[str, Stage] = {}
    for stage in stages:
        if stage.name in by_name:
            msg = f"Duplicate stage {stage.name!r}."
            raise ValueError(msg)
        by_name[stage.name] = stage
    for stage in stages:
        unknown = sorted(stage.requires - by_name.keys())
        if unknown:
            msg = f"Stage {stage.name!r} requires unknown stage {unknown[0]!r}."
            raise ValueError(msg)

    visiting: set[str] = set()
    done: set[str] = set()

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            msg = f"Stage dependency cycle through {name!r}."
            raise ValueError(msg)
        visiting.add(name)
        for dep in sorted(by_name[name].requires):
            visit(dep)
        visiting.discard(name)
        done.add(name)

    for name in by_name:
        visit(name)
    return by_name


def _run_one(stage: Stage) -> object:
    logger.debug("stage %s started", stage.name)
    value = stage.run()
    logger.debug("stage %s finished", stage.name)
    return value


def run_stages(stages: cabc.Sequence[Stage]) -> BuildResult:
    """Run ``stages`` respecting their dependencies.

    Parameters
    ----------
    stages : Sequence[Stage]
        The stage graph. Names must be unique and every requirement must name
        another stage in the sequence. Each stage gets its own worker thread.

    Returns
    -------
    BuildResult
        One outcome per stage in completion order. Failures are recorded, not
        raised; call :meth:`BuildResult.raise_for_errors` to raise them.

    Raises
    ------
    ValueError
        If the graph has duplicate names, unknown requirements, or a cycle.
    """
    by_name = _validate(stages)
    result = BuildResult()
    status: dict[str, StageStatus] = {}
    waiting = dict(by_name)
    running: dict[Future[object], Stage] = {}

    def record(outcome: StageOutcome) -> None:
        status[outcome.name] = outcome.status
        result.outcomes.append(outcome)

    with ThreadPoolExecutor(
        max_workers=max(len(stages), 1),
        thread_name_prefix="bakery-stage",
    ) as pool:
        while waiting or running:
            for name, stage in list(waiting.items()):
                states = [status.get(dep) for dep in stage.requires]
                if any(
                    state in (StageStatus.FAILED, StageStatus.SKIPPED)
                    for state in states
                ):
                    del waiting[name]
                    logger.debug("stage %s skipped", name)
                    record(StageOutcome(name, StageStatus.SKIPPED))
                elif all(state is StageStatus.SUCCEEDED for state in states):
                    del waiting[name]
                    running[pool.submit(_run_one, stage)] = stage
            if not running:
                # Skips may have unblocked further skips.
                continue
            finished, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in finished:
                stage = running.pop(future)
                exc = future.exception()
                if exc is None:
                    record(
                        StageOutcome(
                            stage.name, StageStatus.SUCCEEDED, value=future.result()
                        )
                    )
                    continue
                error = StageError(stage.name, exc)
                error.__cause__ = exc
                logger.error("stage %s failed: %s", stage.name, exc)
                record(StageOutcome(stage.name, StageStatus.FAILED, error=error))
    return result


def site_stages(site: Site) -> list[Stage]:
    """Return the build graph for ``site``."""
    return [
        Stage("clean", site.clean),
        Stage("load_pages", site.load_pages),
        Stage("render_content", site.render_content, frozenset({"load_pages"})),
        Stage("copy_assets", site.copy_assets, frozenset({"clean"})),
        Stage("compile_css", site.compile_css, frozenset({"clean"})),
        Stage(
            "render_html", site.render_html, frozenset({"clean", "render_content"})
        ),
        Stage(
            "render_feed", site.render_feed, frozenset({"clean", "render_content"})
        ),
    ]


def build_site(
    site_dir: Path,
    include_drafts: bool = False,  # noqa: FBT001, FBT002 - mirrors the CLI flag
    *,
    max_workers: int | None = None,
    **site_options: typ.Any,
) -> BuildResult:
    """Build the site in ``site_dir`` into ``site_dir/target``.

    Parameters
    ----------
    site_dir : Path
        Root of the site.
    include_drafts : bool, optional
        Render pages marked ``draft``.
    max_workers : int, optional
        Size of each per-page worker pool.
    **site_options
        Extra keyword arguments for :class:`~bakery.site.Site`, such as a
        custom ``renderer`` or ``css_compiler``.

    Returns
    -------
    BuildResult
        Outcomes of every stage when the build succeeds.

    Raises
    ------
    AggregatedBuildError
        If the configuration cannot be loaded or any stage fails.
    """
    try:
        site = Site.load(
            site_dir,
            include_drafts=include_drafts,
            max_workers=max_workers,
            **site_options,
        )
    except BakeryError as exc:
        error = StageError("load_config", exc)
        raise AggregatedBuildError([error]) from exc
    result = run_stages(site_stages(site))
    result.raise_for_errors()
    return result


__all__ = [
    "BuildResult",
    "Stage",
    "StageOutcome",
    "StageStatus",
    "build_site",
    "run_stages",
    "site_stages",
]
