"""Behaviour tests for the watch-mode change filter.

Backed by ``features/watch_filter.feature``. Each example feeds one file
modification event to a :class:`bakery.watch.SiteChangeHandler` and checks
whether it asked its scheduler for a rebuild.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when
from watchdog.events import FileModifiedEvent

from bakery.watch import SiteChangeHandler

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "watch_filter.feature"
scenarios(FEATURE_FILE)


class RequestLog:
    """Scheduler stand-in recording rebuild requests."""

    def __init__(self) -> None:
        self.requests = 0

    def request(self, *, immediate: bool = False) -> None:
        self.requests += 1


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a site watched for changes")
def given_watched_site(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    log = RequestLog()
    scenario_state["site_dir"] = tmp_path
    scenario_state["log"] = log
    scenario_state["handler"] = SiteChangeHandler(log, tmp_path / "target")  # type: ignore[arg-type]


@when(parsers.parse('the file "{path}" changes'))
def when_file_changes(path: str, scenario_state: dict[str, object]) -> None:
    site_dir: Path = scenario_state["site_dir"]  # type: ignore[assignment]
    handler: SiteChangeHandler = scenario_state["handler"]  # type: ignore[assignment]
    handler.dispatch(FileModifiedEvent(str(site_dir / path)))


@then(parsers.parse("a rebuild is {decision}"))
def then_rebuild_decision(decision: str, scenario_state: dict[str, object]) -> None:
    log: RequestLog = scenario_state["log"]  # type: ignore[assignment]
    expected = 1 if decision == "requested" else 0
    assert log.requests == expected
