"""Behaviour tests for page failures during a build.

The scenario in ``failed_pages.feature`` adds a Python page whose
``get_static_data`` raises to the shared ``sample_site`` fixture, then checks
that :class:`island_pages.builder.SiteBuilder` reports the failure in its
:class:`~island_pages.builder.BuildReport` while still writing every other
page.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from island_pages.builder import BuildReport, SiteBuilder
from island_pages.config import BuildConfig, load_build_config

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "failed_pages.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a sample site with a dynamic blog page")
def given_sample_site(sample_site: Path, scenario_state: dict[str, object]) -> None:
    """Store the sample site directory and its loaded configuration."""
    scenario_state["site"] = sample_site
    scenario_state["config"] = load_build_config(sample_site / "island.yaml")


@given(parsers.parse('a page whose data getter raises "{message}"'))
def given_broken_page(scenario_state: dict[str, object], message: str) -> None:
    """Add ``src/pages/broken.py`` whose getter raises ``RuntimeError``."""
    site: Path = scenario_state["site"]  # type: ignore[assignment]
    (site / "src" / "pages" / "broken.py").write_text(
        f"def get_static_data():\n    raise RuntimeError({message!r})\n",
        encoding="utf-8",
    )
    scenario_state["message"] = message


@when("I build the site")
def when_build(scenario_state: dict[str, object]) -> None:
    """Run a full build and keep the report for later steps."""
    config: BuildConfig = scenario_state["config"]  # type: ignore[assignment]
    scenario_state["report"] = SiteBuilder(config).run()


@then(parsers.parse('the build report names "{name}" as failed'))
def then_failure_reported(scenario_state: dict[str, object], name: str) -> None:
    """Verify the failing page and its error message are reported."""
    report: BuildReport = scenario_state["report"]  # type: ignore[assignment]
    assert not report.ok
    assert [failure.page.name for failure in report.failures] == [name]
    assert scenario_state["message"] in report.failures[0].message


@then("the about page is still written")
def then_about_written(scenario_state: dict[str, object]) -> None:
    """Verify unrelated pages are still written."""
    config: BuildConfig = scenario_state["config"]  # type: ignore[assignment]
    report: BuildReport = scenario_state["report"]  # type: ignore[assignment]
    assert config.out_dir / "about.html" in report.written
