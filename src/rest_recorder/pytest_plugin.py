"""
pytest plugin providing recorder fixtures.

Failures recorded with reporter.error are raised once the test function returns.
"""

from typing import Callable

import pytest

from rest_recorder.config import RecorderSettings
from rest_recorder.recorder import Recorder
from rest_recorder.reporting import PytestReporter

reporter_key = pytest.StashKey[PytestReporter]()


@pytest.fixture
def recorder_settings() -> RecorderSettings:
    return RecorderSettings()


@pytest.fixture
def reporter(request: pytest.FixtureRequest) -> PytestReporter:
    test_reporter = PytestReporter()
    request.node.stash[reporter_key] = test_reporter
    return test_reporter


@pytest.fixture
def make_recorder(reporter: PytestReporter, recorder_settings: RecorderSettings):
    """
    Factory for recorders bound to the test's reporter. Recorders are closed at teardown.
    """
    recorders: list[Recorder] = []

    def _make_recorder(destination: str | Callable, **kwargs) -> Recorder:
        kwargs.setdefault("settings", recorder_settings)
        recorder = Recorder(destination, reporter, **kwargs)
        recorders.append(recorder)
        return recorder

    yield _make_recorder

    for recorder in recorders:
        recorder.close()


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item: pytest.Item):
    result = yield
    test_reporter = item.stash.get(reporter_key, None)
    if test_reporter is not None:
        test_reporter.raise_for_errors()
    return result
