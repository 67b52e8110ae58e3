import pytest

from rest_recorder import Recorder, RecorderSettings

from tests.echo_app import app


class FatalReport(Exception):
    pass


class CollectingReporter:
    """
    Reporter that keeps every message so tests can inspect them.
    fatal raises FatalReport to stop the operation under test.
    """

    def __init__(self):
        self.errors = []
        self.fatals = []

    def fatal(self, message: str):
        self.fatals.append(message)
        raise FatalReport(message)

    def error(self, message: str):
        self.errors.append(message)


@pytest.fixture
def collecting_reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def settings() -> RecorderSettings:
    return RecorderSettings(RECORDER_COLORIZE=False)


@pytest.fixture
def app_recorder(collecting_reporter, settings):
    with Recorder(app, collecting_reporter, settings=settings) as recorder:
        yield recorder
