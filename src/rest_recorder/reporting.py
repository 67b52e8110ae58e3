import logging
from typing import NoReturn, Protocol

import pytest

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """
    The test-reporting facility used by recorders and responses.

    fatal aborts the current test, error records a failure and lets the test continue
    """

    def fatal(self, message: str) -> NoReturn: ...

    def error(self, message: str) -> None: ...


class PytestReporter:
    """
    Reports through pytest: fatal failures raise via pytest.fail, errors are collected
    and raised together by raise_for_errors once the test body has finished
    """

    _errors: list[str]

    def __init__(self):
        self._errors = []

    @property
    def errors(self) -> list[str]:
        return list(self._errors)

    def fatal(self, message: str) -> NoReturn:
        logger.error("💥 %s", message)
        # include earlier errors so they are not lost when the test is aborted
        messages = self._errors + [message]
        self._errors = []
        pytest.fail("\n".join(messages), pytrace=False)

    def error(self, message: str) -> None:
        logger.warning("❌ %s", message)
        self._errors.append(message)

    def raise_for_errors(self):
        if not self._errors:
            return
        messages = self._errors
        self._errors = []
        pytest.fail("\n".join(messages), pytrace=False)
