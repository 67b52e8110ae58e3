# imports here allow aggregating the public types under rest_recorder
# pylint: disable=useless-import-alias
from .config import RecorderSettings as RecorderSettings
from .recorder import Recorder as Recorder
from .reporting import PytestReporter as PytestReporter, Reporter as Reporter
from .response import Response as Response
from .server import LocalTestServer as LocalTestServer
