import json
import logging
import threading
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import requests
from rich.style import Style

if TYPE_CHECKING:
    from rest_recorder.recorder import Recorder

logger = logging.getLogger(__name__)


class Response:
    """
    Response represents the response to a recorded request and has methods
    to make testing easier. Failed expectations are reported with
    reporter.error so that later expectations still run.
    """

    response: requests.Response
    recorder: "Recorder"
    body: bytes

    def __init__(self, response: requests.Response, recorder: "Recorder"):
        self.response = response
        self.recorder = recorder
        self.body = b""
        self._printed = False
        self._print_lock = threading.Lock()

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self):
        return self.response.headers

    @property
    def request(self) -> requests.PreparedRequest:
        return self.response.request

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def read_body(self):
        """
        Read the full response body into self.body. JSON bodies are indented with tabs.
        """
        raw = self.response.content or b""
        if "application/json" in self.response.headers.get("Content-Type", ""):
            self.body = _indent_json(raw)
        else:
            self.body = raw

    def expect_ok(self):
        self.expect_code(200)

    def expect_code(self, code: int):
        if self.status_code != code:
            self.print_failure_once()
            self.recorder.reporter.error(f"Expected response code {code} but got: {self.status_code}")

    def expect_body_contains(self, value: str):
        if value not in self.text:
            self.print_failure_once()
            self.recorder.reporter.error(f"Expected response to contain `{value}` but it did not.")

    def print_failure(self):
        """
        Report the method and path of the request along with the entire response body
        """
        method = self.request.method
        path = urlsplit(self.request.url).path
        body = self.text
        if not body:
            self.recorder.reporter.error(f"{method} request to {path} failed. Response was empty.")
            return

        if self.recorder.colorize:
            body = _dim(body)
        self.recorder.reporter.error(f"{method} request to {path} failed. Response was: \n{body}")

    def print_failure_once(self):
        """
        Only print the response if it has not already been printed, so that multiple
        failed expectations on one response do not repeat the body.
        """
        with self._print_lock:
            if self._printed:
                return
            self._printed = True
        self.print_failure()


_WHITESPACE = " \t\r\n"


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant: {name}")


def _indent_json(raw: bytes) -> bytes:
    """
    Indent a JSON document with one tab per nesting level. Only whitespace between
    tokens changes: number literals, escapes and duplicate keys are kept as sent.
    """
    if not raw:
        return raw
    try:
        text = raw.decode("utf-8")
        # validate only, the parsed value is not used for the output
        json.loads(text, parse_float=str, parse_int=str, parse_constant=_reject_constant)
    except ValueError:
        logger.warning("⚠️ Response declared JSON content but could not be parsed - keeping raw body")
        return raw

    out = []
    depth = 0
    in_string = False
    escaped = False
    # set after { or [ until the next token shows whether the container is empty
    opened = False

    def newline(level: int):
        out.append("\n" + "\t" * level)

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in _WHITESPACE:
            continue
        if opened and ch not in "]}":
            opened = False
            depth += 1
            newline(depth)

        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            out.append(ch)
            opened = True
        elif ch in "]}":
            if opened:
                opened = False
            else:
                depth -= 1
                newline(depth)
            out.append(ch)
        elif ch == ",":
            out.append(ch)
            newline(depth)
        elif ch == ":":
            out.append(": ")
        else:
            out.append(ch)
    return "".join(out).encode("utf-8")


_DIM = Style(dim=True)


def _dim(text: str) -> str:
    return _DIM.render(text)
