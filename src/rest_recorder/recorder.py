import json
import logging
import os
import time
from http.cookiejar import Cookie
from typing import BinaryIO, Callable, Mapping
from urllib.parse import urlencode, urlsplit

import requests
from requests.cookies import MockRequest
from urllib3 import encode_multipart_formdata

from rest_recorder.config import RecorderSettings
from rest_recorder.reporting import Reporter
from rest_recorder.response import Response
from rest_recorder.server import LocalTestServer

logger = logging.getLogger(__name__)

# a file attachment is either a (filename, stream) pair or an open file object
FileField = tuple[str, BinaryIO] | BinaryIO


class Recorder:
    """
    Recorder sends http requests to a destination and records the responses.

    The destination is either a base URL or an ASGI app. When given an app, the
    recorder serves it from an in-process server which is stopped by close().
    Errors while building or sending requests are reported with reporter.fatal.
    """

    reporter: Reporter
    settings: RecorderSettings
    session: requests.Session
    server: LocalTestServer | None
    base_url: str
    # colorize determines whether the response body is dimmed in failure output
    colorize: bool

    def __init__(
        self,
        destination: str | Callable,
        reporter: Reporter,
        settings: RecorderSettings | None = None,
        colorize: bool | None = None,
    ):
        self.reporter = reporter
        self.settings = settings or RecorderSettings()
        self.colorize = self.settings.colorize if colorize is None else colorize
        self.server = None
        self.session = self._new_session()

        if isinstance(destination, str):
            self.base_url = destination
            return

        self.server = LocalTestServer(
            destination,
            host=self.settings.server_host,
            log_level=self.settings.server_log_level,
        )
        try:
            self.server.start(timeout=self.settings.server_startup_timeout)
        except (RuntimeError, OSError) as e:
            self.session.close()
            self.reporter.fatal(f"Could not start in-process server: {e}")
        self.base_url = self.server.url

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        """Close the session and stop the in-process server (if any)"""
        self.session.close()
        if self.server is not None:
            self.server.stop()

    def _new_session(self) -> requests.Session:
        # the session's cookie jar persists cookies across requests from this recorder
        try:
            return requests.Session()
        except OSError as e:
            self.reporter.fatal(f"Could not create http session: {e}")

    def _build_request(
        self, method: str, path: str, data: bytes | None = None, headers: dict[str, str] | None = None
    ) -> requests.Request:
        full_url = self.base_url + path
        request = requests.Request(method, full_url, data=data, headers=headers or {})
        try:
            # prepared again (with session cookies) when sent, this only validates the URL
            request.prepare()
        except requests.RequestException as e:
            self.reporter.fatal(f"Invalid request {method} {full_url}: {e}")
        return request

    def new_request(self, method: str, path: str) -> requests.Request:
        """
        Create a request with no body. path is appended to base_url to create the full URL.
        Headers can be added to the returned request before it is sent with do().
        """
        return self._build_request(method, path)

    def new_request_with_data(self, method: str, path: str, data: Mapping[str, str]) -> requests.Request:
        """
        Create a request with the given form data encoded as application/x-www-form-urlencoded
        """
        body = urlencode(list(data.items())).encode("ascii")
        return self._build_request(
            method, path, data=body, headers={"Content-Type": "application/x-www-form-urlencoded"}
        )

    def new_multipart_request(
        self,
        method: str,
        path: str,
        fields: Mapping[str, str],
        files: Mapping[str, FileField],
    ) -> requests.Request:
        """
        Create a request with form fields and files encoded as multipart/form-data.

        Args:
            fields: field name to string value
            files: field name to a (filename, stream) pair or an open file object.
                For a file object the base name of the file is used as the filename.
        """
        parts = list(fields.items())
        for fieldname, file in files.items():
            if isinstance(file, tuple):
                filename, stream = file
            else:
                stream = file
                name = getattr(file, "name", None)
                filename = os.path.basename(name) if isinstance(name, str) else fieldname
            try:
                content = stream.read()
            except (OSError, ValueError) as e:
                self.reporter.fatal(f"Could not read file {filename!r} for field {fieldname!r}: {e}")
            parts.append((fieldname, (filename, content, "application/octet-stream")))

        try:
            body, content_type = encode_multipart_formdata(parts)
        except (TypeError, ValueError) as e:
            self.reporter.fatal(f"Could not encode multipart body: {e}")
        return self._build_request(method, path, data=body, headers={"Content-Type": content_type})

    def new_json_request(self, method: str, path: str, data: object) -> requests.Request:
        """
        Create a request with data encoded as JSON. data must not contain cycles or
        values that cannot be represented in JSON.
        """
        try:
            body = json.dumps(data, separators=(",", ":"), allow_nan=False) + "\n"
        except (TypeError, ValueError) as e:
            self.reporter.fatal(f"Could not encode JSON request body: {e}")
        return self._build_request(
            method, path, data=body.encode("utf-8"), headers={"Content-Type": "application/json"}
        )

    def do(self, request: requests.Request | requests.PreparedRequest) -> Response:
        """
        Send request and record the result. base_url is not prepended as the
        request already has a full URL.
        """
        if isinstance(request, requests.PreparedRequest):
            prepared = request
            prepared.prepare_cookies(self.session.cookies)
        else:
            try:
                prepared = self.session.prepare_request(request)
            except requests.RequestException as e:
                self.reporter.fatal(f"Invalid request {request.method} {request.url}: {e}")

        send_kwargs = self.session.merge_environment_settings(prepared.url, {}, None, None, None)
        logger.debug("➡️ %s %s", prepared.method, prepared.url)
        try:
            http_response = self.session.send(
                prepared, timeout=self.settings.request_timeout, allow_redirects=True, **send_kwargs
            )
            response = Response(http_response, self)
            response.read_body()
        except requests.RequestException as e:
            self.reporter.fatal(f"{prepared.method} request to {prepared.url} failed: {e}")

        logger.debug("⬅️ %s %s (%d bytes)", response.status_code, prepared.url, len(response.body))
        return response

    def get(self, path: str) -> Response:
        return self.do(self.new_request("GET", path))

    def post(self, path: str, data: Mapping[str, str]) -> Response:
        return self.do(self.new_request_with_data("POST", path, data))

    def put(self, path: str, data: Mapping[str, str]) -> Response:
        return self.do(self.new_request_with_data("PUT", path, data))

    def delete(self, path: str) -> Response:
        return self.do(self.new_request("DELETE", path))

    def get_cookies(self) -> list[Cookie]:
        """
        Return the cookies stored by this recorder that apply to base_url
        """
        try:
            parts = urlsplit(self.base_url)
            if not parts.scheme or not parts.netloc:
                raise ValueError("URL must include a scheme and host")
            base_request = requests.Request("GET", self.base_url).prepare()
        except (ValueError, requests.RequestException) as e:
            self.reporter.fatal(f"Could not parse base URL {self.base_url!r}: {e}")

        jar = self.session.cookies
        mock_request = MockRequest(base_request)
        policy = jar.get_policy()
        # the policy checks expiry against its own clock, which CookieJar.add_cookie_header
        # sets in the same way before applying the policy
        policy._now = jar._now = int(time.time())  # pylint: disable=protected-access
        return [
            cookie
            for cookie in jar
            if policy.domain_return_ok(cookie.domain, mock_request)
            and policy.path_return_ok(cookie.path, mock_request)
            and policy.return_ok(cookie, mock_request)
        ]
