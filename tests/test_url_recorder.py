"""
Test a Recorder pointed at a base URL (served by pytest-httpserver)
"""

from pytest_httpserver import HTTPServer

from rest_recorder import Recorder


def _base_url(httpserver: HTTPServer) -> str:
    return httpserver.url_for("/").removesuffix("/")


def test_json_response_from_url(httpserver: HTTPServer, collecting_reporter, settings):
    httpserver.expect_request("/users", method="POST").respond_with_json({"email": "foo@example.com"})
    recorder = Recorder(_base_url(httpserver), collecting_reporter, settings=settings)

    response = recorder.post("/users", {"email": "foo@example.com"})

    response.expect_ok()
    response.expect_body_contains('"email": "foo@example.com"')
    assert collecting_reporter.errors == []
    httpserver.check_assertions()


def test_session_cookie_is_sent_back(httpserver: HTTPServer, collecting_reporter, settings):
    httpserver.expect_request("/login", method="POST", data="user=jane").respond_with_data(
        "welcome", headers={"Set-Cookie": "session=xyz789; Path=/"}
    )
    httpserver.expect_request("/profile", headers={"Cookie": "session=xyz789"}).respond_with_data("jane's profile")
    recorder = Recorder(_base_url(httpserver), collecting_reporter, settings=settings)

    recorder.post("/login", {"user": "jane"}).expect_ok()
    response = recorder.get("/profile")

    response.expect_ok()
    response.expect_body_contains("jane's profile")
    assert collecting_reporter.errors == []
    assert [(cookie.name, cookie.value) for cookie in recorder.get_cookies()] == [("session", "xyz789")]


def test_unexpected_status_is_reported(httpserver: HTTPServer, collecting_reporter, settings):
    httpserver.expect_request("/missing").respond_with_data("not here", status=404)
    recorder = Recorder(_base_url(httpserver), collecting_reporter, settings=settings)

    response = recorder.get("/missing")
    response.expect_ok()

    assert collecting_reporter.errors == [
        "GET request to /missing failed. Response was: \nnot here",
        "Expected response code 200 but got: 404",
    ]
