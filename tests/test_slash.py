import pytest

from burrow.middleware.slash import (
    TrailingSlashConfig,
    add_trailing_slash,
    remove_trailing_slash,
    sanitize_uri,
)


def ok_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b""]


def call(app, path, query="", method="GET"):
    environ = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "SCRIPT_NAME": "",
        "wsgi.url_scheme": "http",
    }
    state = {}

    def start_response(status, headers, exc_info=None):
        state["status"] = int(status.split()[0])
        state["headers"] = headers

    b"".join(app(environ, start_response))
    return state["status"], dict(state["headers"]), environ


REDIRECT = TrailingSlashConfig(redirect_code=301)


@pytest.mark.parametrize(
    "path, query, method, expect_location, expect_status",
    [
        ("/add-slash", "", "GET", "/add-slash/", 301),
        ("/add-slash", "key=value", "GET", "/add-slash/?key=value", 301),
        ("/", "", "CONNECT", None, 200),
        ("/\\example.com", "", "GET", "/example.com/", 301),
        (r"/\\\////\\\\example.com", "", "GET", "/example.com/", 301),
        ("//example.com", "", "GET", "/example.com/", 301),
        ("/\\\\", "", "GET", "/", 301),
    ],
)
def test_add_trailing_slash_with_redirect(path, query, method, expect_location, expect_status):
    app = add_trailing_slash(ok_app, REDIRECT)
    status, headers, environ = call(app, path, query, method)
    assert environ["PATH_INFO"] == path
    assert headers.get("Location") == expect_location
    assert status == expect_status


@pytest.mark.parametrize(
    "path, query, method, expect_path",
    [
        ("/add-slash", "", "GET", "/add-slash/"),
        ("/add-slash", "key=value", "GET", "/add-slash/"),
        ("/", "", "CONNECT", "/"),
    ],
)
def test_add_trailing_slash_forwards(path, query, method, expect_path):
    status, headers, environ = call(add_trailing_slash(ok_app), path, query, method)
    assert environ["PATH_INFO"] == expect_path
    assert "Location" not in headers
    assert status == 200


def test_add_trailing_slash_sets_request_uri():
    _, _, environ = call(add_trailing_slash(ok_app), "/add-slash", "key=value")
    assert environ["REQUEST_URI"] == "/add-slash/?key=value"


@pytest.mark.parametrize(
    "path, query, method, expect_location, expect_status",
    [
        ("/remove-slash/", "", "GET", "/remove-slash", 301),
        ("/remove-slash/", "key=value", "GET", "/remove-slash?key=value", 301),
        ("/", "", "CONNECT", None, 200),
        ("", "", "GET", None, 200),
        ("/\\example.com/", "", "GET", "/example.com", 301),
        (r"/\\\////\\\\example.com/", "", "GET", "/example.com", 301),
        ("//example.com/", "", "GET", "/example.com", 301),
        ("/\\\\/", "", "GET", "/", 301),
    ],
)
def test_remove_trailing_slash_with_redirect(
    path, query, method, expect_location, expect_status
):
    app = remove_trailing_slash(ok_app, REDIRECT)
    status, headers, environ = call(app, path, query, method)
    assert environ["PATH_INFO"] == path
    assert headers.get("Location") == expect_location
    assert status == expect_status


@pytest.mark.parametrize(
    "path, query, method, expect_path",
    [
        ("/remove-slash/", "", "GET", "/remove-slash"),
        ("/remove-slash/", "key=value", "GET", "/remove-slash"),
        ("/", "", "CONNECT", "/"),
        ("", "", "GET", ""),
    ],
)
def test_remove_trailing_slash_forwards(path, query, method, expect_path):
    status, headers, environ = call(remove_trailing_slash(ok_app), path, query, method)
    assert environ["PATH_INFO"] == expect_path
    assert "Location" not in headers
    assert status == 200


def test_skipper_leaves_path_alone():
    config = TrailingSlashConfig(skipper=lambda environ: True, redirect_code=301)
    status, headers, environ = call(add_trailing_slash(ok_app, config), "/add-slash")
    assert (status, environ["PATH_INFO"]) == (200, "/add-slash")
    assert "Location" not in headers


def test_invalid_redirect_code_is_rejected():
    with pytest.raises(ValueError):
        add_trailing_slash(ok_app, TrailingSlashConfig(redirect_code=200))


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("//x", "/x"),
        ("\\/\\x", "/x"),
        ("/", "/"),
        ("/a/b", "/a/b"),
        ("a", "a"),
    ],
)
def test_sanitize_uri(uri, expected):
    assert sanitize_uri(uri) == expected