from wsgiref.util import setup_testing_defaults

from burrow.middleware.secure import SecureConfig, secure, security_headers


def _app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"test"]


def _call(app, **environ_extra):
    environ = {}
    setup_testing_defaults(environ)
    environ.update(environ_extra)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


def test_default_headers():
    status, headers, body = _call(secure(_app))
    assert status == "200 OK"
    assert body == b"test"
    assert headers["X-XSS-Protection"] == "1; mode=block"
    assert headers["X-Content-Type-Options"] == "nosniff"
    assert headers["X-Frame-Options"] == "SAMEORIGIN"
    assert headers.get("Strict-Transport-Security", "") == ""
    assert headers.get("Content-Security-Policy", "") == ""
    assert headers.get("Referrer-Policy", "") == ""


def test_custom_config_with_forwarded_https():
    config = SecureConfig(
        xss_protection="",
        content_type_nosniff="",
        x_frame_options="",
        hsts_max_age=3600,
        content_security_policy="default-src 'self'",
        referrer_policy="origin",
    )
    _, headers, _ = _call(secure(_app, config), HTTP_X_FORWARDED_PROTO="https")
    assert headers.get("X-XSS-Protection", "") == ""
    assert headers.get("X-Content-Type-Options", "") == ""
    assert headers.get("X-Frame-Options", "") == ""
    assert headers["Strict-Transport-Security"] == "max-age=3600; includeSubdomains"
    assert headers["Content-Security-Policy"] == "default-src 'self'"
    assert headers.get("Content-Security-Policy-Report-Only", "") == ""
    assert headers["Referrer-Policy"] == "origin"


def test_custom_config_csp_report_only():
    config = SecureConfig(
        xss_protection="",
        content_type_nosniff="",
        x_frame_options="",
        hsts_max_age=3600,
        content_security_policy="default-src 'self'",
        csp_report_only=True,
        referrer_policy="origin",
    )
    _, headers, _ = _call(secure(_app, config), HTTP_X_FORWARDED_PROTO="https")
    assert headers["Strict-Transport-Security"] == "max-age=3600; includeSubdomains"
    assert headers["Content-Security-Policy-Report-Only"] == "default-src 'self'"
    assert headers.get("Content-Security-Policy", "") == ""
    assert headers["Referrer-Policy"] == "origin"


def test_preload_enabled():
    config = SecureConfig(hsts_max_age=3600, hsts_preload_enabled=True)
    headers = security_headers(config, forwarded_proto="https")
    assert headers["Strict-Transport-Security"] == "max-age=3600; includeSubdomains; preload"


def test_preload_enabled_subdomains_excluded():
    config = SecureConfig(
        hsts_max_age=3600, hsts_preload_enabled=True, hsts_exclude_subdomains=True
    )
    headers = security_headers(config, forwarded_proto="https")
    assert headers["Strict-Transport-Security"] == "max-age=3600; preload"


def test_hsts_from_tls_scheme():
    config = SecureConfig(hsts_max_age=60)
    _, headers, _ = _call(secure(_app, config), **{"wsgi.url_scheme": "https"})
    assert headers["Strict-Transport-Security"] == "max-age=60; includeSubdomains"


def test_no_hsts_without_https():
    config = SecureConfig(hsts_max_age=3600)
    assert "Strict-Transport-Security" not in security_headers(config)


def test_security_headers_all_disabled():
    config = SecureConfig(xss_protection="", content_type_nosniff="", x_frame_options="")
    assert security_headers(config, is_tls=True) == {}


def test_skipper_leaves_headers_untouched():
    config = SecureConfig(skipper=lambda environ: True)
    _, headers, _ = _call(secure(_app, config))
    assert headers == {"Content-Type": "text/plain"}


def test_application_header_takes_precedence():
    def app(environ, start_response):
        start_response("200 OK", [("X-Frame-Options", "DENY")])
        return [b""]

    _, headers, _ = _call(secure(app))
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["X-Content-Type-Options"] == "nosniff"