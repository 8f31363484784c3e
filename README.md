# burrow

Building blocks for HTTP applications, with no dependencies outside the
standard library:

- `burrow.router`: a radix-tree router with static, `:param` and `*` (any)
  segments.
- `burrow.response`: a `Response` wrapper that sends the status once and
  runs hooks around writing.
- `burrow.middleware`: WSGI middleware for security headers
  (`secure`), trailing slashes (`slash`) and static files (`static`), plus
  origin-matching helpers (`util`).

## Installing

```
pip install .
```

## Routing

```python
from burrow.router import Router

router = Router()
router.add("GET", "/users/:id", lambda ctx: "user")
router.add("GET", "/files/*", lambda ctx: "file")

match = router.find("GET", "/users/42")
match.path          # "/users/:id"
match.param("id")   # "42"

router.find("GET", "/files/a/b.txt").param("*")   # "a/b.txt"
router.find("POST", "/users/42").handler          # method_not_allowed_handler
router.find("GET", "/nowhere").handler            # not_found_handler
```

`Router.add(method, path, handler)` registers a handler; a path without a
leading slash gets one, and an empty path becomes `/`. Handlers are kept for
CONNECT, DELETE, GET, HEAD, OPTIONS, PATCH, POST, PROPFIND, PUT, TRACE and
REPORT.

`Router.find(method, path)` returns a `RouteMatch` with the `handler`, the
registered route `path`, and the `param_names` and `param_values` of the
match. `RouteMatch.param(name)` returns a parameter's value, or an empty
string. Matching prefers static segments over parameters over `*`, and
backtracks up the tree when a branch leads nowhere. When the path matches
but no handler exists for the method, the handler is
`method_not_allowed_handler`; when nothing matches, it is
`not_found_handler`. Calling either raises `HTTPError` with code 405 or 404.

The router only finds handlers; calling them is up to the caller.

## Responses

`Response(writer)` wraps any object with a `headers` mapping and
`write_header(code)` and `write(data)` methods (`flush()` as well, if
`Response.flush` is used).

- `before(fn)` registers a function run just before the status is sent; it
  may still change `response.status`.
- `after(fn)` registers a function run after each `write`.
- `write_header(code)` sends the status; a second call only logs a warning.
- `write(data)` sends a 200 status first if none was sent, writes the data
  and adds to `size`.
- `reset(writer)` clears the hooks and readies the response for reuse.

## Middleware

Each middleware takes a WSGI application and an optional config and returns
a new WSGI application. Every config has a `skipper`: a function of the WSGI
environ that, when it returns true, passes the request straight through.

```python
from burrow.middleware.secure import SecureConfig, secure
from burrow.middleware.slash import TrailingSlashConfig, add_trailing_slash
from burrow.middleware.static import StaticConfig, static

app = static(app, StaticConfig(root="public", browse=True))
app = add_trailing_slash(app, TrailingSlashConfig(redirect_code=301))
app = secure(app, SecureConfig(hsts_max_age=3600))
```

### `secure`

Adds X-XSS-Protection (`1; mode=block`), X-Content-Type-Options
(`nosniff`) and X-Frame-Options (`SAMEORIGIN`) by default. With a non-zero
`hsts_max_age`, requests over HTTPS or with `X-Forwarded-Proto: https` also
get Strict-Transport-Security (`; includeSubdomains` unless
`hsts_exclude_subdomains`, `; preload` with `hsts_preload_enabled`).
`content_security_policy` sets Content-Security-Policy, or the report-only
header with `csp_report_only`; `referrer_policy` sets Referrer-Policy. An
empty string turns a header off. Headers the application sets itself win.

`security_headers(config, is_tls, forwarded_proto)` returns the headers as
a dict, for use outside WSGI.

### `add_trailing_slash` and `remove_trailing_slash`

Add a trailing slash to `PATH_INFO`, or remove one from any path longer than
`/`. Without `redirect_code` the request is rewritten (`PATH_INFO` and
`REQUEST_URI`) and passed on. With a redirect code (300–308; others raise
`ValueError`) the client is redirected, the query string kept, and the
location passed through `sanitize_uri`, which collapses leading slashes and
backslashes to a single `/` so the redirect cannot leave the site.

### `static`

Serves the file named by `PATH_INFO` from `root` (or from `filesystem`,
with `root` then a directory inside it). The path is unescaped and cleaned,
so it cannot climb out of the directory; a malformed escape gives 400.
Missing files fall through to the application. A directory serves its
`index` file (`index.html`), or an HTML listing with `browse`.
With `html5`, a 404 from the application is replaced by the index file.
With `ignore_base`, a last path segment that repeats the mount point in
`SCRIPT_NAME` is dropped. Files are sent with Content-Type, Content-Length
and Last-Modified, and `If-Modified-Since` is honoured with 304; range
requests are not supported.

`format_size(size)` formats a byte count as used in listings (`1.50KB`),
and `render_directory_listing(name, entries)` renders the listing page from
`(name, is_dir, size)` tuples.

### `util`

`match_scheme(domain, pattern)` compares the schemes of two origins, and
`match_subdomain(domain, pattern)` matches an origin against a wildcard
such as `http://*.example.com`.

## What it does not include

There is no application object, request context, server or command-line
program: the router, response wrapper and middleware are pieces to build an
application from, and the middleware runs under any WSGI server.

## Running the tests

```
pip install ".[test]"
pytest
```