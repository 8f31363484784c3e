"""WSGI middleware for security headers, trailing slashes and static files, with origin-matching helpers."""