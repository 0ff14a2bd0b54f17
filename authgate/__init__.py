# authgate/__init__.py

"""
authgate: JWT bearer authentication for FastAPI / Starlette applications.

Layout:
- `config`        settings and the frozen `AuthConfig`
- `tokens`        token policy: sign, verify, decode, extract
- `strategies`    pluggable authentication strategies (JWT)
- `authenticator` strategy registry, `authenticate` dependency, initialize/session middleware
- `wiring`        one-call setup on a FastAPI app
- `main`          the service application factory
"""
