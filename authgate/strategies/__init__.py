# authgate/strategies/__init__.py

"""
Authentication strategies pluggable into `authgate.authenticator.Authenticator`.

Every strategy implements the `BaseStrategy` interface from `base.py`:
a single async `authenticate(request)` that returns an `AuthResult`.

- `jwt_strategy.py`: bearer JWT verification plus user lookup.
"""

from authgate.strategies.base import AuthResult, BaseStrategy
from authgate.strategies.jwt_strategy import JwtStrategy

__all__ = ["AuthResult", "BaseStrategy", "JwtStrategy"]
