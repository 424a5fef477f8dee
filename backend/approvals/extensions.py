"""Flask extensions shared by the approval backend."""

from flask import g, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

APPROVER_ROLE_HEADER = "X-Approver-Role"


def _rate_limit_key() -> str:
    """Bucket requests per API token, else per client address and approver role."""

    token = getattr(g, "api_token", None)
    if token is not None:
        return f"token:{token.id}"
    address = get_remote_address()
    role = (request.headers.get(APPROVER_ROLE_HEADER) or "").strip()
    return f"{address}:{role}" if role else address


db = SQLAlchemy()
cors = CORS()
limiter = Limiter(key_func=_rate_limit_key, default_limits=[])

__all__ = ["APPROVER_ROLE_HEADER", "cors", "db", "limiter"]
