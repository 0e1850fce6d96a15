"""Default remote storage configuration.

This module defines the CONFIGURATION dict read by
``kwindex.core.utils.config.load_storage_settings``. Point the
``KWINDEX_STORAGE_CONFIG`` environment variable at another module exposing a
CONFIGURATION dict to override it.

Environment overrides:
    AWS_ENDPOINT_URL          S3 endpoint, host[:port] or full URL
    AWS_REGION                Region (falls back to AWS_DEFAULT_REGION)
    AWS_ALLOW_HTTP            "true" to talk plain HTTP to the endpoint
    KWINDEX_VALIDATE_BUCKET   "true" to HEAD each bucket when its store is built

Credentials are not configured here; they come from the provider chain
(environment, ~/.aws/credentials, IAM identity) when a signed store is built.
"""

from __future__ import annotations

import os


def _resolve_secure() -> bool | None:
    """Return False when plain HTTP is allowed, None to infer from the endpoint."""
    allow_http = os.environ.get("AWS_ALLOW_HTTP")
    if allow_http is None:
        return None
    return allow_http.strip().lower() not in ("1", "true")


CONFIGURATION = {
    "endpoint": os.getenv("AWS_ENDPOINT_URL", "s3.amazonaws.com"),
    "region": os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION"),
    "secure": _resolve_secure(),
    "validate_bucket": os.getenv("KWINDEX_VALIDATE_BUCKET", "false"),
}
