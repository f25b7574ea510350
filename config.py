"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
"""

import os

# ---------------------------------------------------------------------------
# gRPC server
# ---------------------------------------------------------------------------

GRPC_SERVER_HOST: str = os.getenv("GRPC_SERVER_HOST", "0.0.0.0")
GRPC_SERVER_PORT: int = int(os.getenv("GRPC_SERVER_PORT", "50051"))

# Thread pool size for the gRPC server.  Each concurrent RPC occupies one
# thread, so this caps concurrent request handling.
GRPC_MAX_WORKERS: int = int(os.getenv("GRPC_MAX_WORKERS", "10"))

# ---------------------------------------------------------------------------
# Data source
# ---------------------------------------------------------------------------

# SQLAlchemy URL of the course database.  Empty means "serve the built-in
# sample catalogue from memory".
DATABASE_URL: str = os.getenv("DATABASE_URL", "")
DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "false").lower() in {"1", "true"}

# ---------------------------------------------------------------------------
# Ranking engine
# ---------------------------------------------------------------------------

# "bulk" (one aggregate query per request) or "row" (one query per course).
SCORING_STRATEGY: str = os.getenv("SCORING_STRATEGY", "bulk")

# Upper bound on threads the row-wise strategy uses within one request.
SCORING_MAX_WORKERS: int = int(os.getenv("SCORING_MAX_WORKERS", "8"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
