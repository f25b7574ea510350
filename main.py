"""Entry point: wires all components and starts the gRPC server."""

from __future__ import annotations

import logging
import signal
import sys
from concurrent import futures

import grpc

import config
from courserank.engine import RecommendationEngine
from courserank.sample_data import build_sample_source
from courserank.service import RecommenderServicer, add_recommender_servicer_to_server
from courserank.sources.base import CourseDataSource
from courserank.sources.sql import SqlDataSource
from courserank.strategies.bulk import BulkStrategy
from courserank.strategies.row_wise import RowWiseStrategy

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_source() -> CourseDataSource:
    """Return the configured data source.

    Uses :class:`SqlDataSource` when ``DATABASE_URL`` is set, otherwise the
    in-memory sample catalogue.
    """
    if config.DATABASE_URL:
        logger.info("Using SQL data source.")
        return SqlDataSource.from_url(config.DATABASE_URL, echo=config.DATABASE_ECHO)
    logger.info("DATABASE_URL not set; serving the in-memory sample catalogue.")
    return build_sample_source()


def build_server(source: CourseDataSource) -> grpc.Server:
    """Construct and configure the gRPC server with all dependencies wired.

    Args:
        source: The data source the engine reads from.

    Returns:
        A configured but not-yet-started :class:`grpc.Server`.
    """
    engine = RecommendationEngine(
        source=source,
        strategies=[
            BulkStrategy(),
            RowWiseStrategy(max_workers=config.SCORING_MAX_WORKERS),
        ],
        default_strategy=config.SCORING_STRATEGY,
    )
    servicer = RecommenderServicer(engine=engine)

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=config.GRPC_MAX_WORKERS)
    )
    add_recommender_servicer_to_server(servicer, server)
    server.add_insecure_port(
        f"{config.GRPC_SERVER_HOST}:{config.GRPC_SERVER_PORT}"
    )
    return server


def main() -> None:
    """Build the data source and engine, then serve until signalled."""
    source = build_source()
    server = build_server(source)

    def handle_shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down…", sig_name)
        server.stop(grace=5)
        if isinstance(source, SqlDataSource):
            source.dispose()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    server.start()
    logger.info(
        "Course recommender gRPC server listening on %s:%d (strategy=%s)",
        config.GRPC_SERVER_HOST,
        config.GRPC_SERVER_PORT,
        config.SCORING_STRATEGY,
    )
    server.wait_for_termination()


if __name__ == "__main__":
    main()
