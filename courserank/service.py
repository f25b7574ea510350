"""gRPC servicer: the entry point for all inbound ranking calls.

Requests and responses are ``google.protobuf.Struct`` messages, so clients
exchange JSON-shaped payloads without compiled stubs. The service is
registered through a generic handler by
:func:`add_recommender_servicer_to_server`.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

import grpc
from google.protobuf import json_format, struct_pb2

from courserank.engine import RecommendationEngine
from courserank.errors import (
    CategoryNotFound,
    CourseNotFound,
    DataSourceUnavailable,
    UserNotFound,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "courserank.RecommenderService"

_RANKING_WARN_THRESHOLD_MS = 250


class RecommenderServicer:
    """Implements ``courserank.RecommenderService``.

    Args:
        engine: The :class:`~courserank.engine.RecommendationEngine`.
    """

    def __init__(self, engine: RecommendationEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Personalized ranking
    # ------------------------------------------------------------------

    def GetRecommendations(self, request: struct_pb2.Struct, context: Any) -> struct_pb2.Struct:
        """Return the top-N personalized courses for ``userId``.

        Request fields: ``userId`` (required), ``limit``, ``strategy``
        (``"row"`` or ``"bulk"``).
        """
        payload = _to_dict(request)
        user_id = _parse_id(payload.get("userId"))
        if user_id is None:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, "userId is required")

        strategy = payload.get("strategy") or self._engine.default_strategy
        start_ms = time.monotonic() * 1000
        try:
            ranked = self._engine.rank(user_id, payload.get("limit"), strategy=strategy)
        except UserNotFound as exc:
            return _abort(context, grpc.StatusCode.NOT_FOUND, str(exc))
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except DataSourceUnavailable:
            logger.exception("Data source unavailable ranking for user=%r", user_id)
            return _abort(context, grpc.StatusCode.INTERNAL, "Failed to get recommendations.")
        except Exception:
            logger.exception("Unexpected error ranking for user=%r", user_id)
            return _abort(context, grpc.StatusCode.INTERNAL, "Failed to get recommendations.")
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > _RANKING_WARN_THRESHOLD_MS:
                logger.warning(
                    "GetRecommendations for user=%r took %.1fms", user_id, elapsed_ms
                )

        return _to_struct(
            {
                "recommendations": [s.to_dict() for s in ranked],
                "userId": user_id,
                "algorithm": strategy,
                "timestamp": _now_iso(),
            }
        )

    # ------------------------------------------------------------------
    # Secondary listings
    # ------------------------------------------------------------------

    def GetPopularCourses(self, request: struct_pb2.Struct, context: Any) -> struct_pb2.Struct:
        """Return courses ordered by popularity, then enrollment count."""
        payload = _to_dict(request)
        try:
            courses = self._engine.popular(payload.get("limit"))
        except Exception:
            logger.exception("Error listing popular courses")
            return _abort(context, grpc.StatusCode.INTERNAL, "Failed to get popular courses.")
        return _to_struct(
            {
                "courses": [c.to_dict() for c in courses],
                "type": "popular",
                "timestamp": _now_iso(),
            }
        )

    def GetCategoryRecommendations(
        self, request: struct_pb2.Struct, context: Any
    ) -> struct_pb2.Struct:
        """Return one category's courses, ordered by interest match if ``userId`` is given."""
        payload = _to_dict(request)
        category = payload.get("category")
        if not isinstance(category, str) or not category.strip():
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, "category is required")

        user_id = _parse_id(payload.get("userId"))
        try:
            result = self._engine.rank_by_category(category, user_id, payload.get("limit"))
        except CategoryNotFound as exc:
            return _abort(context, grpc.StatusCode.NOT_FOUND, str(exc))
        except Exception:
            logger.exception(
                "Error ranking category=%r for user=%r", category, user_id
            )
            return _abort(
                context, grpc.StatusCode.INTERNAL, "Failed to get category recommendations."
            )

        if result.personalized:
            courses = [m.to_dict() for m in result.courses]
        else:
            courses = [m.course.to_dict() for m in result.courses]
        return _to_struct(
            {
                "courses": courses,
                "category": result.category,
                "personalized": result.personalized,
                "timestamp": _now_iso(),
            }
        )

    # ------------------------------------------------------------------
    # Activity events
    # ------------------------------------------------------------------

    def TrackView(self, request: struct_pb2.Struct, context: Any) -> struct_pb2.Struct:
        """Record that ``userId`` viewed ``courseId``."""
        payload = _to_dict(request)
        user_id = _parse_id(payload.get("userId"))
        course_id = _parse_id(payload.get("courseId"))
        if user_id is None or course_id is None:
            return _abort(
                context, grpc.StatusCode.INVALID_ARGUMENT, "userId and courseId are required"
            )
        try:
            self._engine.track_view(user_id, course_id)
        except (UserNotFound, CourseNotFound) as exc:
            return _abort(context, grpc.StatusCode.NOT_FOUND, str(exc))
        except Exception:
            logger.exception(
                "Error recording view for user=%r course=%r", user_id, course_id
            )
            return _abort(context, grpc.StatusCode.INTERNAL, "Failed to track view.")
        return _to_struct({"message": "View tracked successfully", "timestamp": _now_iso()})

    def TrackScroll(self, request: struct_pb2.Struct, context: Any) -> struct_pb2.Struct:
        """Record ``duration`` seconds of scroll engagement by ``userId`` on ``courseId``."""
        payload = _to_dict(request)
        user_id = _parse_id(payload.get("userId"))
        course_id = _parse_id(payload.get("courseId"))
        if user_id is None or course_id is None:
            return _abort(
                context, grpc.StatusCode.INVALID_ARGUMENT, "userId and courseId are required"
            )
        try:
            self._engine.track_engagement(user_id, course_id, payload.get("duration"))
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except (UserNotFound, CourseNotFound) as exc:
            return _abort(context, grpc.StatusCode.NOT_FOUND, str(exc))
        except Exception:
            logger.exception(
                "Error recording scroll for user=%r course=%r", user_id, course_id
            )
            return _abort(context, grpc.StatusCode.INTERNAL, "Failed to track scroll activity.")
        return _to_struct(
            {"message": "Scroll activity tracked successfully", "timestamp": _now_iso()}
        )


def add_recommender_servicer_to_server(servicer: RecommenderServicer, server: grpc.Server) -> None:
    """Register *servicer*'s unary methods on *server* under :data:`SERVICE_NAME`."""
    method_names = (
        "GetRecommendations",
        "GetPopularCourses",
        "GetCategoryRecommendations",
        "TrackView",
        "TrackScroll",
    )
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=struct_pb2.Struct.FromString,
            response_serializer=struct_pb2.Struct.SerializeToString,
        )
        for name in method_names
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )


# ---------------------------------------------------------------------------
# Message helpers
# ---------------------------------------------------------------------------


def _to_dict(message: struct_pb2.Struct) -> dict:
    return json_format.MessageToDict(message)


def _to_struct(payload: dict) -> struct_pb2.Struct:
    return json_format.ParseDict(payload, struct_pb2.Struct())


def _abort(context: Any, code: grpc.StatusCode, details: str) -> struct_pb2.Struct:
    context.set_code(code)
    context.set_details(details)
    return struct_pb2.Struct()


def _parse_id(value: Any) -> int | None:
    """Return *value* as an int id; Struct carries every number as a double."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    return int(number)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
