"""
Development-only request instrumentation.
"""

import logging
from collections import Counter

from django.conf import settings
from django.db import connection

logger = logging.getLogger(__name__)


class QueryCountMiddleware:
    """
    Logs how many SQL queries each request issued while DEBUG is on.

    Summary and calendar endpoints load a whole ledger, so an N+1 pattern
    introduced in a serializer shows up here as a jump in the count.
    """

    # (minimum query count, log level, severity), checked top-down
    levels = (
        (50, logging.WARNING, "high"),
        (25, logging.INFO, "medium"),
        (10, logging.DEBUG, "low"),
    )
    slow_query_seconds = 0.1

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not settings.DEBUG:
            return self.get_response(request)

        start = len(connection.queries)
        response = self.get_response(request)
        queries = connection.queries[start:]

        if queries:
            self.report(request, queries)
        return response

    def report(self, request, queries):
        user = getattr(request, "user", None)
        context = {
            "request_path": request.path,
            "request_method": request.method,
            "user_id": user.id if user is not None and user.is_authenticated else None,
            "query_count": len(queries),
            "component": "QueryCountMiddleware",
        }

        for threshold, level, severity in self.levels:
            if len(queries) >= threshold:
                logger.log(
                    level,
                    "Request query count above %s",
                    threshold,
                    extra={**context, "severity": severity, "action": "query_count_monitoring"},
                )
                break

        tables = Counter(self._table_of(query["sql"]) for query in queries)
        tables.pop(None, None)
        slow = [
            {"time": query["time"], "sql_preview": query["sql"][:100]}
            for query in queries
            if float(query.get("time") or 0) > self.slow_query_seconds
        ]
        logger.debug(
            "Query monitoring details",
            extra={
                **context,
                "tables": dict(tables.most_common(5)),
                "slow_queries": slow[:3],
                "total_query_time": round(sum(float(q.get("time") or 0) for q in queries), 4),
                "action": "query_monitoring_details",
            },
        )

    @staticmethod
    def _table_of(sql):
        lowered = sql.lower()
        if " from " not in lowered:
            return None
        return lowered.split(" from ", 1)[1].split(" ", 1)[0].strip('"`')
