"""
Prometheus metrics
- GraphQL operations and guard rejections
- MongoDB operations
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Metric collector with its own registry"""

    def __init__(self):
        self.registry = CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self):
        # GraphQL
        self.graphql_operations = Counter(
            'graphql_operations_total',
            'Total GraphQL root field executions',
            ['parent_type', 'field', 'status'],
            registry=self.registry
        )

        self.graphql_operation_duration = Histogram(
            'graphql_operation_duration_seconds',
            'GraphQL root field execution time',
            ['parent_type', 'field'],
            registry=self.registry
        )

        self.guard_rejections = Counter(
            'guard_rejections_total',
            'Requests rejected by a guard',
            ['guard'],
            registry=self.registry
        )

        # MongoDB
        self.mongodb_queries = Counter(
            'mongodb_queries_total',
            'Total MongoDB queries',
            ['operation', 'collection', 'status'],
            registry=self.registry
        )

        self.mongodb_query_duration = Histogram(
            'mongodb_query_duration_seconds',
            'MongoDB query duration',
            ['operation', 'collection'],
            registry=self.registry
        )

        # Errors
        self.errors_total = Counter(
            'errors_total',
            'Total errors',
            ['service', 'error_type'],
            registry=self.registry
        )

    def record_graphql_operation(self, parent_type: str, field: str, status: str, duration: float):
        self.graphql_operations.labels(
            parent_type=parent_type,
            field=field,
            status=status
        ).inc()

        self.graphql_operation_duration.labels(
            parent_type=parent_type,
            field=field
        ).observe(duration)

    def record_guard_rejection(self, guard: str):
        self.guard_rejections.labels(guard=guard).inc()

    def record_mongodb_query(self, operation: str, collection: str, status: str, duration: float):
        self.mongodb_queries.labels(
            operation=operation,
            collection=collection,
            status=status
        ).inc()

        self.mongodb_query_duration.labels(
            operation=operation,
            collection=collection
        ).observe(duration)

    def record_error(self, service: str, error_type: str):
        self.errors_total.labels(
            service=service,
            error_type=error_type
        ).inc()

    def export(self) -> bytes:
        """Text exposition format for the /metrics route"""
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return metrics_collector
