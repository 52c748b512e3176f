"""
Health Check Service

Provides health monitoring for the lookup cache, the configured upstream
services and basic process metrics.
"""

import os
import time
import psutil
from datetime import datetime
from typing import Dict, Any, Optional
from opentelemetry import trace

from services.redis import RedisService

tracer = trace.get_tracer(__name__)

SERVICE_NAME = "alaga-help-api"
SERVICE_VERSION = "1.0.0"


class HealthCheckService:
    """Service for system health monitoring."""

    def __init__(self, redis_service: Optional[RedisService], config: Dict[str, Any]):
        self.redis_service = redis_service
        self.config = config
        self.service_version = SERVICE_VERSION

    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including dependencies and metrics."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()

            redis_health = self._check_redis_health()
            upstreams = self._check_upstream_configuration()

            system_metrics = self._get_system_metrics()

            overall_status = self._determine_overall_status(
                [redis_health["status"]] + [upstream["status"] for upstream in upstreams.values()]
            )

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": SERVICE_NAME,
                "version": self.service_version,
                "environment": self.config.get('ENVIRONMENT', 'development'),
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "redis": redis_health,
                    **upstreams
                },
                "system_metrics": system_metrics
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.redis_status": redis_health["status"]
            })

            return health_data

    def _check_redis_health(self) -> Dict[str, Any]:
        """Check the lookup cache; a disabled cache is not a failure."""
        with tracer.start_as_current_span("health.redis_check") as span:
            if self.redis_service is None:
                return {"status": "disabled", "last_check": datetime.utcnow().isoformat() + "Z"}

            start_time = time.time()
            health_info = self.redis_service.health_check()
            health_info["last_check"] = datetime.utcnow().isoformat() + "Z"
            if health_info["status"] == "healthy":
                health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)

            span.set_attribute("redis.status", health_info["status"])
            return health_info

    def _check_upstream_configuration(self) -> Dict[str, Dict[str, Any]]:
        """Upstreams are reported as configured without calling them."""
        upstreams = {
            "viacep": self.config.get('VIACEP_BASE_URL'),
            "nominatim": self.config.get('NOMINATIM_BASE_URL'),
            "notification_api": self.config.get('NOTIFICATION_API_URL')
        }
        return {
            name: {"status": "healthy" if url else "unhealthy", "configured": bool(url)}
            for name, url in upstreams.items()
        }

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic system performance metrics."""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)

            memory = psutil.virtual_memory()
            memory_usage_mb = round(memory.used / 1024 / 1024, 2)
            memory_total_mb = round(memory.total / 1024 / 1024, 2)

            process = psutil.Process(os.getpid())
            process_rss_mb = round(process.memory_info().rss / 1024 / 1024, 2)

            return {
                "cpu_percent": cpu_percent,
                "memory": {
                    "used_mb": memory_usage_mb,
                    "total_mb": memory_total_mb,
                    "percent": memory.percent
                },
                "process": {
                    "rss_mb": process_rss_mb,
                    "threads": process.num_threads()
                },
                "load_average": list(os.getloadavg()) if hasattr(os, 'getloadavg') else None
            }
        except (psutil.Error, OSError) as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }

    def get_feature_flags(self) -> Dict[str, bool]:
        """Get current feature flag status."""
        return {
            "docs_enabled": bool(self.config.get('DOCS_ENABLED')),
            "otel_enabled": bool(self.config.get('OTEL_ENABLED')),
            "cache_enabled": bool(self.redis_service and self.redis_service.is_available())
        }

    def get_configuration_status(self) -> Dict[str, Any]:
        """Get configuration validation status."""
        config_status = {
            "viacep_configured": bool(self.config.get('VIACEP_BASE_URL')),
            "nominatim_configured": bool(self.config.get('NOMINATIM_BASE_URL')),
            "notification_api_configured": bool(self.config.get('NOTIFICATION_API_URL')),
            "redis_configured": bool(self.config.get('REDIS_URL')),
            "debounce_delay_ms": self.config.get('DEBOUNCE_DELAY_MS'),
            "base_url": self.config.get('BASE_URL', 'not_set'),
            "environment": self.config.get('ENVIRONMENT', 'development')
        }

        critical_configs = ['viacep_configured', 'nominatim_configured', 'notification_api_configured']
        config_status["all_critical_configured"] = all(
            config_status[config] for config in critical_configs
        )

        return config_status

    def get_application_uptime(self) -> Dict[str, Any]:
        """Get application uptime information."""
        try:
            process = psutil.Process(os.getpid())
            create_time = process.create_time()
            uptime_seconds = time.time() - create_time

            return {
                "uptime_seconds": round(uptime_seconds, 2),
                "started_at": datetime.utcfromtimestamp(create_time).isoformat() + "Z",
                "process_id": os.getpid()
            }
        except (psutil.Error, OSError) as e:
            return {
                "error": f"Failed to get uptime: {str(e)}"
            }

    def _determine_overall_status(self, dependency_statuses: list) -> str:
        """Determine overall system status based on dependency health."""
        statuses = [status for status in dependency_statuses if status != "disabled"]
        if all(status == "healthy" for status in statuses):
            return "healthy"
        elif any(status == "healthy" for status in statuses):
            return "degraded"
        else:
            return "unhealthy"
