"""ARQ worker settings and tasks (with OTel instrumentation)"""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar
from urllib.parse import urlparse
from uuid import UUID

from arq.connections import RedisSettings
from opentelemetry import trace

from app.core.config import get_settings
from app.core.constants import GENERATE_PRD_TASK
from app.core.database import async_session_maker
from app.core.telemetry import get_app_metrics, get_tracer, setup_telemetry
from app.infrastructure.agent.llm_client import AICollaboratorError
from app.services.prd_generator import PRDGenerator
from app.services.review_service import ReviewService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def traced_task(task_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Add OTel tracing and metrics to an ARQ task"""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(ctx: dict, *args: Any, **kwargs: Any) -> T:
            tracer = get_tracer()
            metrics = get_app_metrics()

            with tracer.start_as_current_span(
                f"arq.task.{task_name}",
                kind=trace.SpanKind.CONSUMER,
            ) as span:
                span.set_attribute("arq.task.name", task_name)
                span.set_attribute("arq.task.args", str(args)[:200])

                start_time = time.perf_counter()
                try:
                    result = await func(ctx, *args, **kwargs)

                    task_status = "success"
                    if isinstance(result, dict) and result.get("status") != "success":
                        task_status = "failed"
                    span.set_attribute("arq.task.status", task_status)
                    if metrics:
                        metrics.arq_task_result.add(
                            1, {"task_name": task_name, "status": task_status}
                        )
                    return result

                except Exception as e:
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    if metrics:
                        metrics.arq_task_result.add(
                            1, {"task_name": task_name, "status": "failed"}
                        )
                    raise

                finally:
                    duration = time.perf_counter() - start_time
                    if metrics:
                        metrics.arq_task_duration.record(
                            duration, {"task_name": task_name}
                        )

        return wrapper  # type: ignore
    return decorator


@traced_task(GENERATE_PRD_TASK)
async def generate_prd_task(ctx: dict, suggestion_id: str) -> dict:
    """PRD generation task

    Queued once per approval. A failure is stored on the suggestion
    (prd_error) and is not retried; the approval stands.

    Args:
        ctx: ARQ context
        suggestion_id: approved suggestion ID

    Returns:
        dict: task result
    """
    prd_generator = ctx.get("prd_generator") or PRDGenerator()
    session_maker = ctx.get("session_maker") or async_session_maker

    async with session_maker() as db:
        service = ReviewService(db, prd_generator=prd_generator)
        try:
            suggestion = await service.generate_prd(UUID(suggestion_id))
        except ValueError as e:
            logger.error(f"[{GENERATE_PRD_TASK}] Skipped: suggestion={suggestion_id}, reason={e}")
            return {"status": "skipped", "suggestion_id": suggestion_id, "error": str(e)}
        except AICollaboratorError as e:
            logger.error(f"[{GENERATE_PRD_TASK}] Failed: suggestion={suggestion_id}, error={e}")
            return {"status": "failed", "suggestion_id": suggestion_id, "error": str(e)}

    logger.info(f"[{GENERATE_PRD_TASK}] Completed: suggestion={suggestion_id}")
    return {
        "status": "success",
        "suggestion_id": suggestion_id,
        "prd_length": len(suggestion.prd or ""),
    }


def _get_redis_settings() -> RedisSettings:
    """Redis connection settings"""
    settings = get_settings()
    parsed = urlparse(settings.arq_redis_url)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
    )


async def startup(ctx: dict) -> None:
    """Initialise telemetry and the shared PRD generator"""
    setup_telemetry("idea-intake-worker", "0.1.0")
    ctx["prd_generator"] = PRDGenerator()
    logger.info("ARQ Worker started with telemetry")


async def shutdown(ctx: dict) -> None:
    logger.info("ARQ Worker shutting down")


class WorkerSettings:
    """ARQ worker settings"""

    functions = [
        generate_prd_task,
    ]

    # arq expects an instance
    redis_settings = _get_redis_settings()

    on_startup = startup
    on_shutdown = shutdown

    max_tries = 1                    # no automatic retry
    job_timeout = 300
    keep_result = 3600
    health_check_interval = 60
