import functools
import logging

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog_admin.core.exceptions import CatalogError

logger = logging.getLogger(__name__)


def traced(span_name: str):
    """서비스 코루틴을 span 으로 감싸고 실패 시 로그/예외 기록.

    CatalogError 는 요청 거부이므로 warning, 그 외 예외는 error + stack trace.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            with self.tracer.start_as_current_span(span_name) as span:
                try:
                    result = await func(self, *args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except CatalogError as e:
                    logger.warning("Request rejected.", extra={
                        "operation": span_name,
                        "error_type": type(e).__name__,
                        "error": e.message,
                    })
                    span.set_attribute("app.error.type", type(e).__name__)
                    span.set_status(Status(StatusCode.ERROR, e.message))
                    raise
                except Exception as e:
                    logger.error("Unexpected error.", extra={"operation": span_name, "error": str(e)}, exc_info=True)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

        return wrapper

    return decorator


def current_span() -> trace.Span:
    return trace.get_current_span()
