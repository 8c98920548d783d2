"""
Structured logging for the render server
JSON lines with per-render context (request id, language) attached to every event
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Optional

import structlog


class NoticeLogger:
    """Structured logger; events inside render_scope() carry that render's context"""

    def __init__(self, name: str = "notice-render", level: str = "INFO"):
        self.name = name

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(
                getattr(logging, level.upper())
            ),
            logger_factory=structlog.WriteLoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=False,
        )

        # Library modules log through stdlib logging
        logging.basicConfig(
            level=getattr(logging, level.upper()),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )

        self.logger = structlog.get_logger(name)

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)

    @contextmanager
    def render_scope(self, **context):
        """Bind context (e.g. request_id) to every event logged for one render"""
        with structlog.contextvars.bound_contextvars(**context):
            yield

    @contextmanager
    def timer(self, stage: str):
        """Log start, completion or failure, and duration of a stage"""
        start_time = time.time()

        try:
            self.logger.info("stage_started", stage=stage)
            yield
            self.logger.info("stage_completed", stage=stage)
        except Exception as e:
            self.logger.error("stage_failed", stage=stage, error=str(e))
            raise
        finally:
            duration = time.time() - start_time
            self.logger.info(
                "stage_duration", stage=stage, duration_seconds=round(duration, 3)
            )


# Global logger instance
_global_logger: Optional[NoticeLogger] = None


def get_logger(name: str = "notice-render", **kwargs) -> NoticeLogger:
    """Get or create global logger instance"""
    global _global_logger

    if _global_logger is None:
        _global_logger = NoticeLogger(name=name, **kwargs)

    return _global_logger


def setup_logging(level: str = "INFO") -> NoticeLogger:
    """Setup global logging configuration"""
    global _global_logger

    _global_logger = NoticeLogger(level=level)
    return _global_logger
