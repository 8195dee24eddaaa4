import logging
import logging.config
import sys
from contextvars import ContextVar

# LoggingMiddleware 가 요청마다 설정, 요청 밖에서는 "-"
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """레코드에 현재 요청 ID를 주입"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def build_logging_config(log_level: str) -> dict:
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "line": {
                "format": "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s",
            },
            "trace": {
                "format": "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s\n"
                "%(pathname)s:%(lineno)d\n%(message)s",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "line",
                "filters": ["request_id"],
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
                "formatter": "trace",
                "filters": ["request_id"],
                "level": "WARNING",
            },
        },
        "root": {"handlers": ["stdout"], "level": level},
        "loggers": {
            "luckyapi": {
                "handlers": ["stdout", "stderr"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["stdout"],
                "level": level,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "handlers": ["stdout"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def setup_logging(log_level: str = "INFO"):
    logging.config.dictConfig(build_logging_config(log_level))
