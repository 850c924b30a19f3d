import json
import logging
import socket
from datetime import datetime, timezone
from logging.config import dictConfig

from bson import ObjectId

# LogRecord 기본 속성들. 이 외의 속성은 extra={...} 로 전달된 필드
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "hostname"}


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class JsonFormatter(logging.Formatter):
    hostname = socket.gethostname()

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stack_trace": self.formatException(record.exc_info),
            }

        # extra 필드 추가 (기본 필드는 덮어쓰지 않음)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_data and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, cls=CustomJSONEncoder, default=str)


def setup_logging(level: str = "INFO"):
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "catalog_admin.config.logging.JsonFormatter",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            "catalog_admin": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "": {  # Root logger
                "handlers": ["console"],
                "level": level,
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }
    dictConfig(log_config)

    logging.getLogger("pymongo").setLevel(logging.WARNING)
