import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime
import json
from .config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
MAX_LOG_BYTES = 10485760  # 10MB
LOG_BACKUPS = 5

class SafeFormatter(logging.Formatter):
    """Formatter that never fails on odd characters in model output."""

    def format(self, record):
        try:
            record.msg = _safe_string(record.getMessage())
            record.args = None
            return super().format(record)
        except Exception:
            return f"{record.levelname}: {_safe_string(str(record.msg))}"

def _safe_string(value: Any) -> str:
    try:
        return str(value).encode('utf-8', errors='replace').decode('utf-8')
    except Exception:
        return repr(value)

def _file_handler(log_file: str, level: int) -> Optional[logging.Handler]:
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding='utf-8')
    except OSError:
        return None
    handler.setLevel(level)
    handler.setFormatter(SafeFormatter(LOG_FORMAT))
    return handler

class UnicodeSafeLogger:
    """
    Named logger that writes to stdout and, when a file is given, to that file.
    Generated scripts carry emoji and smart quotes, so every message is made
    UTF-8 safe before it reaches a handler.
    """

    def __init__(self, name: str, log_file: Optional[str] = None, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(SafeFormatter(LOG_FORMAT))
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = _file_handler(log_file, logging.DEBUG)
            if file_handler is None:
                self.logger.warning(f"Could not open log file {log_file}, logging to console only")
            else:
                self.logger.addHandler(file_handler)

    def info(self, message: str):
        self.logger.info(_safe_string(message))

    def error(self, message: str, exc_info: bool = False):
        self.logger.error(_safe_string(message), exc_info=exc_info)

    def warning(self, message: str):
        self.logger.warning(_safe_string(message))

    def debug(self, message: str):
        self.logger.debug(_safe_string(message))

    def _log_event(self, event: str, data: Dict[str, Any], level: int = logging.INFO):
        payload = {"timestamp": datetime.now().isoformat(), **data}
        self.logger.log(level, _safe_string(f"{event}: {json.dumps(payload, default=str)}"))

    def log_api_usage(self, service: str, action: str, tokens_used: int = 0):
        """Completion token usage, one line per call."""
        self._log_event("API_USAGE", {"service": service, "action": action, "tokens_used": tokens_used})

    def log_pipeline_stage(self, request_id: str, stage: str, message: str = ""):
        self._log_event("PIPELINE_STAGE", {"request_id": request_id, "stage": stage, "message": message})

    def log_word_count(self, request_id: str, duration: str, actual: int, target: int, within_tolerance: bool):
        """Word count of a finished script against its duration budget."""
        self._log_event(
            "WORD_COUNT",
            {
                "request_id": request_id,
                "duration": duration,
                "actual": actual,
                "target": target,
                "within_tolerance": within_tolerance,
            },
            level=logging.INFO if within_tolerance else logging.WARNING,
        )

    def log_error_with_context(self, error: Exception, context: dict):
        self._log_event(
            "ERROR_WITH_CONTEXT",
            {"error_type": type(error).__name__, "error_message": str(error), "context": context},
            level=logging.ERROR,
        )

def setup_logging():
    """Configure root logging for the server process."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for log_file, level in ((settings.log_file, logging.NOTSET), (settings.error_log, logging.ERROR)):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # Keep SDK request chatter out of the app log.
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('openai').setLevel(logging.WARNING)

# Global logger instances
logger = UnicodeSafeLogger("script_engine", settings.log_file)
api_logger = UnicodeSafeLogger("api_usage", settings.api_usage_log)
generation_logger = UnicodeSafeLogger("generation", settings.generation_log)
error_logger = UnicodeSafeLogger("errors", settings.error_log, level=logging.ERROR)
