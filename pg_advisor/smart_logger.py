import json
import os
import sys
import threading
import time
from datetime import datetime
from typing import Any, Optional


class SmartLogger:
    """
    Structured event logger.

    Every entry is a dotted event id (e.g. ``advisor.apply.failed``) plus an
    optional category and params dict. Entries go to stderr and, when file
    output is enabled, to a JSONL file. Params larger than ``max_inline_chars``
    are written to a separate detail file and only summarized inline.

    Environment (all optional, prefixed with ``SMART_LOGGER_``):
        MAIN_LOG_PATH, DETAIL_LOG_DIR, MIN_LEVEL, INCLUDE_ALL_MIN_LEVEL,
        CONSOLE_OUTPUT, FILE_OUTPUT
    """

    LEVEL_PRIORITY = {
        "DEBUG": 0,
        "INFO": 1,
        "WARNING": 2,
        "ERROR": 3,
        "CRITICAL": 4,
    }
    _instance = None

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the singleton so the next call re-reads the environment."""
        cls._instance = None

    @classmethod
    def log(cls, level, message, category=None, params=None, max_inline_chars=200):
        cls.instance()._log(level, message, category, params, max_inline_chars)

    def __init__(self,
                 main_log_path=None,
                 detail_log_dir=None,
                 min_level=None,
                 include_all_min_level=None,
                 console_output=None,
                 file_output=None):
        self.main_log_path = self._env(main_log_path, "MAIN_LOG_PATH", "logs/advisor.jsonl")
        self.detail_log_dir = self._env(detail_log_dir, "DETAIL_LOG_DIR", "logs/details")
        self.min_level = self._env(min_level, "MIN_LEVEL", "WARNING")
        self.include_all_min_level = self._env(include_all_min_level, "INCLUDE_ALL_MIN_LEVEL", "ERROR")
        self.console_output = self._env(
            None if console_output is None else str(console_output), "CONSOLE_OUTPUT", "True"
        ) == "True"
        self.file_output = self._env(
            None if file_output is None else str(file_output), "FILE_OUTPUT", "False"
        ) == "True"

        self._lock = threading.Lock()
        self._last_timestamp = None
        self._timestamp_counter = 0

        if self.file_output:
            for dir_path in (os.path.dirname(self.main_log_path), self.detail_log_dir):
                if dir_path:
                    os.makedirs(dir_path, exist_ok=True)

    @staticmethod
    def _env(direct_value: Optional[str], env_key: str, default: str) -> str:
        if direct_value is not None:
            return direct_value
        return os.environ.get(f"SMART_LOGGER_{env_key}", default)

    def _next_trace_id(self) -> str:
        # same-second entries get _1, _2, ... suffixes
        current = str(int(time.time()))
        if self._last_timestamp == current:
            self._timestamp_counter += 1
        else:
            self._last_timestamp = current
            self._timestamp_counter = 1
        return f"{current}_{self._timestamp_counter}"

    def _save_detail_payload(self, trace_id: str, payload: Any) -> Optional[str]:
        if not self.file_output:
            return None
        filename = f"{trace_id}.json"
        try:
            with open(os.path.join(self.detail_log_dir, filename), "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
        except OSError as e:
            return f"Error saving detail: {e}"
        return filename

    def _priority(self, level: str, default: int) -> int:
        return self.LEVEL_PRIORITY.get(str(level).upper(), default)

    def _should_log(self, level: str) -> bool:
        return self._priority(level, 1) >= self._priority(self.min_level, 0)

    def _should_include_all(self, level: str) -> bool:
        return self._priority(level, 1) >= self._priority(self.include_all_min_level, 3)

    def _summarize(self, params: Any) -> dict:
        if isinstance(params, dict):
            return {"keys": list(params.keys())}
        if isinstance(params, (list, tuple)):
            return {"type": type(params).__name__, "length": len(params)}
        return {"type": type(params).__name__}

    def _log(self, level, message, category=None, params=None, max_inline_chars=200):
        if not self._should_log(level):
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "message": "" if message is None else str(message),
        }
        if category:
            entry["category"] = category

        if params:
            if len(str(params)) <= max_inline_chars or self._should_include_all(level):
                entry["params_summary"] = params
            else:
                detail = self._save_detail_payload(self._next_trace_id(), params)
                if detail is None:
                    entry["detail_save_error"] = "file_output_disabled"
                elif detail.startswith("Error"):
                    entry["detail_save_error"] = detail
                else:
                    entry["has_detail_file"] = True
                    entry["detail_ref"] = detail
                entry["params_summary"] = self._summarize(params)

        if self.file_output:
            with self._lock:
                with open(self.main_log_path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

        if self.console_output:
            category_str = f"[{category}]" if category else ""
            line = f"[{level}]{category_str} {entry['message']}"
            if params and self._should_include_all(level):
                line += f" {params}"
            print(line, file=sys.stderr)
