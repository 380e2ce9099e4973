import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class ApplicationMetrics:
    start_time: Optional[datetime] = None
    component_count: int = 0
    health_check_count: int = 0
    error_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def mark_started(self) -> None:
        with self._lock:
            self.start_time = datetime.now()

    def set_component_count(self, count: int) -> None:
        with self._lock:
            self.component_count = count

    def record_health_check(self, failures: int) -> None:
        with self._lock:
            self.health_check_count += 1
            self.error_count += failures

    def record_error(self) -> None:
        with self._lock:
            self.error_count += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            uptime = None
            if self.start_time is not None:
                uptime = (datetime.now() - self.start_time).total_seconds()
            return {
                "start_time": self.start_time,
                "uptime": uptime,
                "component_count": self.component_count,
                "health_check_count": self.health_check_count,
                "error_count": self.error_count,
            }
