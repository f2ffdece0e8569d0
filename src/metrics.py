"""
一个简单的运行时指标收集类，用于统计远程分类调用、消息流量、提醒发送等信息，方便后续扩展和监控。
"""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class RuntimeMetrics:
    remote_call_count: int = 0
    remote_total_latency_ms: float = 0.0
    remote_error_count: int = 0
    heuristic_fallback_count: int = 0
    msg_in_count: int = 0
    digest_sent_count: int = 0
    digest_failed_count: int = 0
    last_remote_call_at: float | None = None

    def record_remote_call(self, latency_ms: float, error: bool = False) -> None:
        self.remote_call_count += 1
        self.remote_total_latency_ms += max(0.0, latency_ms)
        self.last_remote_call_at = time.time()
        if error:
            self.remote_error_count += 1

    def record_heuristic_fallback(self) -> None:
        self.heuristic_fallback_count += 1

    def record_msg_in(self) -> None:
        self.msg_in_count += 1

    def record_digest(self, sent: bool) -> None:
        if sent:
            self.digest_sent_count += 1
        else:
            self.digest_failed_count += 1

    def snapshot(self) -> dict:
        avg_latency_ms = 0.0
        if self.remote_call_count > 0:
            avg_latency_ms = self.remote_total_latency_ms / self.remote_call_count

        return {
            "remote_call_count": self.remote_call_count,
            "remote_error_count": self.remote_error_count,
            "remote_avg_latency_ms": round(avg_latency_ms, 2),
            "heuristic_fallback_count": self.heuristic_fallback_count,
            "msg_in_count": self.msg_in_count,
            "digest_sent_count": self.digest_sent_count,
            "digest_failed_count": self.digest_failed_count,
            "last_remote_call_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_remote_call_at))
                if self.last_remote_call_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()
