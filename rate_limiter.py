# -*- coding: utf-8 -*-
"""请求限流

滑动窗口计数：同一标识在 window_seconds 内最多允许 max_requests 次请求。
作为可注入组件交给请求分发层使用，不作为模块级单例。
"""
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional


class SlidingWindowRateLimiter:
    """
    滑动窗口限流器

    使用线程锁保证线程安全。
    """

    def __init__(self, max_requests: int = 100, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            max_requests: 窗口内允许的最大请求数
            window_seconds: 窗口长度（秒）
            clock: 时间源，测试时可注入
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._last_sweep: Optional[float] = None
        self._lock = threading.Lock()  # 线程锁

    def _evict(self, hits: Deque[float], now: float) -> None:
        """丢弃窗口外的记录"""
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """每个窗口最多清理一次：删除窗口内已无命中的标识"""
        if self._last_sweep is not None and now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for identifier in list(self._requests):
            hits = self._requests[identifier]
            self._evict(hits, now)
            if not hits:
                del self._requests[identifier]

    def allow(self, identifier: str) -> bool:
        """是否允许本次请求；允许时记录一次命中"""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            hits = self._requests.setdefault(identifier, deque())
            self._evict(hits, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def remaining(self, identifier: str) -> int:
        """窗口内剩余可用次数"""
        with self._lock:
            hits = self._requests.get(identifier)
            if hits is None:
                return max(0, self.max_requests)
            self._evict(hits, self._clock())
            if not hits:
                del self._requests[identifier]
            return max(0, self.max_requests - len(hits))

    def tracked_identifiers(self) -> int:
        """当前仍在跟踪的标识数"""
        with self._lock:
            return len(self._requests)
