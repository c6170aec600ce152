"""
Performance profiler implementation for matrixpool.

This module records the duration of matrix lifecycle and engine
operations and aggregates them per operation name.
"""

from __future__ import annotations
import functools
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock
from typing import Callable, Dict, List, Optional, Any, Iterator

# Optional dependencies
try:
    import psutil
    HAS_PSUTIL = True
except ImportError:
    HAS_PSUTIL = False


@dataclass
class OperationProfile:
    """Profile data for a single operation."""
    operation_name: str
    start_time: float
    end_time: float
    duration: float
    memory_before: int = 0
    memory_after: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def memory_delta(self) -> int:
        return self.memory_after - self.memory_before


@dataclass
class AggregatedProfile:
    """Aggregated profile statistics for an operation type."""
    operation_name: str
    call_count: int = 0
    error_count: int = 0
    total_duration: float = 0.0
    total_memory_delta: int = 0
    min_duration: float = float('inf')
    max_duration: float = 0.0
    avg_duration: float = 0.0

    def update(self, profile: OperationProfile) -> None:
        self.call_count += 1
        if profile.metadata.get('error'):
            self.error_count += 1
        self.total_duration += profile.duration
        self.total_memory_delta += profile.memory_delta
        self.min_duration = min(self.min_duration, profile.duration)
        self.max_duration = max(self.max_duration, profile.duration)
        self.avg_duration = self.total_duration / self.call_count


class PerformanceProfiler:
    """Profiler for matrix operations."""

    def __init__(self, max_profiles: int = 10000, enable_memory_tracking: bool = False):
        self._max_profiles = max_profiles
        self._enable_memory_tracking = enable_memory_tracking and HAS_PSUTIL

        self._profiles: deque[OperationProfile] = deque(maxlen=max_profiles)
        self._aggregated: Dict[str, AggregatedProfile] = defaultdict(
            lambda: AggregatedProfile("")
        )
        self._lock = RLock()

        if self._enable_memory_tracking:
            self._process = psutil.Process()

    @contextmanager
    def profile_operation(
        self,
        operation_name: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Iterator[OperationProfile]:
        """Context manager for profiling operations."""
        start_time = time.perf_counter()
        memory_before = self._get_memory_usage()

        profile = OperationProfile(
            operation_name=operation_name,
            start_time=start_time,
            end_time=0.0,
            duration=0.0,
            memory_before=memory_before,
            metadata=metadata or {}
        )

        try:
            yield profile
        finally:
            end_time = time.perf_counter()
            profile.end_time = end_time
            profile.duration = end_time - start_time
            profile.memory_after = self._get_memory_usage()
            self._record(profile)

    def _record(self, profile: OperationProfile) -> None:
        with self._lock:
            self._profiles.append(profile)

            name = profile.operation_name
            if name not in self._aggregated:
                self._aggregated[name] = AggregatedProfile(name)
            self._aggregated[name].update(profile)

    def get_profiles(
        self,
        operation_name: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[OperationProfile]:
        """Get recorded profiles, optionally filtered by operation name."""
        with self._lock:
            profiles = list(self._profiles)

            if operation_name:
                profiles = [p for p in profiles if p.operation_name == operation_name]

            if limit:
                profiles = profiles[-limit:]

            return profiles

    def get_aggregated_stats(
        self,
        operation_name: Optional[str] = None
    ) -> Dict[str, AggregatedProfile]:
        with self._lock:
            if operation_name:
                return {operation_name: self._aggregated.get(operation_name)}
            return dict(self._aggregated)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of profiling data."""
        with self._lock:
            total_profiles = len(self._profiles)

            if total_profiles == 0:
                return {
                    'total_profiles': 0,
                    'total_operations': 0,
                    'operations': {}
                }

            total_duration = sum(p.duration for p in self._profiles)

            return {
                'total_profiles': total_profiles,
                'total_operations': len(self._aggregated),
                'total_duration': total_duration,
                'avg_duration': total_duration / total_profiles,
                'operations': {
                    name: {
                        'call_count': agg.call_count,
                        'error_count': agg.error_count,
                        'avg_duration': agg.avg_duration,
                        'min_duration': agg.min_duration,
                        'max_duration': agg.max_duration,
                        'memory_delta': agg.total_memory_delta
                    }
                    for name, agg in self._aggregated.items()
                }
            }

    def clear_profiles(self) -> None:
        with self._lock:
            self._profiles.clear()
            self._aggregated.clear()

    def _get_memory_usage(self) -> int:
        """Get current resident memory in bytes."""
        if not self._enable_memory_tracking:
            return 0

        try:
            return self._process.memory_info().rss
        except psutil.Error:
            return 0

    @property
    def profile_count(self) -> int:
        return len(self._profiles)


def timed_operation(profiler_getter: Callable[[Any], Optional[PerformanceProfiler]], operation: str):
    """Decorator recording a method's duration and result status with a profiler.

    The decorated method runs untimed when the getter returns ``None``.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            profiler = profiler_getter(self)
            if profiler is None:
                return func(self, *args, **kwargs)

            with profiler.profile_operation(operation) as profile:
                try:
                    result = func(self, *args, **kwargs)
                except Exception:
                    profile.metadata['error'] = True
                    raise
                profile.metadata['status'] = getattr(result, 'name', None)
                return result
        return wrapper
    return decorator
