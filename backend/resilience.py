"""
Resilience helpers for calls to the workflow engine.

Circuit breaker states:
- CLOSED: Normal operation, requests pass through
- OPEN: Engine looks down, requests fail fast
- HALF_OPEN: Testing if the engine recovered

Default config: 5 failures to open, 30s recovery, 2 successes to close.
Only failures the breaker's predicate accepts are counted, so a 404 for an
unknown task never opens the circuit.

PollPolicy/poll_until drive the bounded wait for a subprocess to finish.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


def _count_every_failure(error: BaseException) -> bool:
    return True


@dataclass
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    name: str = "default"
    failure_threshold: int = 5       # Failures before opening
    recovery_timeout: float = 30.0   # Seconds before half-open
    success_threshold: int = 2       # Successes to close from half-open
    is_failure: Callable[[BaseException], bool] = _count_every_failure


class CircuitOpenError(Exception):
    """Raised when circuit breaker is open and rejecting requests."""
    pass


@dataclass
class CircuitBreaker:
    """
    Circuit breaker guarding the engine client.

    Usage:
        circuit = get_circuit_breaker("camunda", config)
        try:
            result = await circuit.call(send, "GET", "/task")
        except CircuitOpenError:
            # Engine unavailable
            pass
    """
    config: CircuitBreakerConfig
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    last_failure_time: Optional[datetime] = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute a function with circuit breaker protection.

        Raises:
            CircuitOpenError: If circuit is open
            Exception: Whatever the function raised; counted against the
                circuit only when config.is_failure() says so
        """
        async with self._lock:
            if self.state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitState.HALF_OPEN
                    self.success_count = 0
                    logger.info(f"Circuit '{self.config.name}' entering half-open state")
                else:
                    raise CircuitOpenError(
                        f"Circuit '{self.config.name}' is open. "
                        f"Will retry after {self._time_until_retry():.1f}s"
                    )

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            # Errors outside the predicate leave the circuit untouched
            if self.config.is_failure(e):
                await self._on_failure(e)
            raise

        await self._on_success()
        return result

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return True
        elapsed = (datetime.now() - self.last_failure_time).total_seconds()
        return elapsed >= self.config.recovery_timeout

    def _time_until_retry(self) -> float:
        if self.last_failure_time is None:
            return 0.0
        elapsed = (datetime.now() - self.last_failure_time).total_seconds()
        return max(0.0, self.config.recovery_timeout - elapsed)

    async def _on_success(self):
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.config.success_threshold:
                    self.state = CircuitState.CLOSED
                    self.failure_count = 0
                    logger.info(f"Circuit '{self.config.name}' closed after recovery")
            elif self.state == CircuitState.CLOSED:
                self.failure_count = 0

    async def _on_failure(self, error: BaseException):
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now()

            if self.state == CircuitState.HALF_OPEN:
                self.state = CircuitState.OPEN
                logger.warning(
                    f"Circuit '{self.config.name}' reopened after half-open failure: {error}"
                )
            elif self.failure_count >= self.config.failure_threshold:
                self.state = CircuitState.OPEN
                logger.warning(
                    f"Circuit '{self.config.name}' opened after {self.failure_count} failures"
                )

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.config.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "time_until_retry": self._time_until_retry() if self.state == CircuitState.OPEN else 0,
        }


_circuit_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(name: str, config: Optional[CircuitBreakerConfig] = None) -> CircuitBreaker:
    """Get or create a circuit breaker by name; config only applies on first call."""
    if name not in _circuit_breakers:
        if config is None:
            config = CircuitBreakerConfig(name=name)
        else:
            config.name = name
        _circuit_breakers[name] = CircuitBreaker(config=config)
    return _circuit_breakers[name]


def get_all_circuit_statuses() -> Dict[str, Dict[str, Any]]:
    return {name: cb.get_status() for name, cb in _circuit_breakers.items()}


def reset_all_circuits():
    """Reset all circuit breakers - useful for testing."""
    _circuit_breakers.clear()


@dataclass(frozen=True)
class PollPolicy:
    """Interval schedule plus total budget (seconds) for a bounded polling wait."""
    initial_interval: float = 0.1
    backoff_interval: float = 0.5
    backoff_after: int = 5
    budget: float = 8.0

    def interval_for(self, attempt: int) -> float:
        """Delay after the given (1-based) attempt."""
        if attempt > self.backoff_after:
            return self.backoff_interval
        return self.initial_interval


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    policy: PollPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    label: str = "condition",
) -> bool:
    """
    Call check() until it returns True or the budget runs out.

    Errors from check() are logged and treated as "not yet"; running out of
    budget returns False rather than raising.
    """
    started = clock()
    attempt = 0

    while clock() - started < policy.budget:
        attempt += 1
        try:
            if await check():
                logger.info(f"{label} completed after {attempt} attempts")
                return True
        except Exception as e:
            logger.warning(f"Error checking {label} (attempt {attempt}): {e}")

        await sleep(policy.interval_for(attempt))

    logger.warning(f"{label} did not complete within {policy.budget}s after {attempt} attempts")
    return False
