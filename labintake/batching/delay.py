from labintake.batching.models import DelayConfig


class DelayController:
    """Computes the pause before dispatching the next batch."""

    def __init__(self, config: DelayConfig | None = None) -> None:
        self._config = config or DelayConfig()

    def next_delay(self, last_duration_ms: float) -> int:
        """Delay in milliseconds given the previous round-trip duration.

        A call that ran past the long-request threshold means the service is
        already saturated, so no extra pause is added.
        """
        if last_duration_ms > self._config.long_request_ms:
            return 0
        delay = round(last_duration_ms * self._config.fraction)
        return max(self._config.min_ms, min(delay, self._config.max_ms))
