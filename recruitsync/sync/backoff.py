from dataclasses import dataclass


@dataclass
class Backoff:
    """
    Bounded exponential backoff: base, base*factor, base*factor**2, ... capped
    at `cap`. `freeze()` pins the delay at its current level (used once the
    soft deadline has passed) while failures keep being counted.
    """

    base: float
    cap: float
    factor: float = 2.0
    failures: int = 0
    level: int = 0
    frozen: bool = False

    def delay(self) -> float:
        return min(self.cap, self.base * (self.factor ** self.level))

    def failure(self) -> float:
        """Record one failure and return the delay before the next attempt."""
        self.failures += 1
        if not self.frozen and self.delay() < self.cap:
            self.level += 1
        return self.delay()

    def reset(self) -> None:
        self.failures = 0
        if not self.frozen:
            self.level = 0

    def freeze(self) -> None:
        self.frozen = True
