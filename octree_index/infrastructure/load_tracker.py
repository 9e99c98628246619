from dataclasses import dataclass


@dataclass
class LoadTracker:
    """Counts loads in flight for whichever component owns the tracker."""

    _in_flight: int = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def begin(self) -> None:
        self._in_flight += 1

    def end(self) -> None:
        if self._in_flight > 0:
            self._in_flight -= 1
