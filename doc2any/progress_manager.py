"""Progress reporting and cancellation for conversion and OCR runs."""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from tqdm import tqdm

from .errors import ConversionCancelled


@dataclass(frozen=True)
class ProgressEvent:
    """One step of a running conversion."""

    stage: str
    percent: int
    message: str = ""


ProgressListener = Callable[[ProgressEvent], None]


class ProgressManager:
    """Collects progress events and optionally draws them as a progress bar.

    Events are kept in order so callers can either subscribe a listener or
    poll ``latest`` after each stage.
    """

    def __init__(
        self,
        listener: Optional[ProgressListener] = None,
        *,
        show_bar: bool = False,
        desc: str = "Converting",
    ) -> None:
        self.listener = listener
        self.events: List[ProgressEvent] = []
        self.notices: List[str] = []
        self.bar: Optional[tqdm] = (
            tqdm(total=100, desc=desc, unit="%", leave=False) if show_bar else None
        )

    def __enter__(self) -> "ProgressManager":
        return self

    def __exit__(
        self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]
    ) -> None:
        self.close()

    @property
    def latest(self) -> Optional[ProgressEvent]:
        return self.events[-1] if self.events else None

    def emit(self, stage: str, percent: int, message: str = "") -> ProgressEvent:
        """Record a progress event and forward it.

        Args:
            stage: Pipeline stage or OCR phase name
            percent: Completion percentage, clamped to 0-100
            message: Human-readable status text

        Returns:
            The recorded event
        """
        event = ProgressEvent(stage=stage, percent=max(0, min(100, percent)), message=message)
        self.events.append(event)
        if self.bar is not None:
            self.bar.set_description_str(message or stage)
            self.bar.update(max(0, event.percent - self.bar.n))
        if self.listener is not None:
            self.listener(event)
        return event

    def notify(self, message: str) -> None:
        """Surface an informational notice to the user without disrupting the bar."""
        self.notices.append(message)
        if self.bar is not None:
            tqdm.write(message)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None


class CancellationToken:
    """Cooperative cancellation flag checked between pipeline stages."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ConversionCancelled("Conversion cancelled")
