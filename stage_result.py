from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional


@dataclass(frozen=True)
class StageFailure:
    """Why a pipeline stage yielded to the next one."""
    stage: str
    reason: str

    def __str__(self):
        return f"{self.stage}: {self.reason}"


@dataclass(frozen=True)
class StageResult:
    """
    Tagged outcome of one recovery stage: either a value to hand on, or a
    recoverable failure. `failures` accumulates every failure seen on the way
    to this result so diagnostics survive fallthrough.
    """
    ok: bool
    stage: str
    value: Any = None
    reason: Optional[str] = None
    failures: List[StageFailure] = field(default_factory=list)

    @classmethod
    def success(cls, stage: str, value: Any) -> "StageResult":
        return cls(ok=True, stage=stage, value=value)

    @classmethod
    def failure(cls, stage: str, reason: str) -> "StageResult":
        return cls(ok=False, stage=stage, reason=reason,
                   failures=[StageFailure(stage, reason)])

    def then(self, step: Callable[[Any], "StageResult"]) -> "StageResult":
        """Feeds the value into the next stage; a failure passes through untouched."""
        if not self.ok:
            return self
        result = step(self.value)
        return result.with_failures(self.failures)

    def with_failures(self, earlier: List[StageFailure]) -> "StageResult":
        if not earlier:
            return self
        return StageResult(ok=self.ok, stage=self.stage, value=self.value,
                           reason=self.reason, failures=list(earlier) + self.failures)


def first_success(attempts: Iterable[Callable[[], StageResult]]) -> StageResult:
    """
    Runs each attempt in order and returns the first successful result,
    carrying the failures of the attempts that came before it. When every
    attempt fails, the last failure is returned with all reasons attached.
    """
    failures: List[StageFailure] = []
    result = None
    for attempt in attempts:
        result = attempt().with_failures(failures)
        if result.ok:
            return result
        failures = result.failures
    if result is None:
        return StageResult.failure("pipeline", "no stages to run")
    return result
