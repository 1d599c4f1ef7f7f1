from __future__ import annotations

from typing import Any, Iterable, List, Optional

from safetynet.config import ProviderConfig
from safetynet.entities import Coordinates, RequestType
from safetynet.providers.base import ProviderAdapter


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def make_config(name: str, rpm: int = 60, **overrides: Any) -> ProviderConfig:
    values = {
        "name": name,
        "label": name.title(),
        "base_url": f"https://{name}.test",
        "timeout": 1.0,
        "requests_per_minute": rpm,
    }
    values.update(overrides)
    return ProviderConfig(**values)


class FakeAdapter(ProviderAdapter):
    """Adapter double returning a canned value or raising a canned error."""

    def __init__(
        self,
        name: str,
        request_types: Iterable[RequestType] = (RequestType.CURRENT,),
        result: Any = None,
        error: Optional[Exception] = None,
        rpm: int = 60,
        supported: bool = True,
        call_log: Optional[List[str]] = None,
    ) -> None:
        super().__init__(make_config(name, rpm=rpm))
        self.request_types = frozenset(request_types)
        self.result = result if result is not None else {"provider": name}
        self.error = error
        self.supported = supported
        self.calls = 0
        self.call_log = call_log

    def supports(self, request_type: RequestType, location: Optional[Coordinates]) -> bool:
        return self.supported and super().supports(request_type, location)

    def attempt_fetch(self, request_type, location, options=None):
        self.calls += 1
        if self.call_log is not None:
            self.call_log.append(self.name)
        if self.error is not None:
            raise self.error
        return self.result


