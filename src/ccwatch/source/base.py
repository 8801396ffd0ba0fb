from typing import Protocol

from ccwatch.models import UsageSnapshot


class UsageSource(Protocol):
    """
    UsageSource stands as the common protocol for anything able to
    produce a usage snapshot.

    Sources degrade routine failures into a snapshot carrying
    `error` and only raise FetchError subclasses for failures the
    caller has to know about.
    """

    @property
    def name(self) -> "str": ...

    async def fetch(self) -> "UsageSnapshot": ...
