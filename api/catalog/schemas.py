"""
Pydantic value types returned by the catalog resolver.

All models are frozen: results are plain immutable values that callers can
hash, compare and serialize with `model_dump()`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PackageChannel(_Frozen):
    name: str = ""
    head_bundle_name: str = ""


class PackageManifest(_Frozen):
    package_name: str = ""
    default_channel_name: str = ""
    channels: tuple[PackageChannel, ...] = Field(default_factory=tuple)

    def channel(self, name: str) -> PackageChannel | None:
        for channel in self.channels:
            if channel.name == name:
                return channel
        return None


class ChannelEntry(_Frozen):
    """
    One node of a channel's replaces-graph.

    `replaces` is the bundle name of the entry this one replaces, or "".
    """

    package_name: str = ""
    channel_name: str = ""
    bundle_name: str = ""
    replaces: str = ""


class ApiKey(_Frozen):
    group: str
    version: str
    kind: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}/{self.kind}"
