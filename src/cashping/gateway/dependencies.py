"""Dependency wiring for the relay service."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from cashping.core.config import RelaySettings

from .dispatch import DispatchCoordinator


@lru_cache(maxsize=1)
def get_settings() -> RelaySettings:
    return RelaySettings()


SettingsDep = Annotated[RelaySettings, Depends(get_settings)]


def get_coordinator(settings: SettingsDep) -> DispatchCoordinator:
    # Built per request so channel enablement follows the current settings.
    return DispatchCoordinator(settings=settings)


CoordinatorDep = Annotated[DispatchCoordinator, Depends(get_coordinator)]
