"""Page specification dataclass and types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Group = Literal["Shop", "Cart", "Account", "Info", "Admin"]


@dataclass(frozen=True)
class PageSpec:
    name: str
    group: Group
    usage: str
    description: str
    module: str
    attr: str = "render"
    aliases: tuple[str, ...] = ()
    admin: bool = False
    # Pages worth warming once this one has rendered.
    prefetch: tuple[str, ...] = ()
