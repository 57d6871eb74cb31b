"""Platform type -> adapter lookup."""

from __future__ import annotations

from codetrack.platforms.base import PlatformAdapter, PlatformType
from codetrack.platforms.codeforces import CodeForcesAdapter
from codetrack.platforms.geeksforgeeks import GeeksforGeeksAdapter
from codetrack.platforms.leetcode import LeetCodeAdapter

_ADAPTERS: dict[PlatformType, PlatformAdapter] = {
    PlatformType.LEETCODE: LeetCodeAdapter(),
    PlatformType.GEEKSFORGEEKS: GeeksforGeeksAdapter(),
    PlatformType.CODEFORCES: CodeForcesAdapter(),
}


def get_adapter(platform_type: PlatformType | str) -> PlatformAdapter:
    """Return the adapter for ``platform_type``; ValueError for unknown platforms."""
    if not isinstance(platform_type, PlatformType):
        platform_type = PlatformType.parse(platform_type)
    return _ADAPTERS[platform_type]
