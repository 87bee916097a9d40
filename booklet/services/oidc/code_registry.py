"""
Remembers authorization codes the callback has already redeemed.

Browsers sometimes replay the redirect (refresh, back button). A code can
only be exchanged once, so replays are short-circuited instead of hitting
the provider with a code it will reject.
"""

from collections import OrderedDict


class ProcessedCodeRegistry:
    """Bounded, insertion-ordered set of redeemed codes."""

    def __init__(self, max_size: int = 1000):
        self._max_size = max_size
        self._codes: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, code: str) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    def add(self, code: str) -> None:
        self._codes[code] = None
        self._codes.move_to_end(code)
        while len(self._codes) > self._max_size:
            self._codes.popitem(last=False)
