"""Token expansion for cached message HTML."""

from __future__ import annotations

import re
from typing import Dict, Iterable, Mapping

from .resolver import AssetResolution


def build_token_map(resolutions: Iterable[AssetResolution]) -> Dict[str, str]:
    """Map tokens to replacement values; the first resolution of a token wins."""

    tokens: Dict[str, str] = {}
    for resolution in resolutions:
        if resolution.value:
            tokens.setdefault(resolution.token, resolution.value)
    return tokens


def expand_tokens(html: str, tokens: Mapping[str, str]) -> str:
    """Replace every literal occurrence of each token in one pass.

    Matching is left to right and non-overlapping; where tokens share a
    prefix the longest one wins. Replacement values are never rescanned.
    """

    keys = [key for key in tokens if key]
    if not keys:
        return html

    keys.sort(key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda match: tokens[match.group(0)], html)
