"""
Region and Auto Scaling group filters.
"""
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Dict, Sequence, Tuple

from ..core.config import (
    OPT_OUT, Config, default_filter_expression, default_filtering_mode, parse_tag_expression
)


def region_enabled(region: str, allowed: Sequence[str]) -> bool:
    """Check a region name against the allow-list.
    
    An empty allow-list enables every region. Entries may be exact names
    or shell-style patterns such as 'eu-*'.
    """
    if not allowed:
        return True
    return any(fnmatchcase(region, pattern) for pattern in allowed)


@dataclass(frozen=True)
class TagFilter:
    """Resolved group tag filter for one invocation."""
    mode: str
    expression: str
    pairs: Tuple[Tuple[str, str], ...]

    @classmethod
    def from_config(cls, config: Config) -> "TagFilter":
        mode = default_filtering_mode(config.tag_filtering_mode)
        expression = default_filter_expression(mode, config.filter_by_tags)
        return cls(mode=mode, expression=expression, pairs=parse_tag_expression(expression))

    def matches(self, tags: Dict[str, str]) -> bool:
        """True when every key=value pair of the expression is present."""
        return all(tags.get(key) == value for key, value in self.pairs)

    def enables(self, tags: Dict[str, str]) -> bool:
        """Whether a group carrying these tags is enabled for replacement."""
        if self.mode == OPT_OUT:
            return not self.matches(tags)
        return self.matches(tags)
