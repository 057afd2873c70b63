"""标签名称解析与格式化

标签名称由命名空间和短名称组成，使用分隔符连接：

    "music"         → 命名空间 "music"，无短名称（仅命名空间标签）
    "music:cajun"   → 命名空间 "music"，短名称 "cajun"

分隔符可以带前后空白（如 " > "），解析时这些空白视为可选，
所以 "food>cajun" 和 "food > cajun" 都会被切分。

解析永远不会抛出异常，无法切分时整体作为命名空间。
"""

import re
from functools import lru_cache
from typing import NamedTuple, Optional, Pattern

from ytag.config import get_tagging_settings


@lru_cache(maxsize=32)
def _separator_pattern(separator: str) -> Pattern:
    """分隔符对应的正则，核心部分按字面匹配，两侧空白可选"""
    core = separator.strip()
    if not core:
        # 分隔符只有空白时，按第一段连续空白切分
        return re.compile(r"\s+")
    return re.compile(r"\s*" + re.escape(core) + r"\s*")


def _resolve_separator(separator: Optional[str]) -> str:
    if separator is None:
        return get_tagging_settings().namespace_separator
    return separator


class TagName(NamedTuple):
    """解析后的标签名称

    Attributes:
        namespace: 命名空间，解析结果中总是去除了首尾空白
        short_name: 短名称，仅命名空间标签为 None
    """
    namespace: str
    short_name: Optional[str] = None

    @property
    def is_bare(self) -> bool:
        """是否为仅命名空间的标签"""
        return self.short_name is None

    @classmethod
    def parse(cls, raw: Optional[str], separator: Optional[str] = None) -> "TagName":
        return parse_tag_name(raw, separator)

    def format(self, separator: Optional[str] = None) -> str:
        return format_tag_name(self.namespace, self.short_name, separator)


def parse_tag_name(raw: Optional[str], separator: Optional[str] = None) -> TagName:
    """把标签名称切分为 (命名空间, 短名称)

    只在第一个分隔符处切分，其后的内容全部作为短名称。
    任意一侧为空白时不切分。

    Args:
        raw: 原始名称
        separator: 分隔符，None 表示使用进程级默认配置

    Returns:
        TagName

    Examples:
        >>> parse_tag_name("music:cajun")
        TagName(namespace='music', short_name='cajun')
        >>> parse_tag_name("  a:b:c ")
        TagName(namespace='a', short_name='b:c')
        >>> parse_tag_name("food > cajun", separator=" > ")
        TagName(namespace='food', short_name='cajun')
        >>> parse_tag_name("music:")
        TagName(namespace='music:', short_name=None)
    """
    text = (raw or "").strip()
    match = _separator_pattern(_resolve_separator(separator)).search(text)
    if match is None:
        return TagName(text, None)

    namespace = text[:match.start()].strip()
    short_name = text[match.end():].strip()
    if not namespace or not short_name:
        return TagName(text, None)
    return TagName(namespace, short_name)


def format_tag_name(
    namespace: Optional[str],
    short_name: Optional[str] = None,
    separator: Optional[str] = None,
) -> str:
    """用分隔符连接非空白的部分

    Examples:
        >>> format_tag_name("music", "cajun")
        'music:cajun'
        >>> format_tag_name("music", "")
        'music'
    """
    parts = [part for part in (namespace, short_name) if part and part.strip()]
    return _resolve_separator(separator).join(parts)
