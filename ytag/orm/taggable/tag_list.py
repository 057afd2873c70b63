"""标签列表

内存中的有序标签名称集合：
- 去除首尾空白，丢弃空白项
- 忽略大小写去重，保留第一次出现时的写法
- 支持差集、成员判断（均忽略大小写）
- 可序列化为单个分隔字符串（用于业务模型上的缓存列）

使用示例:
    from ytag.orm.taggable import TagList

    tags = TagList.from_string('music:cajun, "rock, roll", Jazz')
    list(tags)                      # ['music:cajun', 'rock, roll', 'Jazz']
    "jazz" in tags                  # True
    str(tags - TagList("jazz"))     # 'music:cajun, "rock, roll"'
"""

import re
from functools import lru_cache
from typing import Iterable, Iterator, List, Optional, Pattern, Tuple, Union

from ytag.config import get_tagging_settings

NameSource = Union[str, Iterable[str], "TagList"]


@lru_cache(maxsize=32)
def _delimiter_patterns(delimiter: str) -> Tuple[Pattern, Pattern]:
    """(带引号项, 普通项) 两个正则，分隔符按去除空白后的核心匹配"""
    core = delimiter.strip()
    sep = re.escape(core) if core else r"\s+"
    quoted = re.compile(r"""\s*(?:"([^"]*)"|'([^']*)')\s*(?:%s|\Z)""" % sep)
    plain = re.compile(r"(.*?)(?:%s|\Z)" % sep, re.S)
    return quoted, plain


def _needs_quotes(name: str, delimiter: str) -> bool:
    core = delimiter.strip()
    if not core:
        return any(ch.isspace() for ch in name)
    return core in name


class TagList:
    """有序、忽略大小写去重的标签名称列表

    Args:
        *names: 标签名称，可以是字符串或字符串的可迭代对象
        delimiter: 序列化分隔符，None 表示使用进程级默认配置
    """

    def __init__(self, *names: NameSource, delimiter: Optional[str] = None):
        self._names: List[str] = []
        self._delimiter = delimiter
        self.add(*names)

    @classmethod
    def from_string(cls, source: Optional[str], delimiter: Optional[str] = None) -> "TagList":
        """从分隔字符串解析

        按分隔符核心切分，用双引号或单引号包裹的项作为整体保留（可包含分隔符）。
        """
        tag_list = cls(delimiter=delimiter)
        if not source:
            return tag_list

        quoted, plain = _delimiter_patterns(tag_list.delimiter)
        pos = 0
        while pos < len(source):
            match = quoted.match(source, pos)
            if match:
                tag_list.add(match.group(1) if match.group(1) is not None else match.group(2))
            else:
                match = plain.match(source, pos)
                tag_list.add(match.group(1))
            pos = match.end()
        return tag_list

    # 反序列化别名
    deserialize = from_string

    @property
    def delimiter(self) -> str:
        if self._delimiter is None:
            return get_tagging_settings().tag_list_delimiter
        return self._delimiter

    # ==================== 修改 ====================

    def add(self, *names: NameSource) -> "TagList":
        """追加名称，已存在（忽略大小写）的名称被忽略"""
        for name in self._flatten(names):
            name = name.strip()
            if name and not self.contains(name):
                self._names.append(name)
        return self

    def remove(self, *names: NameSource) -> "TagList":
        """移除名称（忽略大小写）"""
        doomed = {name.strip().lower() for name in self._flatten(names)}
        self._names = [name for name in self._names if name.lower() not in doomed]
        return self

    @staticmethod
    def _flatten(names) -> Iterator[str]:
        for item in names:
            if item is None:
                continue
            if isinstance(item, str):
                yield item
            else:
                for name in item:
                    if name is not None:
                        yield str(name)

    # ==================== 查询 ====================

    def contains(self, name: str) -> bool:
        """成员判断（忽略大小写）"""
        if name is None:
            return False
        key = name.strip().lower()
        return any(existing.lower() == key for existing in self._names)

    def difference(self, other: NameSource) -> "TagList":
        """在本列表中、但不在 other 中的名称，保持本列表顺序"""
        if not isinstance(other, TagList):
            other = TagList(other)
        return TagList(
            [name for name in self._names if not other.contains(name)],
            delimiter=self._delimiter,
        )

    def copy(self) -> "TagList":
        return TagList(self._names, delimiter=self._delimiter)

    # ==================== 序列化 ====================

    def to_string(self) -> str:
        """用分隔符连接，包含分隔符的名称用双引号包裹"""
        delimiter = self.delimiter
        return delimiter.join(
            f'"{name}"' if _needs_quotes(name, delimiter) else name
            for name in self._names
        )

    serialize = to_string

    def to_list(self) -> List[str]:
        return list(self._names)

    # ==================== 协议方法 ====================

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __sub__(self, other: NameSource) -> "TagList":
        return self.difference(other)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __getitem__(self, index):
        return self._names[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, TagList):
            return self._names == other._names
        if isinstance(other, (list, tuple)):
            return self._names == list(other)
        return NotImplemented

    __hash__ = None

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"TagList({self._names!r})"
