#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
通用辅助函数：ID生成、时间戳、列表去重
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, List


def now_iso() -> str:
    """当前UTC时间的ISO8601字符串（毫秒精度，以Z结尾）"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id(prefix: str, *parts: object) -> str:
    """
    生成带前缀的唯一ID，例如 rule_heading_1718000000000_3f2a9c

    毫秒时间戳保留可读性，随机后缀保证同一毫秒内也不冲突。
    """
    segments = [prefix, *(str(part) for part in parts if part not in (None, ""))]
    segments.append(str(int(time.time() * 1000)))
    segments.append(uuid.uuid4().hex[:6])
    return "_".join(segments)


def dedupe_preserve_order(items: Iterable[str]) -> List[str]:
    """去掉重复与空白项，保持首次出现的顺序"""
    seen = set()
    result: List[str] = []
    for item in items:
        if not isinstance(item, str):
            item = str(item)
        key = item.strip()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result
