"""
变更计算 (DiffEngine)

管理页面加载时保存一份快照，保存时与当前状态比对，只提交真正变化的字段。
- 键值内容：value 按字符串比较、metadata 深比较，新键总是提交；
- 有序集合：条目没有稳定身份，任何差异都视为整个集合变化，整体重新提交。
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

CONTENT = 'content'
COLLECTION = 'collection'


@dataclass
class ContentChange:
    """单个字段的变更，字段结构与批量 PUT 的条目一致"""
    section: Optional[str]
    key: str
    value: Any
    type: Optional[str] = None
    metadata: Optional[dict] = None
    order: Optional[int] = None

    def to_dict(self):
        data = {'section': self.section, 'key': self.key, 'value': self.value}
        for name in ('type', 'metadata', 'order'):
            val = getattr(self, name)
            if val is not None:
                data[name] = val
        return data


@dataclass
class ChangeSet:
    kind: str
    changes: List[Any] = field(default_factory=list)
    changed: bool = False

    def __bool__(self):
        return self.changed

    def __len__(self):
        return len(self.changes)

    def to_payload(self):
        if self.kind == COLLECTION:
            return {'items': list(self.changes)}
        return {'updates': [c.to_dict() for c in self.changes]}


def _as_text(value):
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, ensure_ascii=False)
    return str(value)


def _value_of(item):
    return item.get('value') if isinstance(item, Mapping) else item


def _metadata_of(item):
    return item.get('metadata') if isinstance(item, Mapping) else None


def _field_changed(original_item, current_item):
    if _as_text(_value_of(original_item)) != _as_text(_value_of(current_item)):
        return True
    return (_metadata_of(original_item) or {}) != (_metadata_of(current_item) or {})


def _make_change(section, key, item):
    if isinstance(item, Mapping):
        return ContentChange(
            section=section,
            key=key,
            value=item.get('value'),
            type=item.get('type'),
            metadata=item.get('metadata'),
            order=item.get('order'),
        )
    return ContentChange(section=section, key=key, value=item)


def diff_content(original: Optional[Mapping[str, Any]], current: Mapping[str, Any],
                 section: Optional[str] = None) -> ChangeSet:
    """
    比对单个区块的键值内容
    :param original: 加载时的快照 {key: value | {value, type, metadata, order}}，
                     None 表示首次加载失败或尚无内容
    :param current: 当前编辑状态，格式同上
    """
    changes = []
    for key, item in current.items():
        if original is None or key not in original or _field_changed(original[key], item):
            changes.append(_make_change(section, key, item))
    return ChangeSet(CONTENT, changes, changed=bool(changes))


def diff_sections(original: Optional[Mapping[str, Mapping[str, Any]]],
                  current: Mapping[str, Mapping[str, Any]]) -> ChangeSet:
    """多区块页面（如首页）：{section: {key: item}}，结果合并为一次批量提交"""
    changes = []
    for section, items in current.items():
        snapshot = None if original is None else original.get(section)
        if original is not None and snapshot is None:
            snapshot = {}
        changes.extend(diff_content(snapshot, items, section=section).changes)
    return ChangeSet(CONTENT, changes, changed=bool(changes))


def diff_collection(original: Optional[Sequence[Dict[str, Any]]],
                    current: Sequence[Dict[str, Any]]) -> ChangeSet:
    """有序集合：数量、顺序或任一字段不同即整体变化，返回完整的当前列表"""
    current = list(current)
    if original is None:
        return ChangeSet(COLLECTION, current, changed=True)
    original = list(original)
    changed = len(original) != len(current) or any(a != b for a, b in zip(original, current))
    return ChangeSet(COLLECTION, current if changed else [], changed=changed)


def diff(original, current, section=None) -> ChangeSet:
    """按 current 的形态分派：列表为有序集合，映射为键值内容"""
    if isinstance(current, (list, tuple)):
        return diff_collection(original, current)
    return diff_content(original, current, section=section)
