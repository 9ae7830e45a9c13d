"""有序集合整体替换服务 (AtomicReplace)"""
import re
from flask import current_app

from sitesync.extensions import db, invalidation_hook
from sitesync.exceptions import TransactionFailure, ValidationError
from sitesync.models.collection import ORDERED_COLLECTIONS
from sitesync.utils.validators import missing_fields

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def _snake(name):
    """clientName -> client_name"""
    return _CAMEL_RE.sub('_', name).lower()


class AtomicReplace:
    """删除集合内全部条目并按提交列表重建，单一事务内完成"""

    @staticmethod
    def get_model(collection):
        model = ORDERED_COLLECTIONS.get(collection)
        if model is None:
            raise ValidationError(f'Unknown collection: {collection!r}',
                                  payload={'allowed': sorted(ORDERED_COLLECTIONS)})
        return model

    @staticmethod
    def list_items(collection):
        """按 order 返回集合条目"""
        model = AtomicReplace.get_model(collection)
        return model.query.order_by(model.order.asc(), model.id.asc()).all()

    @staticmethod
    def count(collection):
        return AtomicReplace.get_model(collection).query.count()

    @staticmethod
    def prepare_items(model, items):
        """
        过滤缺少必填字段的条目（宽松策略：坏行不阻塞其他行），并分配 order。
        显式 order 决定排序，最终按 1..N 连续编号；未提供时按提交位置。
        :return: 待插入的字段字典列表
        """
        candidates = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                current_app.logger.warning(f'[{model.COLLECTION}] 第 {index + 1} 项不是对象，已跳过')
                continue
            item = {_snake(k): v for k, v in item.items()}
            missing = missing_fields(item, model.REQUIRED_FIELDS)
            if missing:
                current_app.logger.warning(
                    f'[{model.COLLECTION}] 第 {index + 1} 项缺少必填字段 {missing}，已跳过')
                continue

            explicit = item.get('order')
            if isinstance(explicit, bool) or not isinstance(explicit, int) or explicit < 1:
                explicit = None
            row = {f: item[f] for f in model.FIELDS if f in item}
            candidates.append((explicit if explicit is not None else len(candidates) + 1,
                               len(candidates), row))

        candidates.sort(key=lambda c: (c[0], c[1]))
        rows = []
        for position, (_, _, row) in enumerate(candidates, start=1):
            row['order'] = position
            rows.append(row)
        return rows

    @staticmethod
    def replace(collection, items):
        """
        整体替换有序集合
        :param items: 提交的条目列表（位置即身份）
        :return: 插入的条目数
        :raises TransactionFailure: 事务失败，集合保持替换前状态
        """
        model = AtomicReplace.get_model(collection)
        if not isinstance(items, (list, tuple)):
            raise ValidationError('items must be an array')

        rows = AtomicReplace.prepare_items(model, items)
        before = model.query.count()

        try:
            # 1. 清空集合
            model.query.delete(synchronize_session=False)
            # 2. 按顺序重建
            db.session.add_all([model(**row) for row in rows])
            # 3. 提交事务
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f'[{collection}] 整体替换失败，已回滚: {e}')
            raise TransactionFailure(f'Replace of {collection} failed, nothing was changed',
                                     count=before) from e

        current_app.logger.info(f'[{collection}] 替换完成: {before} -> {len(rows)} 项')
        invalidation_hook.notify(collection)
        return len(rows)
