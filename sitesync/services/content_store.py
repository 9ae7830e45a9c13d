"""内容存储服务 - 页面区块键值内容的读取与 upsert"""
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sitesync.extensions import db, cache, invalidation_hook
from sitesync.exceptions import SiteSyncException, ConflictError, NotFound, ValidationError
from sitesync.models.content import ContentRecord
from sitesync.cache.invalidation import section_cache_key
from sitesync.utils.validators import (
    validate_content_value, validate_metadata, validate_order, validate_value_type
)


class ContentStore:
    """(collection, key) 唯一的内容存储"""

    @staticmethod
    def get(collection):
        """
        返回某区块的全部记录
        :return: {key: ContentRecord}，区块不存在时为空字典
        """
        records = ContentRecord.query.filter_by(collection=collection) \
            .order_by(ContentRecord.order.asc(), ContentRecord.key.asc()).all()
        return {r.key: r for r in records}

    @staticmethod
    def get_section_map(collection):
        """公共 GET 接口格式 {key: {value, type, ...}}，经 Flask-Caching 缓存，写入后失效"""
        cache_key = section_cache_key(collection)
        data = cache.get(cache_key)
        if data is None:
            data = {key: r.to_public() for key, r in ContentStore.get(collection).items()}
            cache.set(cache_key, data)
        return data

    @staticmethod
    def list_sections():
        """所有区块及其记录数"""
        rows = db.session.query(ContentRecord.collection, func.count(ContentRecord.id)) \
            .group_by(ContentRecord.collection).order_by(ContentRecord.collection).all()
        return [{'section': name, 'count': count} for name, count in rows]

    @staticmethod
    def upsert(collection, key, value, value_type='text', metadata=None, order=None, notify=True):
        """
        创建或更新单条内容
        先校验再写入；相同内容重复提交不产生写入，但仍返回成功。
        metadata / order 为 None 时保留原值（新建时分别为 {} 和 0）。
        :return: ContentRecord
        """
        if not collection or not key:
            raise ValidationError('section and key are required')
        value_type = validate_value_type(value_type or 'text')
        metadata = validate_metadata(metadata)
        order = validate_order(order)
        value = validate_content_value(value, value_type, metadata)

        record = ContentRecord.query.filter_by(collection=collection, key=key).first()
        if record is not None and record.value == value and record.value_type == value_type \
                and (metadata is None or (record.meta or {}) == metadata) \
                and (order is None or record.order == order):
            return record

        try:
            if record is None:
                record = ContentRecord(
                    collection=collection,
                    key=key,
                    value=value,
                    value_type=value_type,
                    meta=metadata if metadata is not None else {},
                    order=order if order is not None else 0
                )
                db.session.add(record)
            else:
                record.value = value
                record.value_type = value_type
                if metadata is not None:
                    record.meta = metadata
                if order is not None:
                    record.order = order
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f'Content {collection}.{key} already exists')
        except SQLAlchemyError:
            db.session.rollback()
            raise

        if notify:
            invalidation_hook.notify(collection, [key])
        return record

    @staticmethod
    def bulk_update(updates, prefix=''):
        """
        批量 upsert，逐项报告结果（部分成功不回滚其他项）
        :param updates: [{'section': 'hero', 'key': 'title', 'value': 'B', 'type': 'text', ...}]
        :param prefix: 区块前缀，如 'homepage_'
        :return: [{'success': bool, 'section', 'key', 'error'?}]
        """
        results = []
        touched = {}
        for item in updates:
            if not isinstance(item, dict):
                results.append({'success': False, 'error': 'Invalid update item'})
                continue
            section = item.get('section')
            key = item.get('key')
            collection = f'{prefix}{section}' if section else None
            try:
                record = ContentStore.upsert(
                    collection, key, item.get('value'),
                    value_type=item.get('type') or 'text',
                    metadata=item.get('metadata'),
                    order=item.get('order'),
                    notify=False
                )
                touched.setdefault(collection, []).append(key)
                results.append({'success': True, 'section': section, 'key': key, 'content': record.to_dict()})
            except SiteSyncException as e:
                results.append({'success': False, 'section': section, 'key': key, 'error': e.message})
            except SQLAlchemyError as e:
                current_app.logger.error(f'Bulk update {collection}.{key} failed: {e}')
                results.append({'success': False, 'section': section, 'key': key, 'error': str(e)})

        for collection, keys in touched.items():
            invalidation_hook.notify(collection, keys)
        return results

    @staticmethod
    def delete(collection, key):
        """删除单条内容"""
        record = ContentRecord.query.filter_by(collection=collection, key=key).first()
        if record is None:
            raise NotFound(f'Content {collection}.{key} not found')
        try:
            db.session.delete(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        invalidation_hook.notify(collection, [key])
