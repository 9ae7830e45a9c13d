from flask import jsonify
from sitesync.extensions import cache
from sitesync.blueprints import json_body
from sitesync.blueprints.collections import collections_bp
from sitesync.cache.invalidation import collection_cache_key
from sitesync.models.collection import ORDERED_COLLECTIONS
from sitesync.services.atomic_replace import AtomicReplace


@collections_bp.route('', methods=['GET'])
def index():
    """可用集合及条目数"""
    return jsonify([
        {'collection': name, 'count': AtomicReplace.count(name)}
        for name in sorted(ORDERED_COLLECTIONS)
    ])


@collections_bp.route('/<name>', methods=['GET'])
def get_collection(name):
    """按 order 返回集合条目"""
    cache_key = collection_cache_key(name)
    data = cache.get(cache_key)
    if data is None:
        items = [item.to_dict() for item in AtomicReplace.list_items(name)]
        data = {'collection': name, 'items': items, 'count': len(items)}
        cache.set(cache_key, data)
    return jsonify(data)


@collections_bp.route('/<name>', methods=['PUT'])
def replace_collection(name):
    """
    整体替换：{items: [...]}
    全部成功或全部不变；缺少必填字段的条目被过滤
    """
    data = json_body()
    count = AtomicReplace.replace(name, data.get('items'))
    return jsonify({'success': True, 'message': f'{name} updated successfully', 'count': count})
