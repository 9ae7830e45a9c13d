"""
页面区块内容接口
GET 公开读取，PUT/DELETE 供后台编辑使用（鉴权由外层网关负责）
"""
from flask import jsonify, request, current_app
from sitesync.blueprints import json_body
from sitesync.blueprints.content import content_bp
from sitesync.exceptions import ValidationError
from sitesync.services.content_store import ContentStore


@content_bp.route('', methods=['GET'])
def list_sections():
    """所有区块及记录数"""
    return jsonify(ContentStore.list_sections())


@content_bp.route('/<section>', methods=['GET'])
def get_section(section):
    """区块内容 {key: {value, type, updatedAt}}，不存在时返回空对象"""
    return jsonify(ContentStore.get_section_map(section))


@content_bp.route('/<section>/<key>', methods=['PUT'])
def update_field(section, key):
    """单项 upsert"""
    data = json_body()
    record = ContentStore.upsert(
        section, key, data.get('value'),
        value_type=data.get('type') or 'text',
        metadata=data.get('metadata'),
        order=data.get('order')
    )
    return jsonify({'success': True, 'message': 'Content updated successfully', 'content': record.to_dict()})


@content_bp.route('/<section>/<key>', methods=['DELETE'])
def delete_field(section, key):
    ContentStore.delete(section, key)
    return jsonify({'success': True, 'message': 'Content deleted successfully'})


@content_bp.route('/bulk', methods=['PUT'])
def bulk_update():
    """
    批量更新：{updates: [{section, key, value, type?, metadata?, order?}]}
    ?page=homepage 时区块名自动加前缀 homepage_
    逐项报告结果，部分失败不影响其他项
    """
    data = json_body()
    updates = data.get('updates')
    if not isinstance(updates, list):
        raise ValidationError('Updates must be an array')

    page = request.args.get('page', '', type=str)
    prefix = f'{page}_' if page else ''
    results = ContentStore.bulk_update(updates, prefix=prefix)

    failed = sum(1 for r in results if not r['success'])
    if failed:
        current_app.logger.warning(f'批量更新: {len(results) - failed} 成功, {failed} 失败')
    return jsonify({
        'success': failed == 0,
        'message': 'Bulk update completed',
        'updated': len(results) - failed,
        'failed': failed,
        'results': results
    })
