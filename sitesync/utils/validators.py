"""
内容校验器
在写入数据库之前调用，校验失败抛出 ValidationError，不产生任何持久化。
"""
import json
from sitesync.exceptions import ValidationError

VALUE_TYPES = ('text', 'image', 'video', 'json')

MAX_IMAGE_DIMENSION = 2000
MAX_VIDEO_SIZE = 50 * 1024 * 1024  # 50MB


def validate_value_type(value_type):
    """校验内容类型"""
    if value_type not in VALUE_TYPES:
        raise ValidationError(f'Invalid content type: {value_type!r}',
                              payload={'allowed': list(VALUE_TYPES)})
    return value_type


def validate_metadata(metadata):
    """metadata 必须是字典"""
    if metadata is None:
        return None
    if not isinstance(metadata, dict):
        raise ValidationError('metadata must be an object')
    return metadata


def validate_order(order):
    if order is None:
        return None
    if isinstance(order, bool):
        raise ValidationError('order must be an integer')
    try:
        return int(order)
    except (TypeError, ValueError):
        raise ValidationError('order must be an integer')


def validate_content_value(value, value_type, metadata=None):
    """
    按类型校验内容值，返回规范化后的字符串值
    - image: 宽高不超过 2000 像素
    - video: 文件不超过 50MB
    - json: 值必须是合法 JSON（传入 dict/list 时自动序列化）
    """
    validate_value_type(value_type)
    metadata = metadata or {}

    if value is None:
        raise ValidationError('Content value is required')

    if value_type == 'json':
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        if not isinstance(value, str):
            raise ValidationError('json content must be a JSON string')
        try:
            json.loads(value)
        except ValueError:
            raise ValidationError('Content value is not valid JSON')
        return value

    if not isinstance(value, str):
        raise ValidationError('Content value must be a string')

    if value_type == 'image':
        width = _number(metadata, 'width')
        height = _number(metadata, 'height')
        if width and height and (width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION):
            raise ValidationError('Image dimensions too large. Maximum 2000x2000 pixels.')

    if value_type == 'video':
        max_size = _number(metadata, 'maxSize')
        if max_size and max_size > MAX_VIDEO_SIZE:
            raise ValidationError('Video file too large. Maximum 50MB.')

    return value


def _number(metadata, field):
    """metadata 中的数值字段，缺省为 None，非数字抛出 ValidationError"""
    val = metadata.get(field)
    if val is None:
        return None
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise ValidationError(f'metadata.{field} must be a number', payload={'field': field})
    return val


def missing_fields(item, required):
    """返回 item 中缺失（None 或空白字符串）的必填字段"""
    missing = []
    for field in required:
        val = item.get(field)
        if val is None or (isinstance(val, str) and not val.strip()):
            missing.append(field)
    return missing
