from flask import request
from sitesync.exceptions import ValidationError


def json_body():
    """读取 JSON 请求体，必须是对象"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Invalid JSON body')
    return data
