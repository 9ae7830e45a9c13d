from flask import Blueprint

# 注意：url_prefix 在 sitesync/__init__.py 注册时设置，这里不重复设置
collections_bp = Blueprint('collections', __name__)

from . import routes
