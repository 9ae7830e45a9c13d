from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_caching import Cache

from sitesync.cache.invalidation import CacheInvalidationHook

# 初始化扩展对象 (暂不绑定 app)
db = SQLAlchemy()
migrate = Migrate()
cache = Cache()

# 写入成功后的缓存失效钩子，由应用工厂注册默认监听器
invalidation_hook = CacheInvalidationHook()
