import os
from dotenv import load_dotenv

# 加载 .env 环境变量
load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))


def _split_urls(raw):
    """逗号分隔的地址列表 -> list，忽略空项"""
    return [u.strip().rstrip('/') for u in (raw or '').split(',') if u.strip()]


class Config:
    """基础配置类"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'hard-to-guess-string'

    # 数据库配置
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_RECORD_QUERIES = True

    # 缓存配置 (默认使用 SimpleCache，生产环境可改 Redis)
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300

    # 文章缓存 / 公共 API 配置
    ARTICLE_API_URL = (os.environ.get('ARTICLE_API_URL') or 'http://localhost:5001/api').rstrip('/')
    # 本地多网卡开发时的备用地址，按顺序尝试
    ARTICLE_API_FALLBACK_URLS = _split_urls(os.environ.get(
        'ARTICLE_API_FALLBACK_URLS',
        'http://127.0.0.1:5001/api,http://0.0.0.0:5001/api'
    ))
    ARTICLE_FETCH_TIMEOUT = float(os.environ.get('ARTICLE_FETCH_TIMEOUT', 2.5))
    ARTICLE_CACHE_MAX_AGE = int(os.environ.get('ARTICLE_CACHE_MAX_AGE', 1800))  # 30 分钟
    ARTICLE_LISTING_LIMIT = int(os.environ.get('ARTICLE_LISTING_LIMIT', 1000))

    @staticmethod
    def init_app(app):
        pass


class DevelopmentConfig(Config):
    """开发环境配置"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'sitesync.db')

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)
        instance_dir = os.path.join(basedir, 'instance')
        if not os.path.exists(instance_dir):
            os.makedirs(instance_dir)


class ProductionConfig(Config):
    """生产环境配置"""
    DEBUG = False

    DATABASE_URL = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'sitesync_prod.db')
    # PostgreSQL URL 修正（部分托管平台使用 postgres://）
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    CACHE_TYPE = "SimpleCache"
    ARTICLE_API_URL = 'http://api.test/api'
    ARTICLE_API_FALLBACK_URLS = ['http://alt1.test/api', 'http://alt2.test/api']
    ARTICLE_FETCH_TIMEOUT = 0.5


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
