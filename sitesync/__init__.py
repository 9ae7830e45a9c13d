import logging
import colorlog
from flask import Flask, jsonify
from config import config
from sitesync.extensions import db, migrate, cache, invalidation_hook
from sitesync.exceptions import SiteSyncException
from sitesync.cache.invalidation import (
    ARTICLES, article_cache_key, collection_cache_key, section_cache_key
)

from sitesync import commands


def create_app(config_name='default'):
    """SiteSync 应用工厂函数"""
    app = Flask(__name__)

    # 1. 加载配置
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    # 2. 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # 3. 配置日志
    configure_logging(app)

    # 4. 注册蓝图 (Blueprints)
    register_blueprints(app)

    # 5. 注册全局错误处理
    register_error_handlers(app)

    # 6. 注册 CLI 命令
    register_commands(app)

    # 7. 写入后清理接口缓存
    invalidation_hook.connect(clear_response_cache)

    return app


def clear_response_cache(collection, keys):
    """CacheInvalidationHook 默认监听器：清理 Flask-Caching 中的接口缓存"""
    if collection == ARTICLES:
        if keys is None:
            cache.clear()
            return
        for slug in keys:
            cache.delete(article_cache_key(slug))
        return
    cache.delete(section_cache_key(collection))
    cache.delete(collection_cache_key(collection))


def register_blueprints(app):
    """注册所有业务模块蓝图"""
    # 页面区块内容
    from sitesync.blueprints.content import content_bp
    app.register_blueprint(content_bp, url_prefix='/api/content')

    # 有序集合（专业领域、评价、挂件、套餐）
    from sitesync.blueprints.collections import collections_bp
    app.register_blueprint(collections_bp, url_prefix='/api/collections')

    # 博客文章
    from sitesync.blueprints.blog import blog_bp
    app.register_blueprint(blog_bp, url_prefix='/api/blogs')


def register_error_handlers(app):
    @app.errorhandler(SiteSyncException)
    def handle_sitesync_exception(e):
        if e.code >= 500:
            app.logger.error(f'{e.__class__.__name__}: {e.message}')
        return jsonify(e.to_dict()), e.code

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({'success': False, 'code': 404, 'message': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'success': False, 'code': 405, 'message': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_server_error(e):
        return jsonify({'success': False, 'code': 500, 'message': 'Server error'}), 500


def register_commands(app):
    """注册 Flask CLI 命令"""
    app.cli.add_command(commands.seed)
    app.cli.add_command(commands.status)
    app.cli.add_command(commands.warm_cache)


def configure_logging(app):
    """配置彩色控制台日志，提升开发体验"""
    if app.debug:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)

        formatter = colorlog.ColoredFormatter(
            "%(log_color)s[%(asctime)s] %(levelname)-8s%(reset)s %(blue)s%(message)s",
            datefmt="%H:%M:%S",
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            secondary_log_colors={},
            style='%'
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        # 缓存 / 客户端模块使用模块级 logger
        logging.getLogger('sitesync').addHandler(handler)
        logging.getLogger('sitesync').setLevel(logging.INFO)
