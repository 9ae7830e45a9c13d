"""
缓存失效钩子

写入（单项 upsert / 集合整体替换 / 文章写入）成功提交后调用 notify()，
已注册的监听器负责清理各自的缓存。只作用于当前进程：
其他进程中的文章缓存依赖页面侧 reconcile() 或 max_age 过期刷新。
"""
import logging

logger = logging.getLogger(__name__)

# 文章写入使用的集合名
ARTICLES = 'articles'


def section_cache_key(section):
    return f'content:section:{section}'


def collection_cache_key(name):
    return f'content:collection:{name}'


def article_cache_key(slug):
    return f'blog:post:{slug}'


class CacheInvalidationHook:
    """写后失效通知"""

    def __init__(self):
        self._listeners = []

    def connect(self, listener):
        """注册监听器 listener(collection, keys)，可作装饰器使用"""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def disconnect(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self):
        return list(self._listeners)

    def notify(self, collection, keys=None):
        """
        通知所有监听器
        :param collection: 被写入的区块 / 集合名，文章为 ARTICLES
        :param keys: 受影响的键（文章为 slug 列表），None 表示整个集合
        """
        keys = list(keys) if keys is not None else None
        for listener in list(self._listeners):
            try:
                listener(collection, keys)
            except Exception:
                # 写入已提交，监听器失败只记录，不回滚
                logger.exception('Cache invalidation listener failed for %s', collection)
