class SiteSyncException(Exception):
    """SiteSync 系统基础异常类"""
    def __init__(self, message, code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['code'] = self.code
        rv['success'] = False
        return rv


class ValidationError(SiteSyncException):
    """数据校验失败（缺少必填字段、类型非法等）"""
    def __init__(self, message="Invalid data", payload=None):
        super().__init__(message, code=400, payload=payload)


class NotFound(SiteSyncException):
    """目标不存在"""
    def __init__(self, message="Not found", payload=None):
        super().__init__(message, code=404, payload=payload)


class ConflictError(SiteSyncException):
    """唯一键冲突（例如 slug 已被占用），不重试"""
    def __init__(self, message="Conflict", payload=None):
        super().__init__(message, code=409, payload=payload)


class TransactionFailure(SiteSyncException):
    """整体替换事务失败，集合保持替换前状态"""
    def __init__(self, message="Transaction failed", count=0, payload=None):
        payload = dict(payload or ())
        payload['count'] = count
        super().__init__(message, code=500, payload=payload)
        self.count = count


class TransientFetchError(SiteSyncException):
    """网络失败或超时（文章缓存初始化 / 回退抓取）"""
    def __init__(self, message="Upstream fetch failed", payload=None):
        super().__init__(message, code=503, payload=payload)
