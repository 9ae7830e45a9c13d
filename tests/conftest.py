import httpx
import pytest

from sitesync import create_app
from sitesync.extensions import db, invalidation_hook


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def hook_listeners():
    """注册的临时监听器在测试结束后移除"""
    added = []

    def connect(listener):
        invalidation_hook.connect(listener)
        added.append(listener)
        return listener

    yield connect
    for listener in added:
        invalidation_hook.disconnect(listener)


class RecordingTransport(httpx.MockTransport):
    """记录所有请求的 MockTransport"""

    def __init__(self, handler):
        self.requests = []

        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    def urls(self):
        return [str(r.url) for r in self.requests]


@pytest.fixture
def recording_transport():
    return RecordingTransport
