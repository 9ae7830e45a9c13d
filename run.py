import os
from sitesync import create_app, db
from sitesync.models import (
    ContentRecord, Category, Article,
    ExpertiseItem, Testimonial, ArticleWidget, ServicePackage
)
from sitesync.services.content_store import ContentStore
from sitesync.services.atomic_replace import AtomicReplace
from sitesync.cache.article_cache import ArticleCache

# 从环境变量获取配置模式
# 支持 FLASK_ENV 或 FLASK_CONFIG
config_name = os.getenv('FLASK_ENV') or os.getenv('FLASK_CONFIG') or 'default'
if config_name in ('development', 'dev'):
    config_name = 'development'

app = create_app(config_name)


@app.shell_context_processor
def make_shell_context():
    """
    配置 Flask Shell 上下文。
    允许在命令行中使用 'flask shell' 时自动导入 db、模型与服务。
    """
    return dict(
        db=db,
        app=app,
        ContentRecord=ContentRecord,
        Category=Category,
        Article=Article,
        ExpertiseItem=ExpertiseItem,
        Testimonial=Testimonial,
        ArticleWidget=ArticleWidget,
        ServicePackage=ServicePackage,
        ContentStore=ContentStore,
        AtomicReplace=AtomicReplace,
        ArticleCache=ArticleCache,
    )


if __name__ == '__main__':
    print("-------------------------------------------------------")
    print("   SITESYNC CONTENT API                                ")
    print("   Target: Localhost:5001                              ")
    print("-------------------------------------------------------")
    app.run(host='0.0.0.0', port=5001)
