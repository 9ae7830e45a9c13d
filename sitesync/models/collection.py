"""
有序集合模型
这些实体没有跨编辑稳定的业务主键，身份由提交列表中的位置决定，
只能通过整体替换 (AtomicReplace) 写入。
"""
from sitesync.extensions import db
from .base import BaseModel


class OrderedItem(BaseModel):
    """有序集合条目基类"""
    __abstract__ = True

    COLLECTION = None        # 集合名称，对应 API 路径
    FIELDS = ()              # 可写字段
    REQUIRED_FIELDS = ()     # 必填字段，缺失则在替换时被过滤

    order = db.Column(db.Integer, nullable=False, default=0, index=True)


class ExpertiseItem(OrderedItem):
    """首页专业领域"""
    __tablename__ = 'col_expertise'

    COLLECTION = 'expertise'
    FIELDS = ('title', 'description', 'icon')
    REQUIRED_FIELDS = ('title', 'description')

    title = db.Column(db.String(256), nullable=False)
    description = db.Column(db.Text, nullable=False)
    icon = db.Column(db.String(512))


class Testimonial(OrderedItem):
    """客户评价"""
    __tablename__ = 'col_testimonials'

    COLLECTION = 'testimonials'
    FIELDS = ('text', 'client_name', 'company_name', 'client_image', 'show_on_homepage', 'show_on_services')
    REQUIRED_FIELDS = ('text', 'client_name')

    text = db.Column(db.Text, nullable=False)
    client_name = db.Column(db.String(128), nullable=False)
    company_name = db.Column(db.String(128))
    client_image = db.Column(db.String(512))
    show_on_homepage = db.Column(db.Boolean, default=True)
    show_on_services = db.Column(db.Boolean, default=True)


class ArticleWidget(OrderedItem):
    """文章侧边栏挂件"""
    __tablename__ = 'col_article_widgets'

    COLLECTION = 'widgets'
    FIELDS = ('type', 'title', 'content', 'settings', 'is_active')
    REQUIRED_FIELDS = ('title', 'content')

    type = db.Column(db.String(32), default='html')
    title = db.Column(db.String(256), nullable=False)
    content = db.Column(db.Text, nullable=False)
    settings = db.Column(db.JSON, default=dict)  # width / height 等
    is_active = db.Column(db.Boolean, default=True)


class ServicePackage(OrderedItem):
    """服务套餐"""
    __tablename__ = 'col_service_packages'

    COLLECTION = 'packages'
    FIELDS = ('name', 'description', 'price', 'features', 'highlighted')
    REQUIRED_FIELDS = ('name', 'price')

    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.String(64), nullable=False)  # 展示用价格文本，如 "$499/mo"
    features = db.Column(db.JSON, default=list)
    highlighted = db.Column(db.Boolean, default=False)


# 集合名 -> 模型
ORDERED_COLLECTIONS = {
    model.COLLECTION: model
    for model in (ExpertiseItem, Testimonial, ArticleWidget, ServicePackage)
}
