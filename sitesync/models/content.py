from sitesync.extensions import db
from .base import BaseModel


class ContentRecord(BaseModel):
    """页面区块内容：(collection, key) 唯一的键值记录"""
    __tablename__ = 'site_content'
    __table_args__ = (
        db.UniqueConstraint('collection', 'key', name='uq_content_collection_key'),
    )

    TYPE_TEXT = 'text'
    TYPE_IMAGE = 'image'
    TYPE_VIDEO = 'video'
    TYPE_JSON = 'json'
    VALUE_TYPES = (TYPE_TEXT, TYPE_IMAGE, TYPE_VIDEO, TYPE_JSON)

    collection = db.Column(db.String(64), nullable=False, index=True)  # e.g. homepage_hero
    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.Text, nullable=False, default='')
    value_type = db.Column(db.String(16), nullable=False, default=TYPE_TEXT)
    # 'metadata' 是 Declarative 保留属性名，映射为 meta
    meta = db.Column('metadata', db.JSON, default=dict)
    order = db.Column(db.Integer, default=0)

    def to_dict(self):
        data = super().to_dict()
        data['metadata'] = data.pop('meta') or {}
        return data

    def to_public(self):
        """公共 GET 接口的单项格式"""
        return {
            'value': self.value,
            'type': self.value_type,
            'metadata': self.meta or {},
            'order': self.order,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<ContentRecord {self.collection}.{self.key}>'
