from models import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class ProgressDocument(db.Model):
    """ProgressDocument model - one JSON document per (collection, key)"""
    __tablename__ = 'progress_documents'

    id = db.Column(db.Integer, primary_key=True)

    # vocabularyProgress, userProgress, lessonProgress, lessons
    collection = db.Column(db.String(64), nullable=False)
    doc_key = db.Column(db.String(255), nullable=False)

    data = db.Column(db.JSON, nullable=False, default=dict)

    # Optimistic concurrency: UPDATE ... WHERE version = <read version>
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint('collection', 'doc_key', name='uq_collection_doc_key'),
        db.Index('idx_collection', 'collection'),
    )

    __mapper_args__ = {
        'version_id_col': version
    }

    def __repr__(self):
        return f'<ProgressDocument {self.collection}/{self.doc_key} v{self.version}>'
