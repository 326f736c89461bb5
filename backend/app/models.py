from app import db


class KVRecord(db.Model):
    """One key-value blob with a version counter used for conditional writes."""
    __tablename__ = 'kv_record'
    key = db.Column(db.String(255), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
