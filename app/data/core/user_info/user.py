from app import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime
from app.buisness.core.data_insertion_mixin import DataInsertionMixin

class User(UserMixin, DataInsertionMixin, db.Model):
    """
    Actor identity. Every ledger mutation and audit entry is attributed to a
    user id; the system user owns build and debug data.
    """
    __tablename__ = 'users'

    SYSTEM_USERNAME = 'system'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)
    # System accounts act on behalf of scripts and never log in
    is_system = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    audit_entries = db.relationship('AuditEntry', back_populates='user', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @classmethod
    def system_user(cls):
        return cls.query.filter_by(username=cls.SYSTEM_USERNAME).first()

    def __repr__(self):
        return f'<User {self.username}>'

@login_manager.user_loader
def load_user(user_id):
    user = db.session.get(User, int(user_id))
    if user is None or user.is_system:
        return None
    return user
