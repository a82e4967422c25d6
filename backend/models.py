from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

from scoring.leveling import level_info

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(dt):
    return dt.isoformat() + "Z" if dt else None


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="student", index=True)
    level = db.Column(db.Integer, nullable=False, default=1)
    experience = db.Column(db.Integer, nullable=False, default=0)
    assessment_completed = db.Column(db.Boolean, nullable=False, default=False)
    # plain id, not a FK: results already point back at users
    assessment_result_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self, include_result=False):
        out = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "level": self.level,
            "experience": self.experience,
            "levelInfo": level_info(self.experience).to_dict(),
            "assessmentCompleted": self.assessment_completed,
            "assessmentResult": self.assessment_result_id,
            "createdAt": _iso(self.created_at),
        }
        if include_result:
            result = db.session.get(AssessmentResult, self.assessment_result_id) if self.assessment_result_id else None
            out["assessmentResult"] = result.to_dict(include_user=False) if result else None
        return out


class AssessmentResult(db.Model):
    __tablename__ = "assessment_results"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    responses = db.Column(db.JSON, nullable=False)
    career_profile = db.Column(db.JSON, nullable=False)
    dominant_type = db.Column(db.String(20), nullable=False, index=True)
    experience_gained = db.Column(db.Integer, nullable=False, default=150)
    completed_at = db.Column(db.DateTime, default=utcnow, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    user = db.relationship("User", lazy="joined")

    def to_dict(self, include_user=True):
        out = {
            "id": self.id,
            "user": {"id": self.user.id, "name": self.user.name, "email": self.user.email} if include_user else self.user_id,
            "responses": self.responses,
            "careerProfile": self.career_profile,
            "experienceGained": self.experience_gained,
            "completedAt": _iso(self.completed_at),
        }
        return out
