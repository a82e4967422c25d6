import pytest

from app import create_app
from config import TestConfig
from models import db, User
from scoring.bank import QUESTIONS
from scoring.leveling import level_for
from security import create_token, hash_password


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(name="Ada Student", email="ada@example.com", password="secret1", role="student", experience=0):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            experience=experience,
            level=level_for(experience),
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def student(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(name="Platform Administrator", email="admin@platform.com", role="admin")


@pytest.fixture
def auth():
    def _auth(user):
        return {"Authorization": f"Bearer {create_token(user.id)}"}
    return _auth


def build_responses(categories):
    """One response per bank question, answer text taken from the bank."""
    out = []
    for q, category in zip(QUESTIONS, categories):
        answer = next((o["text"] for o in q["options"] if o["category"] == category), "Something else")
        out.append({"questionId": q["id"], "answer": answer, "category": category})
    return out


@pytest.fixture
def submit(client, auth):
    def _submit(user, categories=("practical", "analytical", "practical")):
        return client.post(
            "/api/assessment/submit",
            json={"responses": build_responses(categories)},
            headers=auth(user),
        )
    return _submit


def fresh(model, ident):
    db.session.expire_all()
    return db.session.get(model, ident)
