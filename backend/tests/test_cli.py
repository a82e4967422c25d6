from models import User


def test_seed_users_is_idempotent(app):
    runner = app.test_cli_runner()
    first = runner.invoke(args=["seed-users"])
    assert first.exit_code == 0
    assert "created admin admin@platform.com" in first.output
    assert "created student demo@student.com" in first.output

    second = runner.invoke(args=["seed-users"])
    assert "already exists" in second.output
    assert User.query.count() == 2
    assert User.query.filter_by(role="admin").one().email == "admin@platform.com"


def test_check_integrity_on_clean_db(app):
    result = app.test_cli_runner().invoke(args=["check-integrity"])
    assert result.exit_code == 0
    assert "No divergent users" in result.output
