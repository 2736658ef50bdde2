from models.email_template import EmailTemplate
from models.user import AdminUser


def test_create_admin_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-admin", "dispatch", "Dispatch@AirTransfer.test", "s3cret-pass"])

    assert result.exit_code == 0
    assert "Admin dispatch created" in result.output
    admin = AdminUser.query.filter_by(username="dispatch").first()
    assert admin.email == "dispatch@airtransfer.test"
    assert admin.check_password("s3cret-pass")


def test_create_admin_twice_fails(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["create-admin", "dispatch", "d@airtransfer.test", "s3cret-pass"])

    result = runner.invoke(args=["create-admin", "dispatch", "d@airtransfer.test", "s3cret-pass"])

    assert result.exit_code != 0
    assert "already exists" in result.output
    assert AdminUser.query.filter_by(username="dispatch").count() == 1


def test_seed_is_idempotent(app):
    runner = app.test_cli_runner()
    assert runner.invoke(args=["seed"]).exit_code == 0
    assert runner.invoke(args=["seed"]).exit_code == 0
    assert EmailTemplate.query.count() == 6
