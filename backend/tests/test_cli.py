# Overview: Pytest coverage for the Flask CLI command groups.

from stockroom.models import Company, SessionToken

from conftest import PASSWORD, token_for


def test_register_and_list_companies(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "companies", "register",
        "--name", "Delta Stores", "--gst", "33DDDDD4444D1Z1",
        "--email", "owner@delta.test", "--password", PASSWORD,
    ])

    assert result.exit_code == 0, result.output
    assert "PASS Registered Delta Stores" in result.output
    company = db_session.query(Company).filter_by(gst_number="33DDDDD4444D1Z1").one()

    listing = runner.invoke(args=["companies", "list"])
    assert company.company_id in listing.output


def test_register_duplicate_gst_fails(app, db_session, company_a):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "companies", "register",
        "--name", "Copycat", "--gst", "22AAAAA0000A1Z5",
        "--email", "copy@cat.test", "--password", PASSWORD,
    ])

    assert result.exit_code == 1
    assert "FAIL Company with this GST number already exists" in result.output


def test_cleanup_sessions(app, db_session, company_a):
    _, user = company_a
    token_for(user)

    result = app.test_cli_runner().invoke(args=["system", "cleanup-sessions", "--older-than-days", "0"])

    assert result.exit_code == 0
    assert "Deleted 0 sessions" in result.output
    assert db_session.query(SessionToken).count() == 1
