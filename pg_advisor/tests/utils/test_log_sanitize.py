# python -m pytest pg_advisor/tests/utils/test_log_sanitize.py -v

from pg_advisor.utils.log_sanitize import sanitize_for_log


def test_sensitive_keys_are_redacted():
    params = {"host": "db.internal", "user": "advisor", "password": "hunter2", "nested": {"api_token": "abc"}}

    out = sanitize_for_log(params)

    assert out["host"] == "db.internal"
    assert out["user"] == "advisor"
    assert out["password"] == "<REDACTED>"
    assert out["nested"]["api_token"] == "<REDACTED>"
    assert params["password"] == "hunter2"


def test_dsn_password_is_masked_in_strings():
    out = sanitize_for_log(["postgresql://advisor:hunter2@db:5432/app", 5])

    assert out == ["postgresql://advisor:<REDACTED>@db:5432/app", 5]
