import logging

from azure_login.utils.logging import SecretRedactingFilter, redact, setup_logging

from conftest import make_jwt


def test_jwts_are_masked():
    token = make_jwt(3600)

    assert token not in redact(f"Bearer {token}")
    assert "<redacted-jwt>" in redact(f"Bearer {token}")


def test_secret_parameters_are_masked():
    assert redact("http://localhost:1234/?code=abc123&state=x") == (
        "http://localhost:1234/?code=<redacted>&state=x"
    )
    assert redact('{"refresh_token": "0.AAA-secret"}') == '{"refresh_token": "<redacted>"}'
    assert redact("plain message") == "plain message"


def test_filter_formats_arguments_before_masking():
    record = logging.LogRecord(
        "azure_login", logging.INFO, __file__, 1, "callback: %s", ("GET /?code=abc HTTP/1.1",), None
    )

    assert SecretRedactingFilter().filter(record) is True
    assert record.getMessage() == "callback: GET /?code=<redacted> HTTP/1.1"


def test_setup_logging_writes_redacted_file(tmp_path):
    log_file = tmp_path / "azure-login.log"
    logger = setup_logging("DEBUG", log_file)

    logging.getLogger("azure_login.auth.test").debug("access_token=%s", "very-secret")
    for handler in logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert "very-secret" not in content
    assert "access_token=<redacted>" in content

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
