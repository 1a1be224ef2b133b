"""Unit tests for settings."""

from automeet.config import DEFAULT_FROM_EMAIL, Settings


class TestSettings:
    def test_reads_environment(self, mock_settings):
        config = Settings()
        assert config.auth_jwt_secret == "test-secret"
        assert config.use_sendgrid is False
        assert config.from_email == "mailer@automeet.test"
        assert ":test-db-password@" in config.database_url

    def test_from_email_precedence(self):
        assert Settings(mail_from="ops@acme.io", smtp_user="mailer@acme.io").from_email == "ops@acme.io"
        assert Settings(mail_from="", smtp_user="").from_email == DEFAULT_FROM_EMAIL

    def test_sendgrid_selected_by_key(self):
        assert Settings(sendgrid_api_key="sg-test").use_sendgrid is True
