"""
Unit tests for configuration loading.

Run with: pytest tests/test_config.py -v
"""

import pytest

from config import Config, NotificationCredentials


@pytest.fixture
def env(monkeypatch):
    for name in (
        'NOTIFICATION_USERNAME', 'NOTIFICATION_PASSWORD', 'NOTIFICATION_PATH',
        'NOTIFICATION_SINK', 'DATABASE_URL', 'API_HOST', 'API_PORT',
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:
    """Tests for Config."""

    def test_defaults(self, env):
        cfg = Config()

        assert cfg.notification.path == '/notifications/json'
        assert cfg.notification.sink == 'log'
        assert cfg.api.port == 8000
        assert cfg.database.url == 'sqlite:///./notifications.db'

    def test_credentials_from_environment(self, env):
        env.setenv('NOTIFICATION_USERNAME', 'ws@Company.Example')
        env.setenv('NOTIFICATION_PASSWORD', 's3cret:with:colons')

        cfg = Config()

        assert cfg.notification.credentials == NotificationCredentials(
            username='ws@Company.Example',
            password='s3cret:with:colons'
        )
        assert cfg.is_valid()

    def test_missing_credentials_are_reported(self, env):
        errors = Config().validate()

        assert "NOTIFICATION_USERNAME is required" in errors
        assert "NOTIFICATION_PASSWORD is required" in errors

    def test_invalid_sink_and_path(self, env):
        env.setenv('NOTIFICATION_USERNAME', 'user')
        env.setenv('NOTIFICATION_PASSWORD', 'pass')
        env.setenv('NOTIFICATION_SINK', 'kafka')
        env.setenv('NOTIFICATION_PATH', 'notifications')

        errors = Config().validate()

        assert len(errors) == 2
        assert not Config().is_valid()

    def test_database_sink_requires_url(self, env):
        env.setenv('NOTIFICATION_USERNAME', 'user')
        env.setenv('NOTIFICATION_PASSWORD', 'pass')
        env.setenv('NOTIFICATION_SINK', 'Database')
        env.setenv('DATABASE_URL', '')

        cfg = Config()

        assert cfg.notification.sink == 'database'
        assert cfg.validate() == ["DATABASE_URL is required for the database sink"]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
