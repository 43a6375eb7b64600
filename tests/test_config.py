"""Tests for application settings."""
from peer_rounds.config import Settings


class TestSettings:

    def test_round_engine_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.round_lookahead_days == 7
        assert settings.neutral_score == 3.0
        assert settings.smtp_timeout == 5
        assert settings.notification_workers == 4

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ROUND_LOOKAHEAD_DAYS", "14")
        monkeypatch.setenv("NOTIFICATION_WORKERS", "2")
        settings = Settings(_env_file=None)
        assert settings.round_lookahead_days == 14
        assert settings.notification_workers == 2

    def test_job_schedules_live_in_the_dag_environment(self):
        # Cron schedules are read by the Airflow DAG, not by the API settings
        assert "create_rounds_schedule" not in Settings.model_fields
        assert "complete_rounds_schedule" not in Settings.model_fields
