"""Tests for settings loading and backend detection."""

from pathlib import Path

import pytest

from prospector.config import DEFAULT_GEMINI_MODEL, Settings


ENV_KEYS = [
    "GEMINI_API_KEY", "API_KEY", "GEMINI_MODEL", "SUPABASE_URL", "SUPABASE_KEY",
    "SUPABASE_PROJECT_ID", "PROSPECTOR_DATA_DIR", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestBackendConfigured:
    """Real backend credentials must be present and non-placeholder."""

    def test_empty(self):
        assert Settings().backend_configured is False

    def test_real_project(self):
        settings = Settings(supabase_url="https://abcd1234.supabase.co", supabase_key="k")
        assert settings.project_id == "abcd1234"
        assert settings.backend_configured is True

    @pytest.mark.parametrize("project", ["mock-project", "your-project-id", "YOUR-PROJECT"])
    def test_placeholder_project(self, project):
        settings = Settings(
            supabase_url="https://abcd1234.supabase.co",
            supabase_key="k",
            supabase_project_id=project
        )
        assert settings.backend_configured is False

    def test_missing_key(self):
        settings = Settings(supabase_url="https://abcd1234.supabase.co")
        assert settings.backend_configured is False

    def test_project_id_without_url(self):
        settings = Settings(supabase_key="k", supabase_project_id="abcd1234")
        assert settings.backend_configured is False


class TestFromEnv:
    """Environment loading."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.gemini_model == DEFAULT_GEMINI_MODEL
        assert settings.data_dir is None
        assert settings.log_level == "INFO"

    def test_api_key_fallback_name(self, clean_env):
        clean_env.setenv("API_KEY", "from-api-key")
        assert Settings.from_env().gemini_api_key == "from-api-key"

        clean_env.setenv("GEMINI_API_KEY", "from-gemini")
        assert Settings.from_env().gemini_api_key == "from-gemini"

    def test_reads_backend_and_data_dir(self, clean_env, tmp_path):
        clean_env.setenv("SUPABASE_URL", "https://abcd1234.supabase.co")
        clean_env.setenv("SUPABASE_KEY", "k")
        clean_env.setenv("PROSPECTOR_DATA_DIR", str(tmp_path))

        settings = Settings.from_env()

        assert settings.backend_configured is True
        assert settings.data_dir == Path(tmp_path)
