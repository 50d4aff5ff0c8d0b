import pytest
from pydantic import ValidationError

from labintake.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_pdf_engine(self) -> None:
        s = Settings()
        assert s.pdf_engine == "pdfplumber"

    def test_default_extraction_provider(self) -> None:
        s = Settings()
        assert s.extraction_provider == "openai"

    def test_default_batching_ceilings(self) -> None:
        s = Settings()
        assert s.batch_max_files == 10
        assert s.batch_max_payload_bytes == 12 * 1024 * 1024
        assert s.batch_max_tokens == 75_000
        assert s.batch_image_max_files == 50

    def test_default_delay(self) -> None:
        s = Settings()
        assert (s.delay_min_ms, s.delay_max_ms, s.delay_fraction) == (500, 5000, 0.1)

    def test_default_filter_max_file_bytes(self) -> None:
        s = Settings()
        assert s.filter_max_file_bytes == 6 * 1024 * 1024


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_db_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.example.com")
        s = Settings()
        assert s.db_host == "db.example.com"

    def test_loads_extraction_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXTRACTION_PROVIDER", "groq")
        monkeypatch.setenv("EXTRACTION_GROQ_MODEL_NAME", "llama-3.3-70b")
        s = Settings()
        assert s.extraction_provider == "groq"
        assert s.extraction_groq_model_name == "llama-3.3-70b"

    def test_loads_batch_max_files(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BATCH_MAX_FILES", "4")
        s = Settings()
        assert s.batch_max_files == 4


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_delay_fraction_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DELAY_FRACTION", "abc")
        with pytest.raises(ValidationError):
            Settings()
