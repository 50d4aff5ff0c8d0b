from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "labintake"
    db_username: str = "labintake"
    db_password: str = "secret"

    pdf_engine: str = "pdfplumber"
    pdf_render_dpi: int = 150
    pdf_max_render_pages: int = 20
    pdf_min_text_chars: int = 50

    extraction_provider: str = "openai"
    extraction_temperature: float = 0.0
    extraction_max_output_tokens: int = 8192
    extraction_max_response_chars: int = 2_000_000

    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = "gpt-4o-mini"
    extraction_openai_timeout_seconds: int = 300

    extraction_openai_compatible_api_key: str = ""
    extraction_openai_compatible_model_name: str = ""
    extraction_openai_compatible_base_url: str = ""
    extraction_openai_compatible_timeout_seconds: int = 300

    extraction_openrouter_api_key: str = ""
    extraction_openrouter_model_name: str = ""
    extraction_openrouter_timeout_seconds: int = 300

    extraction_groq_api_key: str = ""
    extraction_groq_model_name: str = ""
    extraction_groq_timeout_seconds: int = 300

    extraction_together_api_key: str = ""
    extraction_together_model_name: str = ""
    extraction_together_timeout_seconds: int = 300

    extraction_deepseek_api_key: str = ""
    extraction_deepseek_model_name: str = ""
    extraction_deepseek_timeout_seconds: int = 300

    extraction_ollama_api_key: str = ""
    extraction_ollama_model_name: str = ""
    extraction_ollama_timeout_seconds: int = 300

    filter_min_text_chars: int = 50
    filter_min_numeric_tokens: int = 3
    filter_max_file_bytes: int = 6 * 1024 * 1024

    batch_max_files: int = 10
    batch_max_payload_bytes: int = 12 * 1024 * 1024
    batch_max_tokens: int = 75_000
    batch_image_max_files: int = 50
    batch_image_max_payload_bytes: int = 15 * 1024 * 1024
    batch_image_max_tokens: int = 100_000

    delay_min_ms: int = 500
    delay_max_ms: int = 5000
    delay_fraction: float = 0.1
    delay_long_request_ms: int = 90_000

    telemetry_max_entries: int = 100
