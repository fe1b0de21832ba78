from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    # Upstream model: "worker" (GET proxy) or "openai" (OpenAI-compatible API)
    llm_backend: str = "worker"
    worker_url: str = "https://deepseek-r1.istebutolga.workers.dev/"
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "deepseek-r1:7b"
    llm_api_key: str = "ollama"
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.7
    request_timeout: float = 120.0

    ai_name: str = "CepyX"

    storage_path: str = "./data"

    max_history_length: int = 50
    max_conversations: int = 20
    max_context_messages: int = 15
    max_context_words: int = 1000

    # Themes
    theme_window: int = 8
    themes_config_path: str = "themes_config.json"

    sync_interval_seconds: float = 30.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "RECALLCHAT_"
        extra = "ignore"


settings = Settings()
