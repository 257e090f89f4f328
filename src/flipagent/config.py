from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Claude API
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5-20250929"
    claude_max_tokens: int = 4096

    # Tool selection
    max_tools: int = 50  # cap on tools sent per request (core tools always included)

    # Agent loop
    max_iterations: int = 10  # model call / tool execution round trips per message
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0  # seconds, doubled per attempt

    # Streaming
    stream_debounce_ms: int = 200

    # Conversation history
    max_history_messages: int = 20

    # Logging
    log_level: str = "INFO"
    log_json: bool = True
    log_file: str = ""


def get_settings() -> Settings:
    return Settings()
