"""
Honeymoon AI Service Configuration
Loads settings from environment variables
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment"""
    
    # OpenAI Configuration
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "800"))
    OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    
    # Ollama Configuration (local fallback when no OpenAI key)
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.2")
    OLLAMA_TIMEOUT: float = float(os.getenv("OLLAMA_TIMEOUT", "60"))
    
    # Kafka Configuration
    KAFKA_ENABLED: bool = _env_bool("KAFKA_ENABLED", "false")
    KAFKA_BOOTSTRAP_SERVERS: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
    KAFKA_CONSUMER_GROUP: str = os.getenv("KAFKA_CONSUMER_GROUP", "honeymoon-personalization")
    KAFKA_USER_ACTIONS_TOPIC: str = os.getenv("KAFKA_USER_ACTIONS_TOPIC", "user.actions")
    
    # Redis Configuration
    REDIS_ENABLED: bool = _env_bool("REDIS_ENABLED", "true")
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    CONVERSATION_TTL_HOURS: int = int(os.getenv("CONVERSATION_TTL_HOURS", "720"))
    
    # MongoDB Configuration (package catalog)
    MONGO_ENABLED: bool = _env_bool("MONGO_ENABLED", "true")
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "honeymoon")
    MONGO_PACKAGES_COLLECTION: str = os.getenv("MONGO_PACKAGES_COLLECTION", "packages")
    
    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_ENV: str = os.getenv("API_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    
    # CORS Configuration
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    
    # Context window / relevance tuning
    MAX_CONTEXT_MESSAGES: int = int(os.getenv("MAX_CONTEXT_MESSAGES", "10"))
    RELEVANCE_THRESHOLD: float = float(os.getenv("RELEVANCE_THRESHOLD", "0.6"))
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "100"))
    
    # Session grouping
    SESSION_GAP_MINUTES: int = int(os.getenv("SESSION_GAP_MINUTES", "60"))
    SPLIT_ON_ROLE_TRANSITION: bool = _env_bool("SPLIT_ON_ROLE_TRANSITION", "true")
    
    # Package directives
    MAX_DIRECTIVE_PACKAGES: int = int(os.getenv("MAX_DIRECTIVE_PACKAGES", "6"))
    
    # Personalization
    PERSONALIZATION_TTL_SECONDS: int = int(os.getenv("PERSONALIZATION_TTL_SECONDS", "3600"))
    CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "300"))
    ACTION_RECOMPUTE_EVERY: int = int(os.getenv("ACTION_RECOMPUTE_EVERY", "10"))
    ACTION_RECOMPUTE_AFTER_SECONDS: int = int(os.getenv("ACTION_RECOMPUTE_AFTER_SECONDS", "300"))
    
    # Offline sync queue
    SYNC_MAX_RETRIES: int = int(os.getenv("SYNC_MAX_RETRIES", "3"))
    SYNC_INTERVAL_SECONDS: int = int(os.getenv("SYNC_INTERVAL_SECONDS", "30"))
    
    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
    
    @property
    def redis_url(self) -> str:
        """Get Redis connection URL"""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
    
    @property
    def use_openai(self) -> bool:
        return bool(self.OPENAI_API_KEY)


# Global settings instance
settings = Settings()
