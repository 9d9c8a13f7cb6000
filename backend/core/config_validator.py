"""
Configuration validation for the VidChat backend.
Validates API keys, storage, and settings on startup.
"""
from typing import List, Dict, Any


class ConfigValidator:
    """Validates system configuration before serving requests."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        # Run all checks
        self._validate_api_keys()
        self._validate_storage()
        self._validate_config_values()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_api_keys(self):
        """Missing keys only disable the features that need them."""
        from core.config import OPENROUTER_API_KEY, YOUTUBE_API_KEY, ADMIN_USER_IDS

        if not OPENROUTER_API_KEY:
            self.warnings.append(
                "OPENROUTER_API_KEY is not set. Summaries, chat and plans will fail."
            )
        if not YOUTUBE_API_KEY:
            self.warnings.append(
                "YOUTUBE_API_KEY is not set. Video analysis will fail."
            )
        if not ADMIN_USER_IDS:
            self.warnings.append(
                "ADMIN_USER_IDS is empty. Prompt configurations cannot be managed."
            )

    def _validate_storage(self):
        """Check the storage backend name and that the database is usable."""
        from core.config import STORAGE_BACKEND, DB_PATH

        if STORAGE_BACKEND not in ("sqlite", "memory"):
            self.errors.append(
                f"Unknown STORAGE_BACKEND '{STORAGE_BACKEND}'. Use 'sqlite' or 'memory'."
            )
            return

        if STORAGE_BACKEND == "memory":
            self.warnings.append("Using in-memory storage. Data is lost on restart.")
            return

        if not DB_PATH.exists():
            self.warnings.append(
                f"Database file not found at {DB_PATH}. "
                "Will be created on first run."
            )
            return

        try:
            from core.database import Database

            database = Database(DB_PATH)
            required_tables = [
                "videos",
                "chat_messages",
                "prompt_configs",
                "profiles",
                "personalized_plans",
                "feedbacks",
            ]

            for table in required_tables:
                result = database.execute_one(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,)
                )
                if not result:
                    self.errors.append(
                        f"Required database table missing: {table}. "
                        "Run schema initialization."
                    )

        except Exception as e:
            self.errors.append(f"Database connection error: {e}")

    def _validate_config_values(self):
        """Validate configuration value ranges and types."""
        from core.config import (
            LLM_TEMPERATURE,
            LLM_TIMEOUT_SECONDS,
            WEB_AUGMENT_PROVIDER,
            WEB_AUGMENT_MIN_LENGTH,
        )

        if LLM_TIMEOUT_SECONDS <= 0:
            self.errors.append(
                f"LLM_TIMEOUT_SECONDS ({LLM_TIMEOUT_SECONDS}) must be positive"
            )

        if WEB_AUGMENT_PROVIDER not in ("llm", "duckduckgo"):
            self.errors.append(
                f"Unknown WEB_AUGMENT_PROVIDER '{WEB_AUGMENT_PROVIDER}'. Use 'llm' or 'duckduckgo'."
            )

        if WEB_AUGMENT_MIN_LENGTH < 0:
            self.errors.append(
                f"WEB_AUGMENT_MIN_LENGTH ({WEB_AUGMENT_MIN_LENGTH}) cannot be negative"
            )

        # A zero temperature makes similar questions decode to the same answer
        if LLM_TEMPERATURE == 0.0:
            self.warnings.append(
                "LLM_TEMPERATURE is 0.0; similar questions may get identical answers"
            )
        elif not (0.0 <= LLM_TEMPERATURE <= 2.0):
            self.warnings.append(
                f"LLM_TEMPERATURE ({LLM_TEMPERATURE}) outside normal range [0.0, 2.0]"
            )


# Global validator instance
config_validator = ConfigValidator()
