"""
Engine configuration management.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""
    
    # Apply defaults (used when ApplyOptions leaves a field unset)
    create_backup: bool = True
    stop_on_error: bool = False
    save_after_apply: bool = True
    
    # Hunk derivation for modify changes submitted without hunks
    hunk_strategy: str = "whole_file"  # 'whole_file' or 'line'
    diff_context_lines: int = 3
    
    # Serialize applies/reverts of different sessions touching the same path
    lock_paths: bool = True
    
    # Root for LocalFileContentStore
    workspace_root: Optional[str] = None
    
    # Logging
    log_level: str = "INFO"
    
    class Config:
        env_prefix = "MULTIEDIT_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
