"""
Unit tests for configuration management.
"""

import pytest
from unittest.mock import patch
import os


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'MULTIEDIT_CREATE_BACKUP': 'false',
        'MULTIEDIT_STOP_ON_ERROR': 'true',
        'MULTIEDIT_SAVE_AFTER_APPLY': 'false',
        'MULTIEDIT_HUNK_STRATEGY': 'line',
        'MULTIEDIT_DIFF_CONTEXT_LINES': '5',
        'MULTIEDIT_LOCK_PATHS': 'false',
        'MULTIEDIT_WORKSPACE_ROOT': '/srv/workspace',
        'MULTIEDIT_LOG_LEVEL': 'DEBUG',
    }):
        from multiedit.config import Settings
        settings = Settings()
        
        assert settings.create_backup is False
        assert settings.stop_on_error is True
        assert settings.save_after_apply is False
        assert settings.hunk_strategy == 'line'
        assert settings.diff_context_lines == 5
        assert settings.lock_paths is False
        assert settings.workspace_root == '/srv/workspace'
        assert settings.log_level == 'DEBUG'


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        from multiedit.config import Settings
        settings = Settings(_env_file=None)
        
        assert settings.create_backup is True
        assert settings.stop_on_error is False
        assert settings.save_after_apply is True
        assert settings.hunk_strategy == 'whole_file'
        assert settings.diff_context_lines == 3
        assert settings.lock_paths is True
        assert settings.workspace_root is None
        assert settings.log_level == 'INFO'


def test_settings_env_names_are_case_insensitive():
    """Test that environment variable names are matched case-insensitively."""
    with patch.dict(os.environ, {'multiedit_stop_on_error': 'true'}):
        from multiedit.config import Settings
        settings = Settings()
        
        assert settings.stop_on_error is True


def test_settings_ignores_unprefixed_variables():
    """Test that variables without the prefix do not configure the engine."""
    with patch.dict(os.environ, {'STOP_ON_ERROR': 'true', 'LOG_LEVEL': 'ERROR'}, clear=True):
        from multiedit.config import Settings
        settings = Settings(_env_file=None)
        
        assert settings.stop_on_error is False
        assert settings.log_level == 'INFO'


def test_settings_rejects_invalid_values():
    """Test that malformed values fail validation."""
    from pydantic import ValidationError
    
    with patch.dict(os.environ, {'MULTIEDIT_DIFF_CONTEXT_LINES': 'many'}):
        from multiedit.config import Settings
        
        with pytest.raises(ValidationError):
            Settings()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
