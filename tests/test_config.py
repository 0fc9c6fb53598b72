import pytest

import config
from superset_bot.errors import StartupConfigError


def test_explicit_provider_with_key():
    settings = config.resolve_provider_settings({"LLM_PROVIDER": "groq", "GROQ_API_KEY": "gsk_x"})

    assert settings.name == "groq"
    assert settings.api_key == "gsk_x"
    assert settings.model == "llama-3.3-70b-versatile"


def test_model_override():
    settings = config.resolve_provider_settings({"OPENAI_API_KEY": "sk-x", "OPENAI_MODEL": "gpt-4.1-mini"})

    assert settings.name == "openai"
    assert settings.model == "gpt-4.1-mini"


def test_auto_detect_prefers_gemini():
    env = {"GROQ_API_KEY": "gsk_x", "GEMINI_API_KEY": "g-x"}

    assert config.resolve_provider_settings(env).name == "gemini"
    assert config.resolve_provider_settings(env).model == "gemini-2.5-flash"


def test_no_key_refuses_to_start():
    with pytest.raises(StartupConfigError, match="No provider API key"):
        config.resolve_provider_settings({})


def test_selected_provider_without_key_refuses_to_start():
    with pytest.raises(StartupConfigError, match="OPENAI_API_KEY is missing"):
        config.resolve_provider_settings({"LLM_PROVIDER": "openai", "GROQ_API_KEY": "gsk_x"})


def test_unknown_provider_refuses_to_start():
    with pytest.raises(StartupConfigError, match="not supported"):
        config.resolve_provider_settings({"LLM_PROVIDER": "claude", "GROQ_API_KEY": "gsk_x"})


def test_blank_key_counts_as_missing():
    with pytest.raises(StartupConfigError):
        config.resolve_provider_settings({"GEMINI_API_KEY": "   "})


def test_validate_config_rejects_tiny_history_cap(monkeypatch):
    monkeypatch.setattr(config, "MAX_HISTORY_TURNS", 2)

    with pytest.raises(StartupConfigError, match="MAX_HISTORY_TURNS"):
        config.validate_config({"GROQ_API_KEY": "gsk_x"})


def test_validate_config_rejects_missing_knowledge_file(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "KNOWLEDGE_BASE_FILE", str(tmp_path / "missing.txt"))

    with pytest.raises(StartupConfigError, match="KNOWLEDGE_BASE_FILE"):
        config.validate_config({"GROQ_API_KEY": "gsk_x"})


def test_knowledge_file_replaces_builtin_document(monkeypatch, tmp_path):
    kb = tmp_path / "kb.txt"
    kb.write_text("Placement season starts in August.", encoding="utf-8")
    monkeypatch.setattr(config, "KNOWLEDGE_BASE_FILE", str(kb))

    prompt = config.build_system_prompt(config.load_knowledge_document())

    assert "Placement season starts in August." in prompt
    assert "Minimum internship duration" not in prompt


def test_system_prompt_has_preamble_document_and_rules():
    prompt = config.build_system_prompt(config.SUPERSET_DOC)

    assert prompt.startswith("You are an AI assistant for Ashoka University students.")
    assert "Minimum internship duration: 30 days." in prompt
    assert "Only answer Superset/IPP related queries" in prompt
    assert "If information is missing, say so." in prompt


def test_cors_origins(monkeypatch):
    monkeypatch.setenv("FRONTEND_ORIGIN", "https://example.org/, https://fazal2204.github.io")
    monkeypatch.delenv("CORS_ALLOW_ALL", raising=False)

    origins = config.get_cors_origins()

    assert "https://example.org" in origins
    assert origins.count("https://fazal2204.github.io") == 1

    monkeypatch.setenv("CORS_ALLOW_ALL", "1")
    assert config.get_cors_origins() == ["*"]
