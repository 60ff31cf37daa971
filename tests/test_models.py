"""Tests for windsurf_chat.models - model name lookup."""

import pytest

from windsurf_chat.errors import ModelNotFound
from windsurf_chat.models import MODEL_CODES, available_models, resolve_model


class TestResolveModel:
    """Tests for resolve_model."""

    @pytest.mark.parametrize("name,code", [
        ("gpt-4o", 109),
        ("claude-3.5-sonnet", 166),
        ("gpt-4.1", 259),
    ])
    def test_known_models(self, name, code):
        assert resolve_model(name) == code

    def test_case_and_whitespace_insensitive(self):
        assert resolve_model("  GPT-4o ") == 109

    def test_unknown_model(self):
        with pytest.raises(ModelNotFound) as exc_info:
            resolve_model("gpt-9")
        assert exc_info.value.model == "gpt-9"
        assert "gpt-9" in str(exc_info.value)

    def test_custom_table(self):
        assert resolve_model("house-model", {"house-model": 7}) == 7
        with pytest.raises(ModelNotFound):
            resolve_model("gpt-4o", {"house-model": 7})


def test_available_models_follow_table():
    assert available_models() == list(MODEL_CODES)
    assert available_models({"a": 1, "b": 2}) == ["a", "b"]
