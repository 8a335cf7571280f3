"""Unit tests for enhanced prompt composition."""

import pytest

from imagepress.core.prompt_composer import (
    NO_IMAGES_TEMPLATE,
    PROMPT_PLACEHOLDER,
    WITH_IMAGES_TEMPLATE,
    compose_prompt,
)


class TestComposePrompt:
    """Tests for compose_prompt."""

    @pytest.mark.parametrize("has_reference_images", [True, False])
    def test_disabled_returns_prompt_unchanged(self, has_reference_images: bool):
        prompt = "a red cube on a table"
        assert compose_prompt(prompt, has_reference_images, use_enhanced=False) == prompt

    def test_no_images_template(self):
        result = compose_prompt("a red cube", has_reference_images=False, use_enhanced=True)

        assert result == NO_IMAGES_TEMPLATE.replace(PROMPT_PLACEHOLDER, "a red cube")
        assert result.endswith("Request: a red cube")
        assert "reference image" not in result

    def test_with_images_template(self):
        result = compose_prompt("make it blue", has_reference_images=True, use_enhanced=True)

        assert result == WITH_IMAGES_TEMPLATE.replace(PROMPT_PLACEHOLDER, "make it blue")
        assert "reference image" in result
        assert result.endswith("Request: make it blue")

    def test_templates_differ(self):
        with_images = compose_prompt("x", has_reference_images=True, use_enhanced=True)
        without_images = compose_prompt("x", has_reference_images=False, use_enhanced=True)
        assert with_images != without_images

    def test_braces_in_prompt_are_kept_verbatim(self):
        prompt = "a sign that reads {prompt} and {0}"
        result = compose_prompt(prompt, has_reference_images=False, use_enhanced=True)

        assert result.endswith(f"Request: {prompt}")
        assert PROMPT_PLACEHOLDER not in result.replace(prompt, "")

    def test_templates_contain_single_placeholder(self):
        assert WITH_IMAGES_TEMPLATE.count(PROMPT_PLACEHOLDER) == 1
        assert NO_IMAGES_TEMPLATE.count(PROMPT_PLACEHOLDER) == 1
