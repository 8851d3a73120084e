"""Tests for chat_session.inputs (input normalizer)."""

import base64

import pytest

from chat_session import inputs
from chat_session.models import SpeechResult


class TestFromText:

    def test_trims_whitespace(self):
        pending = inputs.from_text("  Hello  ")
        assert pending.text == "Hello"
        assert pending.attachment is None

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_empty_is_noop(self, text):
        assert inputs.from_text(text) is None


class TestFromVoice:

    def test_uses_first_final_result(self):
        results = [
            SpeechResult(transcript="hel", is_final=False),
            SpeechResult(transcript="hello world", is_final=True),
            SpeechResult(transcript="ignored", is_final=True),
        ]
        assert inputs.from_voice(results).text == "hello world"

    def test_only_interim_results_is_noop(self):
        assert inputs.from_voice([SpeechResult(transcript="hel", is_final=False)]) is None

    def test_blank_transcript_is_noop(self):
        assert inputs.from_voice([SpeechResult(transcript="  ")]) is None


class TestFromImage:

    def test_packages_base64_attachment(self):
        pending = inputs.from_image("cat.png", b"\x89PNG", "image/png")
        assert pending.text == "Describe this image: cat.png"
        assert pending.attachment.mime_type == "image/png"
        assert base64.b64decode(pending.attachment.data) == b"\x89PNG"

    def test_missing_mime_type_defaults_to_png(self):
        pending = inputs.from_image("photo", b"data", None)
        assert pending.attachment.mime_type == "image/png"

    def test_no_file_selected_is_noop(self):
        assert inputs.from_image(None, None) is None
        assert inputs.from_image("cat.png", None) is None


class TestFromSuggestion:

    def test_returns_fixed_literal(self):
        assert inputs.from_suggestion(0).text == inputs.SUGGESTIONS[0]

    def test_unknown_index_raises(self):
        with pytest.raises(IndexError):
            inputs.from_suggestion(len(inputs.SUGGESTIONS))
        with pytest.raises(IndexError):
            inputs.from_suggestion(-1)
