"""
Unit tests for ChatTranscript
"""

from src.voice_session.transcript import ChatTranscript


class TestChatTranscript:

    def test_messages_in_order(self):
        transcript = ChatTranscript()

        transcript.add_user_message("what time is it")
        transcript.add_assistant_message("It is noon.", audio_url="/api/audio/abc")

        assert [m.type for m in transcript.messages] == ["user", "assistant"]
        assert transcript.messages[1].audio_url == "/api/audio/abc"
        assert transcript.messages[0].audio_url is None

    def test_ids_unique(self):
        transcript = ChatTranscript()

        ids = {transcript.add_user_message(str(i)).id for i in range(20)}

        assert len(ids) == 20

    def test_error_message(self):
        transcript = ChatTranscript()

        message = transcript.add_error_message("Server unreachable")

        assert message.type == "assistant"
        assert message.content == "❌ Error: Server unreachable"

    def test_empty_audio_url_stored_as_none(self):
        transcript = ChatTranscript()

        assert transcript.add_assistant_message("ok", audio_url="").audio_url is None

    def test_summary_and_clear(self):
        transcript = ChatTranscript()
        transcript.add_user_message("a")
        transcript.add_assistant_message("b")
        transcript.add_user_message("c")

        assert transcript.get_summary() == {"message_count": 3, "user_messages": 2, "assistant_messages": 1}

        transcript.clear()
        assert transcript.messages == []
