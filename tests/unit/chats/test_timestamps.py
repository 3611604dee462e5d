"""
Unit tests for chat activity timestamp extraction.
"""

from datetime import datetime, timezone

import pytest

from unichat.chats.timestamps import chat_timestamp

pytestmark = pytest.mark.unit


class TestChatTimestamp:
    def test_plain_message_timestamp(self):
        assert chat_timestamp({"lastMessage": {"messageTimestamp": 1700000000}}) == 1700000000

    def test_numeric_string_message_timestamp(self):
        assert chat_timestamp({"lastMessage": {"messageTimestamp": "1700000000"}}) == 1700000000

    def test_low_high_pair_takes_low(self):
        chat = {"lastMessage": {"messageTimestamp": {"low": 1700000001, "high": 0, "unsigned": True}}}
        assert chat_timestamp(chat) == 1700000001

    def test_message_timestamp_beats_updated_at(self):
        chat = {
            "lastMessage": {"messageTimestamp": 1700000000},
            "updatedAt": "2030-01-01T00:00:00Z",
        }
        assert chat_timestamp(chat) == 1700000000

    def test_falls_back_to_updated_at(self):
        chat = {"lastMessage": None, "updatedAt": "2023-11-14T22:13:20.000Z"}
        assert chat_timestamp(chat) == 1700000000

    def test_updated_at_datetime(self):
        chat = {"updatedAt": datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)}
        assert chat_timestamp(chat) == 1700000000

    def test_invalid_updated_at_falls_through(self):
        chat = {"updatedAt": "not a date", "lastMsgTimestamp": 1600000000}
        assert chat_timestamp(chat) == 1600000000

    def test_legacy_fields_in_order(self):
        chat = {"lastMsgTimestamp": 1600000000, "conversationTimestamp": 1500000000}
        assert chat_timestamp(chat) == 1600000000
        assert chat_timestamp({"conversationTimestamp": {"low": 1500000000}}) == 1500000000

    def test_zero_message_timestamp_falls_back(self):
        chat = {"lastMessage": {"messageTimestamp": 0}, "conversationTimestamp": 42}
        assert chat_timestamp(chat) == 42

    def test_missing_everything_is_zero(self):
        assert chat_timestamp({}) == 0
        assert chat_timestamp({"remoteJid": "5511988887777@s.whatsapp.net"}) == 0

    def test_malformed_low_falls_through_to_updated_at(self):
        chat = {
            "lastMessage": {"messageTimestamp": {"low": "abc"}},
            "updatedAt": "2023-11-14T22:13:20Z",
        }
        assert chat_timestamp(chat) == 1700000000

    def test_missing_low_falls_through(self):
        assert chat_timestamp({"lastMessage": {"messageTimestamp": {"high": 0}}, "lastMsgTimestamp": 7}) == 7
