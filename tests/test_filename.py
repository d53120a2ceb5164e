"""Tests for filename sanitization."""

import os

import pytest

from fileguard.config import FileGuardSettings, SettingsContext
from fileguard.filename import (
    WINDOWS_INVALID_FILENAME_CHARS,
    convert_to_filename,
    invalid_filename_chars,
    is_restricted_platform,
    is_valid_filename,
)

CASES = [
    ("abc-123", " ", "abc-123"),
    ("abc-123#", "-", "abc-123#"),
    ("test.txt", "-", "test.txt"),
    ("abc-123*", "", "abc-123"),
]


class TestPlatformDetection:
    """Tests for the filename capability check."""

    def test_windows_is_restricted(self):
        """Test Windows names are recognized as restrictive."""
        assert is_restricted_platform("windows")
        assert is_restricted_platform("Win32")
        assert is_restricted_platform("nt")

    def test_unix_is_permissive(self):
        """Test Unix-like platforms are permissive."""
        assert not is_restricted_platform("linux")
        assert not is_restricted_platform("darwin")

    def test_default_follows_running_platform(self):
        """Test detection without an argument uses os.name."""
        assert is_restricted_platform() == (os.name == "nt")

    def test_invalid_chars_by_platform(self):
        """Test the disallowed set for each platform."""
        assert invalid_filename_chars("linux") == frozenset()
        assert invalid_filename_chars("windows") == WINDOWS_INVALID_FILENAME_CHARS

    def test_windows_set_contents(self):
        """Test the Windows set covers reserved punctuation and control codes."""
        for c in '<>:"/\\|?*':
            assert c in WINDOWS_INVALID_FILENAME_CHARS
        assert "\x00" in WINDOWS_INVALID_FILENAME_CHARS
        assert "\x1f" in WINDOWS_INVALID_FILENAME_CHARS
        assert "#" not in WINDOWS_INVALID_FILENAME_CHARS
        assert " " not in WINDOWS_INVALID_FILENAME_CHARS


class TestConvertToFilename:
    """Tests for convert_to_filename."""

    @pytest.mark.parametrize("text,filler,expected", CASES)
    def test_restrictive_platform(self, text: str, filler: str, expected: str):
        """Test disallowed characters are replaced on a restrictive platform."""
        result = convert_to_filename(text, filler, invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == expected

    @pytest.mark.parametrize("text,filler,expected", CASES)
    def test_permissive_platform(self, text: str, filler: str, expected: str):
        """Test text is returned unchanged on a permissive platform."""
        assert convert_to_filename(text, filler, invalid_chars=frozenset()) == text

    @pytest.mark.parametrize("text,filler,expected", CASES)
    def test_running_platform(self, text: str, filler: str, expected: str):
        """Test the default set matches the running platform."""
        result = convert_to_filename(text, filler)
        if os.name == "nt":
            assert result == expected
        else:
            assert result == text

    def test_replaces_each_character_with_filler(self):
        """Test every disallowed character becomes the filler."""
        result = convert_to_filename('a<b>c:d"e', "_", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == "a_b_c_d_e"

    def test_space_filler(self):
        """Test a space filler turns disallowed characters into spaces."""
        result = convert_to_filename("report?final", " ", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == "report final"

    def test_multi_character_filler(self):
        """Test a longer filler is inserted as a whole."""
        result = convert_to_filename("a/b", "--", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == "a--b"

    def test_control_characters_removed(self):
        """Test control characters are treated as disallowed."""
        result = convert_to_filename("line\tone\nline", "", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == "lineoneline"

    def test_unicode_kept(self):
        """Test non-ASCII characters are allowed."""
        text = "résumé 日本語.txt"
        assert convert_to_filename(text, "_", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == text

    def test_empty_text(self):
        """Test empty input stays empty."""
        assert convert_to_filename("", "_", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == ""

    def test_disallowed_filler_characters_dropped(self):
        """Test a filler containing disallowed characters cannot reintroduce them."""
        result = convert_to_filename("a*b", "<_>", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
        assert result == "a_b"
        assert is_valid_filename(result, WINDOWS_INVALID_FILENAME_CHARS)

    def test_custom_invalid_set(self):
        """Test an arbitrary character set can be supplied."""
        assert convert_to_filename("a b c", "-", invalid_chars={" "}) == "a-b-c"

    @pytest.mark.parametrize(
        "text,filler",
        [
            ("abc-123*", ""),
            ("a<b>c", "_"),
            ("what?", " "),
            ("x|y", "*"),
            ("test.txt", "-"),
        ],
    )
    def test_idempotent(self, text: str, filler: str):
        """Test converting twice gives the same result as converting once."""
        chars = WINDOWS_INVALID_FILENAME_CHARS
        once = convert_to_filename(text, filler, invalid_chars=chars)
        assert convert_to_filename(once, filler, invalid_chars=chars) == once

    def test_valid_names_unchanged(self):
        """Test names that are already valid are not touched."""
        for name in ["test.txt", "abc-123#", "notes (1).md", ".hidden"]:
            assert convert_to_filename(name, "_", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == name

    def test_filler_defaults_to_setting(self, mock_context):
        """Test an omitted filler comes from the filename_filler setting."""
        with SettingsContext(FileGuardSettings(filename_filler="-")):
            assert convert_to_filename("a*b", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == "a-b"

        assert convert_to_filename("a*b", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == "a_b"

    def test_explicit_filler_overrides_setting(self, mock_context):
        """Test a passed filler wins over the setting, including an empty one."""
        with SettingsContext(FileGuardSettings(filename_filler="-")):
            assert convert_to_filename("a*b", "", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS) == "ab"


class TestIsValidFilename:
    """Tests for is_valid_filename."""

    def test_valid(self):
        assert is_valid_filename("test.txt", WINDOWS_INVALID_FILENAME_CHARS)

    def test_invalid(self):
        assert not is_valid_filename("abc-123*", WINDOWS_INVALID_FILENAME_CHARS)

    def test_permissive_accepts_everything(self):
        assert is_valid_filename("a:b*c?", frozenset())
