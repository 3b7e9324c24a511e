# Tests for the password generator and strength meter
#
# Coverage:
#   - Length, character pools, all-disabled fallback
#   - All four classes appear over repeated trials
#   - CSPRNG source (secrets) is used
#   - Strength score components, penalties, clamping
#   - Label / colour thresholds

from unittest.mock import patch

import pytest

from trails_vault.vault.errors import InvalidInputError
from trails_vault.vault.generator import (
    ALPHANUMERIC,
    DIGITS,
    LOWERCASE,
    SYMBOLS,
    UPPERCASE,
    PasswordOptions,
    calculate_password_strength,
    generate_password,
    get_strength_color,
    get_strength_label,
)


class TestGeneratePassword:
    def test_default_length(self):
        assert len(generate_password()) == 20

    @pytest.mark.parametrize("length", [0, 1, 8, 64, 200])
    def test_exact_length(self, length):
        assert len(generate_password(length)) == length

    def test_negative_length_rejected(self):
        with pytest.raises(InvalidInputError):
            generate_password(-1)

    def test_all_classes_seen_over_trials(self):
        seen = set()
        for _ in range(50):
            seen.update(generate_password(20))
        assert seen & set(UPPERCASE)
        assert seen & set(LOWERCASE)
        assert seen & set(DIGITS)
        assert seen & set(SYMBOLS)

    def test_digits_only(self):
        pw = generate_password(100, PasswordOptions(uppercase=False, lowercase=False, symbols=False))
        assert set(pw) <= set(DIGITS)

    def test_no_symbols(self):
        pw = generate_password(200, PasswordOptions(symbols=False))
        assert set(pw) <= set(ALPHANUMERIC)

    def test_all_disabled_falls_back_to_alphanumeric(self):
        opts = PasswordOptions(uppercase=False, lowercase=False, numbers=False, symbols=False)
        pw = generate_password(100, opts)
        assert len(pw) == 100
        assert set(pw) <= set(ALPHANUMERIC)

    def test_uses_secrets(self):
        with patch("trails_vault.vault.generator.secrets.randbits", return_value=0) as randbits:
            pw = generate_password(5, PasswordOptions(lowercase=False, numbers=False, symbols=False))
        assert pw == "AAAAA"
        assert randbits.call_count == 5

    def test_modulo_mapping(self):
        opts = PasswordOptions(uppercase=False, lowercase=False, symbols=False)
        with patch("trails_vault.vault.generator.secrets.randbits", side_effect=[3, 13, 29]):
            assert generate_password(3, opts) == "339"


class TestPasswordStrength:
    def test_empty(self):
        assert calculate_password_strength("") == 0

    def test_repeated_single_class(self):
        # 32 length + 10 class + 5 bonus - 10 single class - 10 repeat
        assert calculate_password_strength("aaaaaaaa") == 27

    def test_mixed_classes(self):
        # 32 length + 40 classes + 20 bonus
        assert calculate_password_strength("aB3$aB3$") == 92

    def test_mixed_beats_repeated(self):
        assert calculate_password_strength("aaaaaaaa") < calculate_password_strength("aB3$aB3$")

    def test_length_capped_at_40(self):
        # 40 + 10 + 5 - 10 single class
        assert calculate_password_strength("abcdefghijklmnop") == 45

    def test_mixed_case_letters_count_as_single_class(self):
        # 24 + 20 + 10 - 10
        assert calculate_password_strength("abcDEF") == 44

    def test_weak_prefix_penalty(self):
        assert calculate_password_strength("Password1!") == 40 + 40 + 20 - 30
        assert calculate_password_strength("QWERTY!1a") == 36 + 40 + 20 - 30

    def test_clamped_to_zero(self):
        # 24 + 10 + 5 - 10 - 30
        assert calculate_password_strength("123456") == 0

    def test_clamped_to_hundred(self):
        assert calculate_password_strength("xK9#mP2$vL7&qR4!") == 100

    def test_deterministic(self):
        assert calculate_password_strength("aB3$") == calculate_password_strength("aB3$")


class TestStrengthLabels:
    @pytest.mark.parametrize("score,label,color", [
        (0, "Very Weak", "#ef4444"),
        (19, "Very Weak", "#ef4444"),
        (20, "Weak", "#f97316"),
        (39, "Weak", "#f97316"),
        (40, "Fair", "#eab308"),
        (59, "Fair", "#eab308"),
        (60, "Strong", "#22c55e"),
        (79, "Strong", "#22c55e"),
        (80, "Very Strong", "#10b981"),
        (100, "Very Strong", "#10b981"),
    ])
    def test_thresholds(self, score, label, color):
        assert get_strength_label(score) == label
        assert get_strength_color(score) == color
