"""Tests for the known spread table."""
import pytest

from taro.spreads import (
    SPREAD_INFO,
    SpreadKind,
    display_name,
    known_keys,
    role_headings,
    short_name,
    spread_info,
)


class TestSpreadKinds:
    def test_every_known_kind_is_described(self):
        assert set(SPREAD_INFO) == set(SpreadKind) - {SpreadKind.CUSTOM}

    def test_known_keys_leave_out_custom(self):
        assert known_keys() == ("one", "three", "celt", "kantan", "nitaku", "horse")

    @pytest.mark.parametrize("key", ["custom", "cross", ""])
    def test_unknown_keys_fall_back_to_custom(self, key):
        assert SpreadKind.from_key(key) is SpreadKind.CUSTOM
        assert spread_info(key) is None
        assert display_name(key) == key
        assert short_name(key) == key

    def test_role_headings_need_the_template_slot_count(self):
        roles = SPREAD_INFO[SpreadKind.HORSE].roles

        assert role_headings("horse", len(roles)) == roles
        assert role_headings("horse", len(roles) - 1) is None
        assert role_headings("one", 1) is None
