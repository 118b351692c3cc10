"""Tests for identifier generation."""

from __future__ import annotations

from architekt.domain.ids import is_generated_id, new_id


class TestNewId:
    def test_is_uuid4(self) -> None:
        assert is_generated_id(new_id())

    def test_unique(self) -> None:
        assert len({new_id() for _ in range(100)}) == 100

    def test_rejects_other_strings(self) -> None:
        assert not is_generated_id("root")
        assert not is_generated_id("")
