"""
Durable Cache — Memory Slot Tests
"""

import pytest

from durable_cache import MemorySlot


class TestMemorySlot:
    """Test suite for MemorySlot."""

    def test_starts_empty(self) -> None:
        slot: MemorySlot[int] = MemorySlot()

        assert slot.is_populated is False
        with pytest.raises(LookupError):
            _ = slot.value

    def test_fill_and_clear(self) -> None:
        slot: MemorySlot[int] = MemorySlot()

        slot.fill(3)
        assert slot.is_populated is True
        assert slot.value == 3

        slot.fill(4)
        assert slot.value == 4

        slot.clear()
        assert slot.is_populated is False

    def test_none_is_a_value(self) -> None:
        """Test holding None differs from being empty."""
        slot: MemorySlot[int | None] = MemorySlot()
        slot.fill(None)

        assert slot.is_populated is True
        assert slot.value is None

    def test_repr(self) -> None:
        slot: MemorySlot[str] = MemorySlot()
        assert repr(slot) == "MemorySlot(<empty>)"

        slot.fill("x")
        assert repr(slot) == "MemorySlot('x')"
