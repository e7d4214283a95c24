"""
Pin Manager for tracking resource allocation.

Keeps the one place that knows which pins a controller has claimed, so
cleanup can find them and a pin is never claimed twice.
"""

from dataclasses import dataclass
from typing import Optional

from lirc_indicator.core.errors import ResourceUnavailableError


@dataclass
class PinAllocation:
    """Represents a pin claimed by an owner."""

    pin: int
    owner: str


class PinConflictError(ResourceUnavailableError):
    """Raised when attempting to allocate an already-claimed pin."""

    def __init__(self, pin: int, existing_owner: str, new_owner: str):
        self.pin = pin
        self.existing_owner = existing_owner
        self.new_owner = new_owner
        super().__init__(
            f"Pin {pin} is already claimed by '{existing_owner}', "
            f"cannot assign to '{new_owner}'"
        )


class PinManager:
    """
    Manages pin allocations for one controller.

    Tracks which pins are claimed and validates new allocations to
    prevent a second acquisition without an intervening release.
    """

    def __init__(self):
        self._allocations: dict[int, PinAllocation] = {}

    @property
    def allocated_pins(self) -> set[int]:
        """Set of currently allocated pins."""
        return set(self._allocations.keys())

    def is_pin_available(self, pin: int) -> bool:
        """Check if a pin is available for allocation."""
        return pin not in self._allocations

    def allocate_pin(self, pin: int, owner: str) -> PinAllocation:
        """
        Allocate a pin to an owner.

        Args:
            pin: Pin number to allocate
            owner: Name of whoever claims the pin

        Returns:
            The created allocation

        Raises:
            PinConflictError: If the pin is already allocated
        """
        if pin in self._allocations:
            existing = self._allocations[pin]
            raise PinConflictError(pin, existing.owner, owner)

        allocation = PinAllocation(pin=pin, owner=owner)
        self._allocations[pin] = allocation
        return allocation

    def release_pin(self, pin: int) -> Optional[PinAllocation]:
        """
        Release a pin allocation.

        Args:
            pin: Pin number to release

        Returns:
            The released allocation, or None if pin wasn't allocated
        """
        return self._allocations.pop(pin, None)
