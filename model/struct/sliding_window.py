###########EXTERNAL IMPORTS############

from typing import TypeVar, Generic, List, Optional

#######################################

#############LOCAL IMPORTS#############

#######################################

T = TypeVar("T")


class SlidingWindow(Generic[T]):
    """
    Fixed-size sliding window for storing recent values.

    The window is a circular buffer of `max_size` slots indexed by the position
    of the oldest item (head) and the number of stored items (count). Adding to a
    full window overwrites the oldest slot, so both insertion and eviction are
    O(1) and the storage never grows past `max_size`.
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError(f"Sliding window size must be positive, got {max_size}")
        self.max_size = max_size
        self.slots: List[Optional[T]] = [None] * max_size
        self.head = 0
        self.count = 0

    def __len__(self) -> int:
        return self.count

    def add(self, item: T) -> Optional[T]:
        """
        Adds a new item to the window.

        The item becomes the most recent entry. If the window is full,
        the oldest item is discarded.

        Returns:
            The evicted item, or None if nothing was evicted.
        """

        if self.count < self.max_size:
            self.slots[(self.head + self.count) % self.max_size] = item
            self.count += 1
            return None

        evicted = self.slots[self.head]
        self.slots[self.head] = item
        self.head = (self.head + 1) % self.max_size
        return evicted

    def last(self, n: int) -> List[T]:
        """
        Returns the most recent items in chronological order.

        Args:
            n: Maximum number of items to return.

        Returns:
            Up to `n` items, oldest first.
        """

        n = max(0, min(n, self.count))
        start = self.head + self.count - n
        return [self.slots[(start + i) % self.max_size] for i in range(n)]  # type: ignore[misc]

    def get_list(self) -> List[T]:
        """
        Returns the current window contents as a list.

        Returns:
            A list of items ordered from oldest to most recent.
        """

        return self.last(self.count)

    def clear(self) -> None:
        """
        Removes every item from the window.
        """

        self.slots = [None] * self.max_size
        self.head = 0
        self.count = 0
