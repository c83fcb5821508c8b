from collections import deque
from sidelink.allocation import PacketBurst, SlotAllocInfo


class TransmissionBuffer:
    """
    FIFO of (burst, allocation info) pairs waiting for the next slot tick.

    Producers only append; the slot scheduler is the only consumer and takes
    everything at once with drain_all().
    """

    def __init__(self):
        self._entries = deque()

    def enqueue(self, burst: PacketBurst, info: SlotAllocInfo):
        # Always accepted, no check against the current slot
        self._entries.append((burst, info))

    def drain_all(self) -> list:
        """
        Returns the buffered entries in enqueue order and leaves the buffer empty.
        Entries enqueued afterwards belong to the next drain.
        """
        entries = list(self._entries)
        self._entries.clear()
        return entries

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)
