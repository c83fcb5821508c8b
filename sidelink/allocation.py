from dataclasses import dataclass, field
from enum import Enum
from sidelink.config import SUBFRAMES_PER_FRAME


class SlotType(Enum):
    DATA = "data"
    CONTROL = "control"


@dataclass
class DciInfo:
    mcs:       int          # MCS index used for the transport block
    sym_start: int          # first OFDM symbol of the allocation within the slot
    num_sym:   int          # number of symbols allocated
    tb_size:   int          # transport block size in bytes
    rnti:      int          # RNTI of the transmitting device


@dataclass
class SlotAllocInfo:
    dci:       DciInfo
    rnti:      int                          # RNTI of the destination device
    slot_idx:  int = 0                      # slot the block belongs to
    slot_type: SlotType = SlotType.DATA


@dataclass
class PacketBurst:
    """Opaque byte-bearing payload handed from the MAC to the PHY."""
    packets: list = field(default_factory=list)

    def add_packet(self, payload: bytes):
        self.packets.append(payload)

    @property
    def size(self) -> int:
        return sum(len(p) for p in self.packets)

    def __len__(self):
        return len(self.packets)


@dataclass(frozen=True)
class SfnSf:
    """Frame / subframe / slot triple identifying a slot on the air."""
    frame:    int = 0
    subframe: int = 0
    slot:     int = 0

    def next(self, slots_per_subframe: int) -> "SfnSf":
        # slot wraps into the subframe, subframe wraps into the frame
        slot = self.slot + 1
        subframe = self.subframe
        frame = self.frame
        if slot == slots_per_subframe:
            slot = 0
            subframe += 1
            if subframe == SUBFRAMES_PER_FRAME:
                subframe = 0
                frame += 1
        return SfnSf(frame, subframe, slot)


def make_burst(size_bytes: int) -> PacketBurst:
    """Burst holding a single dummy packet of ``size_bytes`` bytes."""
    burst = PacketBurst()
    burst.add_packet(bytes(size_bytes))
    return burst
