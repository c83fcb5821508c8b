from dataclasses import dataclass, replace
from typing import Protocol
import numpy as np
from sidelink.allocation import PacketBurst, SlotType


@dataclass(eq=False)
class SpectrumSignal:
    """A shaped transmission as handed to, and propagated by, the channel."""
    burst:       PacketBurst
    psd:         np.ndarray      # W/Hz per resource block
    bitmap:      np.ndarray      # resource blocks occupied
    duration_us: float
    tx_rnti:     int
    dst_rnti:    int
    mcs:         int
    tb_size:     int
    num_sym:     int
    slot_idx:    int
    slot_type:   SlotType = SlotType.DATA
    start_us:    float = 0.0

    def attenuated(self, gain_linear: float, start_us: float) -> "SpectrumSignal":
        """Copy of the signal as seen by a receiver with the given channel gain."""
        return replace(self, psd=self.psd * gain_linear, start_us=start_us)

    @property
    def end_us(self) -> float:
        return self.start_us + self.duration_us


class ChannelSink(Protocol):
    """Anything the PHY can hand a shaped transmission to."""

    def transmit(self, signal: SpectrumSignal) -> None:
        ...
