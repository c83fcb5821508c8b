from dataclasses import dataclass
from sidelink.config import (
    NUMEROLOGIES,
    SUBCARRIERS_PER_RB,
    SYMBOLS_PER_SLOT,
    SUBFRAME_PERIOD_US,
    default_params,
)


@dataclass(frozen=True)
class PhyMacConfig:
    """
    Immutable numerology snapshot shared by every PHY component.

    All times are in microseconds. The slot duration is derived from the
    subframe period, so ``subframe_period_us == slots_per_subframe *
    slot_duration_us`` always holds.
    """
    symbol_duration_us: float
    symbols_per_slot: int
    slots_per_subframe: int
    subframe_period_us: float
    num_rb: int
    rb_bandwidth_hz: float
    scs_khz: int = 60
    center_frequency_ghz: float = 28.0

    def __post_init__(self):
        if self.num_rb <= 0:
            raise ValueError(f"num_rb must be positive, got {self.num_rb}")
        if self.rb_bandwidth_hz <= 0:
            raise ValueError(f"rb_bandwidth_hz must be positive, got {self.rb_bandwidth_hz}")
        if self.symbols_per_slot <= 0 or self.slots_per_subframe <= 0:
            raise ValueError("symbols_per_slot and slots_per_subframe must be positive")
        if self.symbol_duration_us <= 0 or self.subframe_period_us <= 0:
            raise ValueError("symbol and subframe durations must be positive")
        # allow for the rounding of symbol durations such as 1000/4/14
        if self.symbols_per_slot * self.symbol_duration_us > self.slot_duration_us * (1 + 1e-9):
            raise ValueError(
                f"{self.symbols_per_slot} symbols of {self.symbol_duration_us:.3f} us "
                f"do not fit in a {self.slot_duration_us:.3f} us slot"
            )

    @property
    def slot_duration_us(self) -> float:
        return self.subframe_period_us / self.slots_per_subframe

    @property
    def bandwidth_hz(self) -> float:
        return self.num_rb * self.rb_bandwidth_hz

    def symbols_duration_us(self, num_symbols: int) -> float:
        """Air time of ``num_symbols`` OFDM symbols."""
        return num_symbols * self.symbol_duration_us


# Builds the snapshot for an NR numerology (slot of 14 symbols, 1 ms subframe)
def get_frame_params(scs_mu: int = None, bandwidth_mhz: float = None,
                     center_frequency_ghz: float = None) -> PhyMacConfig:
    if scs_mu is None:
        scs_mu = default_params['scs_mu']
    if bandwidth_mhz is None:
        bandwidth_mhz = default_params['bandwidth_mhz']
    if center_frequency_ghz is None:
        center_frequency_ghz = default_params['center_frequency_ghz']

    # 1) Sub-carrier spacing from the numerology index
    if scs_mu not in NUMEROLOGIES:
        raise ValueError(f"unknown numerology {scs_mu}, expected one of {sorted(NUMEROLOGIES)}")
    scs_khz = NUMEROLOGIES[scs_mu]
    # 2) 2^mu slots per 1 ms subframe, each slot holds 14 symbols
    slots_per_subframe = 2 ** scs_mu
    symbol_duration_us = SUBFRAME_PERIOD_US / slots_per_subframe / SYMBOLS_PER_SLOT
    # 3) One resource block spans 12 sub-carriers; one chunk per RB
    rb_bandwidth_hz = SUBCARRIERS_PER_RB * scs_khz * 1e3
    num_rb = int(bandwidth_mhz * 1e6 / rb_bandwidth_hz)

    return PhyMacConfig(
        symbol_duration_us=symbol_duration_us,
        symbols_per_slot=SYMBOLS_PER_SLOT,
        slots_per_subframe=slots_per_subframe,
        subframe_period_us=SUBFRAME_PERIOD_US,
        num_rb=num_rb,
        rb_bandwidth_hz=rb_bandwidth_hz,
        scs_khz=scs_khz,
        center_frequency_ghz=center_frequency_ghz,
    )
