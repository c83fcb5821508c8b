import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from sidelink.allocation import DciInfo, SlotAllocInfo, SlotType
from sidelink.events import EventScheduler
from sidelink.frames import PhyMacConfig


class RecordingSink:
    """ChannelSink that keeps every transmission with its dispatch time."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.signals = []
        self.times = []

    def transmit(self, signal):
        self.signals.append(signal)
        self.times.append(self.scheduler.now)


@pytest.fixture
def scheduler():
    return EventScheduler()


@pytest.fixture
def pmc():
    """14 symbols/slot, 4 slots/subframe, 1 ms subframe, 25 RBs of 720 kHz."""
    return PhyMacConfig(
        symbol_duration_us=1000.0 / 4 / 14,
        symbols_per_slot=14,
        slots_per_subframe=4,
        subframe_period_us=1000.0,
        num_rb=25,
        rb_bandwidth_hz=720e3,
    )


@pytest.fixture
def sink(scheduler):
    return RecordingSink(scheduler)


def make_info(dst=2, mcs=0, tb_size=1024, sym_start=0, num_sym=3, src=1,
              slot_idx=0, slot_type=SlotType.DATA):
    dci = DciInfo(mcs=mcs, sym_start=sym_start, num_sym=num_sym, tb_size=tb_size, rnti=src)
    return SlotAllocInfo(dci=dci, rnti=dst, slot_idx=slot_idx, slot_type=slot_type)
