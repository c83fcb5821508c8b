import logging
from enum import Enum
from typing import Callable, List, Optional

from sidelink.allocation import PacketBurst, SfnSf, SlotAllocInfo
from sidelink.buffer import TransmissionBuffer
from sidelink.events import Event, EventScheduler
from sidelink.frames import PhyMacConfig
from sidelink.rb import ResourceMask, build_mask
from sidelink.spectrum import ChannelSink, SpectrumSignal

logger = logging.getLogger(__name__)


class PhyState(Enum):
    IDLE = "idle"
    TRANSMITTING = "transmitting"


# ────────────────────────────────────────────────────────────
#    SIDELINK PHY: SLOT SCHEDULER + TRANSMISSION DISPATCHER
# ────────────────────────────────────────────────────────────

class SidelinkPhy:
    """
    Slot-synchronous transmitter of a sidelink device.

    Transport blocks handed over by the MAC wait in a FIFO buffer until the
    next slot tick. At every tick the whole buffer is drained and each block
    is sent over the full band for num_sym * symbol_duration, starting
    sym_start symbols into the slot, so the blocks of one slot follow each
    other in time. Then the tick re-arms itself one slot later.
    """

    def __init__(self, scheduler: EventScheduler, spectrum_phy: ChannelSink,
                 config: PhyMacConfig, tx_power_dbm: float = 30.0,
                 noise_figure_db: float = 5.0):
        self.scheduler = scheduler
        self._spectrum_phy = spectrum_phy
        self._config = config
        self._tx_power_dbm = tx_power_dbm
        self._noise_figure_db = noise_figure_db
        self._buffer = TransmissionBuffer()
        self._slot_indication: Optional[Callable[[SfnSf], None]] = None

        # timing state
        self.state = PhyState.IDLE
        self.sfn_sf = SfnSf()
        self.slot_counter = 0
        self._next_slot_event: Optional[Event] = None
        self._pending_tx: List[Event] = []    # dispatches later in the current slot
        self._disposed = False

        # bookkeeping
        self.tx_count = 0
        self.skipped_count = 0

    # ── accessors ──────────────────────────────────────────

    def set_tx_power(self, power_dbm: float):
        self._tx_power_dbm = power_dbm

    def get_tx_power(self) -> float:
        return self._tx_power_dbm

    def set_noise_figure(self, nf_db: float):
        self._noise_figure_db = nf_db

    def get_noise_figure(self) -> float:
        return self._noise_figure_db

    def get_configuration_parameters(self) -> PhyMacConfig:
        return self._config

    def get_spectrum_phy(self) -> ChannelSink:
        return self._spectrum_phy

    def set_slot_indication_callback(self, cb: Callable[[SfnSf], None]):
        """The MAC is told about every slot before the buffer is drained."""
        self._slot_indication = cb

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    # ── ingress from the MAC ───────────────────────────────

    def add_transport_block(self, burst: PacketBurst, info: SlotAllocInfo):
        """Queues a transport block for the next slot tick. Always accepted."""
        self._buffer.enqueue(burst, info)

    # ── lifecycle ──────────────────────────────────────────

    def start(self):
        # First slot starts right away; later ones are re-armed by _start_slot
        if self._disposed:
            raise RuntimeError("cannot start a disposed SidelinkPhy")
        if self._next_slot_event is None:
            self._next_slot_event = self.scheduler.schedule_now(self._start_slot)

    def dispose(self):
        """Cancels the pending slot tick and any dispatch still due in this slot. Safe to call more than once."""
        self.scheduler.cancel(self._next_slot_event)
        self._next_slot_event = None
        for event in self._pending_tx:
            self.scheduler.cancel(event)
        self._pending_tx = []
        self._disposed = True
        self.state = PhyState.IDLE

    # ── slot tick ──────────────────────────────────────────

    def _start_slot(self):
        if self._disposed:
            return
        self.state = PhyState.TRANSMITTING
        cfg = self._config
        # offsets are shorter than a slot, so last slot's dispatches have all run
        self._pending_tx = []

        # 1) Let the MAC fill the buffer for this slot
        if self._slot_indication is not None:
            self._slot_indication(self.sfn_sf)

        # 2) Take what is buffered now; anything added from here on waits a slot
        entries = self._buffer.drain_all()
        for burst, info in entries:
            if self._disposed:
                break
            dci = info.dci
            if dci.num_sym == 0 or dci.tb_size == 0:
                logger.debug("slot %d: skipping empty allocation for rnti %d (num_sym=%d, tb_size=%d)",
                             self.slot_counter, info.rnti, dci.num_sym, dci.tb_size)
                self.skipped_count += 1
                continue
            if dci.sym_start < 0 or dci.sym_start + dci.num_sym > cfg.symbols_per_slot:
                logger.warning("slot %d: allocation %d+%d exceeds %d symbols, dropped",
                               self.slot_counter, dci.sym_start, dci.num_sym, cfg.symbols_per_slot)
                self.skipped_count += 1
                continue

            mask = build_mask(cfg, self._tx_power_dbm)
            duration_us = cfg.symbols_duration_us(dci.num_sym)
            offset_us = cfg.symbols_duration_us(dci.sym_start)
            if offset_us == 0:
                self._send_data_channels(burst, duration_us, info.slot_idx, dci.mcs,
                                         dci.tb_size, mask, info)
            else:
                # the block goes on air at its first symbol within the slot
                self._pending_tx.append(self.scheduler.schedule(
                    offset_us, self._send_data_channels, burst, duration_us,
                    info.slot_idx, dci.mcs, dci.tb_size, mask, info))

        # 3) Re-arm for the next slot boundary and advance the cursor
        if not self._disposed:
            self._next_slot_event = self.scheduler.schedule(cfg.slot_duration_us, self._start_slot)
        self.slot_counter += 1
        self.sfn_sf = self.sfn_sf.next(cfg.slots_per_subframe)
        self.state = PhyState.IDLE

    # ── dispatcher ─────────────────────────────────────────

    def _send_data_channels(self, burst, duration_us, slot_idx, mcs, size, mask: ResourceMask, info):
        signal = SpectrumSignal(
            burst=burst,
            psd=mask.psd,
            bitmap=mask.bitmap,
            duration_us=duration_us,
            tx_rnti=info.dci.rnti,
            dst_rnti=info.rnti,
            mcs=mcs,
            tb_size=size,
            num_sym=info.dci.num_sym,
            slot_idx=slot_idx,
            slot_type=info.slot_type,
            start_us=self.scheduler.now,
        )
        logger.debug("t=%.3f us: tx %d bytes to rnti %d, mcs %d, symbols %d+%d, %.3f us",
                     self.scheduler.now, size, info.rnti, mcs,
                     info.dci.sym_start, info.dci.num_sym, duration_us)
        self.tx_count += 1
        self._spectrum_phy.transmit(signal)
