import logging
from sidelink.allocation import DciInfo, SlotAllocInfo, SlotType, make_burst
from sidelink.config import default_params

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
#     PERIODIC TRAFFIC SOURCE (stands in for the sidelink MAC)
# ────────────────────────────────────────────────────────────

class PeriodicTrafficSource:
    def __init__(self, scheduler, phy, interval_us: float = None, packet_size_bytes: int = None,
                 mcs: int = None, num_symbols: int = None, src_rnti: int = None, dst_rnti: int = None):
        """
        Hands one transport block to the PHY every interval_us:
          - packet_size_bytes: size of the single packet in the burst
          - mcs, num_symbols: DCI of every block (symbol start 0, slot 0)
          - src_rnti / dst_rnti: transmitter and destination identifiers
        Missing values are taken from default_params.
        """
        self.scheduler = scheduler
        self.phy = phy
        self.interval_us = interval_us if interval_us is not None else default_params['interval_us']
        self.packet_size_bytes = (packet_size_bytes if packet_size_bytes is not None
                                  else default_params['packet_size_bytes'])
        self.mcs = mcs if mcs is not None else default_params['mcs']
        self.num_symbols = num_symbols if num_symbols is not None else default_params['num_symbols']
        self.src_rnti = src_rnti if src_rnti is not None else default_params['tx_rnti']
        self.dst_rnti = dst_rnti if dst_rnti is not None else default_params['rx_rnti']
        if self.interval_us <= 0:
            raise ValueError(f"interval_us must be positive, got {self.interval_us}")

        self.tx_count = 0
        self._event = None

    def start(self, delay_us: float = 0.0):
        self._event = self.scheduler.schedule(delay_us, self._tx)

    def stop(self):
        self.scheduler.cancel(self._event)
        self._event = None

    def make_allocation(self) -> SlotAllocInfo:
        dci = DciInfo(
            mcs=self.mcs,
            sym_start=0,
            num_sym=self.num_symbols,
            tb_size=self.packet_size_bytes,
            rnti=self.src_rnti,
        )
        return SlotAllocInfo(dci=dci, rnti=self.dst_rnti, slot_idx=0, slot_type=SlotType.DATA)

    def _tx(self):
        burst = make_burst(self.packet_size_bytes)
        self.phy.add_transport_block(burst, self.make_allocation())
        self.tx_count += 1
        logger.debug("t=%.1f us: queued packet %d of %d bytes", self.scheduler.now,
                     self.tx_count, burst.size)
        # Next packet one interval later
        self._event = self.scheduler.schedule(self.interval_us, self._tx)
