import logging
import random
from enum import Enum
import numpy as np
from sidelink.config import BROADCAST_RNTI
from sidelink.channel import noise_psd
from sidelink.events import EventScheduler
from sidelink.link_adaptation import estimate_bler
from sidelink.spectrum import SpectrumSignal

logger = logging.getLogger(__name__)

# Arrivals closer than this to the end of the block being received count as back to back
TIME_EPS_US = 1e-6


class SpectrumPhyState(Enum):
    IDLE = "idle"
    TX = "tx"
    RX = "rx"


def effective_sinr_db(sinr: np.ndarray, bitmap: np.ndarray) -> float:
    """10*log10 of the mean linear SINR over the occupied resource blocks."""
    used = sinr[np.asarray(bitmap) != 0]
    if used.size == 0:
        return float("-inf")
    mean = float(np.mean(used))
    return float(10 * np.log10(mean)) if mean > 0 else float("-inf")


class SidelinkSpectrumPhy:
    """
    Air interface of one sidelink device.

    On the transmit side it is the ChannelSink of the SidelinkPhy and forwards
    shaped signals to the channel. On the receive side it tracks every signal
    that reaches the antenna as interference and decodes the ones addressed
    to its RNTI:
      - per-RB SINR = S / (N0*NF + I), I weighted by time overlap
      - SINR callbacks get the per-RB SINR array
      - a BLER draw on the effective SINR decides rx ok / rx error
    Half duplex: nothing is decoded while transmitting.
    """

    def __init__(self, scheduler: EventScheduler, rnti: int, position=(0.0, 0.0, 0.0),
                 noise_figure_db: float = 5.0, seed=None):
        self.scheduler = scheduler
        self.rnti = rnti
        self.position = tuple(position)
        self.noise_figure_db = noise_figure_db
        self.channel = None
        self.state = SpectrumPhyState.IDLE
        self._rng = random.Random(seed)

        self._tx_end_us = 0.0
        self._active = []               # signals currently on the air at this antenna
        self._rx_signal = None
        self._rx_end_event = None
        self._rx_interference = None    # overlap-weighted interference PSD
        self._rx_corrupted = False

        self._rx_ok_callback = None
        self._rx_error_callback = None
        self._sinr_callbacks = []

    def set_channel(self, channel):
        self.channel = channel
        channel.add_rx(self)

    def set_rx_ok_callback(self, cb):
        self._rx_ok_callback = cb

    def set_rx_error_callback(self, cb):
        self._rx_error_callback = cb

    def add_sinr_callback(self, cb):
        self._sinr_callbacks.append(cb)

    # ── transmit side ──────────────────────────────────────

    def transmit(self, signal: SpectrumSignal):
        if self.channel is None:
            raise RuntimeError(f"spectrum phy {self.rnti} is not attached to a channel")
        if self.state == SpectrumPhyState.RX:
            # half duplex: the reception in progress is lost
            self._rx_corrupted = True
        self.state = SpectrumPhyState.TX
        self._tx_end_us = max(self._tx_end_us, self.scheduler.now + signal.duration_us)
        self.scheduler.schedule(signal.duration_us, self._end_tx)
        self.channel.start_tx(signal, self)

    def _end_tx(self):
        if self.scheduler.now >= self._tx_end_us:
            self.state = SpectrumPhyState.RX if self._rx_signal is not None else SpectrumPhyState.IDLE

    # ── receive side ───────────────────────────────────────

    def start_rx(self, signal: SpectrumSignal):
        rx = self._rx_signal
        if rx is not None and rx.end_us <= signal.start_us + TIME_EPS_US:
            # the block being received ends as this one starts
            self.scheduler.cancel(self._rx_end_event)
            self._end_rx(rx)

        if self._rx_signal is not None:
            self._add_interference(signal)

        addressed = signal.dst_rnti in (self.rnti, BROADCAST_RNTI)
        if addressed and self._rx_signal is None and self.state != SpectrumPhyState.TX:
            self._rx_signal = signal
            self._rx_corrupted = False
            self._rx_interference = np.zeros_like(signal.psd)
            for other in self._active:
                self._add_interference(other)
            self.state = SpectrumPhyState.RX
            self._rx_end_event = self.scheduler.schedule(signal.duration_us, self._end_rx, signal)
        elif addressed:
            logger.debug("rnti %d: signal from rnti %d not decoded (state %s)",
                         self.rnti, signal.tx_rnti, self.state.value)

        self._active.append(signal)
        self.scheduler.schedule(signal.duration_us, self._end_signal, signal)

    def _add_interference(self, other: SpectrumSignal):
        rx = self._rx_signal
        overlap = min(other.end_us, rx.end_us) - max(other.start_us, rx.start_us)
        if overlap > TIME_EPS_US and rx.duration_us > 0:
            self._rx_interference += other.psd * (overlap / rx.duration_us)

    def _end_signal(self, signal: SpectrumSignal):
        if signal in self._active:
            self._active.remove(signal)

    def _end_rx(self, signal: SpectrumSignal):
        noise = noise_psd(self.noise_figure_db, signal.psd.shape[0])
        sinr = signal.psd / (noise + self._rx_interference)
        sinr[np.asarray(signal.bitmap) == 0] = 0.0
        for cb in self._sinr_callbacks:
            cb(sinr)

        sinr_db = effective_sinr_db(sinr, signal.bitmap)
        bler = estimate_bler(sinr_db, signal.mcs)
        ok = not self._rx_corrupted and self._rng.random() > bler
        logger.debug("rnti %d: rx from rnti %d, SINR %.2f dB, BLER %.3f -> %s",
                     self.rnti, signal.tx_rnti, sinr_db, bler, "ok" if ok else "error")

        self._rx_signal = None
        self._rx_end_event = None
        self._rx_interference = None
        if self.state == SpectrumPhyState.RX:
            self.state = SpectrumPhyState.IDLE

        if ok and self._rx_ok_callback is not None:
            self._rx_ok_callback(signal.burst)
        elif not ok and self._rx_error_callback is not None:
            self._rx_error_callback(signal.burst)
