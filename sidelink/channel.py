import logging
import math
import numpy as np
from sidelink.config import SPEED_OF_LIGHT, BOLTZMANN_NOISE_DBM_HZ
from sidelink.events import EventScheduler
from sidelink.spectrum import SpectrumSignal

logger = logging.getLogger(__name__)

# Reference distance of the log-distance model (1 m)
D0_M = 1.0


def distance_m(a, b) -> float:
    return math.dist(a, b)


def compute_pathloss(d_m, fc_ghz=28.0, exponent=2.0):
    """
    Log-distance path loss in dB:
    - PL0: free space loss at d0 = 1 m for carrier fc_ghz
    - n: attenuation exponent (2.0 is free space)
    PL = PL0 + 10*n*log10(d/d0)
    """
    d = max(d_m, D0_M)
    pl0 = 20 * math.log10(fc_ghz * 1e9) + 20 * math.log10(4 * math.pi * D0_M / SPEED_OF_LIGHT)
    return pl0 + 10 * exponent * math.log10(d / D0_M)


def propagation_delay_us(d_m: float) -> float:
    return d_m / SPEED_OF_LIGHT * 1e6


def noise_psd(noise_figure_db: float, num_rb: int) -> np.ndarray:
    """Thermal noise (-174 dBm/Hz) raised by the noise figure, in W/Hz per RB."""
    n0_w_hz = 10 ** ((BOLTZMANN_NOISE_DBM_HZ + noise_figure_db - 30.0) / 10.0)
    return np.full(num_rb, n0_w_hz)


class SpectrumChannel:
    """
    Reference propagation model: every attached spectrum PHY except the sender
    receives an attenuated copy of each transmission after the propagation delay.
    """

    def __init__(self, scheduler: EventScheduler, fc_ghz: float = 28.0, pathloss_exponent: float = 2.0):
        self.scheduler = scheduler
        self.fc_ghz = fc_ghz
        self.pathloss_exponent = pathloss_exponent
        self._receivers = []

    def add_rx(self, phy):
        if phy not in self._receivers:
            self._receivers.append(phy)

    @property
    def receivers(self) -> list:
        return list(self._receivers)

    def start_tx(self, signal: SpectrumSignal, sender):
        for rx in self._receivers:
            if rx is sender:
                continue
            d = distance_m(sender.position, rx.position)
            pl_db = compute_pathloss(d, self.fc_ghz, self.pathloss_exponent)
            delay_us = propagation_delay_us(d)
            rx_signal = signal.attenuated(10 ** (-pl_db / 10.0), self.scheduler.now + delay_us)
            logger.debug("rnti %d -> rnti %d: d=%.1f m, PL=%.2f dB, delay=%.3f us",
                         signal.tx_rnti, rx.rnti, d, pl_db, delay_us)
            self.scheduler.schedule(delay_us, rx.start_rx, rx_signal)
