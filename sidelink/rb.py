from dataclasses import dataclass
import numpy as np
from sidelink.frames import PhyMacConfig


def dbm_to_watts(power_dbm: float) -> float:
    return 10 ** ((power_dbm - 30.0) / 10.0)


def watts_to_dbm(power_w: float) -> float:
    return 10 * np.log10(power_w) + 30.0


@dataclass
class ResourceMask:
    bitmap: np.ndarray          # 1 where the resource block is used, length = num_rb
    psd: np.ndarray             # W/Hz per resource block, 0 on unused blocks
    rb_bandwidth_hz: float

    @property
    def active_count(self) -> int:
        return int(np.count_nonzero(self.bitmap))

    def total_power_w(self) -> float:
        # Integrate the PSD over the band (one chunk per RB)
        return float(np.sum(self.psd * self.rb_bandwidth_hz))


# Sub-channels used by one transmission: the whole band, every time.
# A single sidelink PHY never multiplexes destinations in frequency.
def select_subchannels(num_rb: int) -> np.ndarray:
    return np.ones(num_rb, dtype=int)


def create_tx_psd(bitmap: np.ndarray, tx_power_dbm: float, rb_bandwidth_hz: float) -> np.ndarray:
    """
    Spreads the transmit power uniformly over the active resource blocks:
    1) dBm -> W
    2) W per active RB (equivalent to p_tx_dbm - 10*log10(n_active))
    3) divide by the RB bandwidth to get W/Hz
    """
    bitmap = np.asarray(bitmap)
    psd = np.zeros(bitmap.shape[0], dtype=float)
    n_active = np.count_nonzero(bitmap)
    if n_active == 0:
        return psd
    power_per_rb_w = dbm_to_watts(tx_power_dbm) / n_active
    psd[bitmap != 0] = power_per_rb_w / rb_bandwidth_hz
    return psd


def build_mask(config: PhyMacConfig, tx_power_dbm: float) -> ResourceMask:
    bitmap = select_subchannels(config.num_rb)
    psd = create_tx_psd(bitmap, tx_power_dbm, config.rb_bandwidth_hz)
    return ResourceMask(bitmap=bitmap, psd=psd, rb_bandwidth_hz=config.rb_bandwidth_hz)
