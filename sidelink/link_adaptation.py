from dataclasses import dataclass
import math
from sidelink.config import MCS_TABLE

@dataclass
class MCSParams:
    index:      int       # MCS index
    Qm:         int       # bits per modulation symbol
    code_rate:  float     # code rate of the scheme

# Look up the MCS parameters, clamping the index to the table
def get_mcs_params(mcs_idx: int) -> MCSParams:
    keys = sorted(MCS_TABLE.keys())
    if mcs_idx < keys[0]:
        mcs_idx = keys[0]
    elif mcs_idx > keys[-1]:
        mcs_idx = keys[-1]
    Qm, code_rate = MCS_TABLE[mcs_idx]
    return MCSParams(index=mcs_idx, Qm=Qm, code_rate=code_rate)

# Block error rate from the effective SINR of a transport block
def estimate_bler(sinr_db: float, mcs_idx: int) -> float:
    if not math.isfinite(sinr_db):
        return 0.0 if sinr_db > 0 else 1.0

    # Reference SNR grows 5 dB per MCS step, up to the top of the table
    snr_ref = 5.0 * get_mcs_params(mcs_idx).index

    # alpha sets the slope of the waterfall
    alpha = 0.5

    # BLER = exp(-alpha * (sinr - snr_ref)), clipped to [0, 1]
    exponent = -alpha * (sinr_db - snr_ref)
    if exponent > 50:
        return 1.0
    bler = math.exp(exponent)
    return min(max(bler, 0.0), 1.0)

def sinr_to_cqi(sinr_db) -> int:
    """
    Maps SINR in dB to a CQI in 0..15 in 5 dB steps.
    Non-finite values map to CQI 0.
    """
    if not isinstance(sinr_db, (int, float)) or not math.isfinite(sinr_db):
        return 0
    cqi = int(math.floor(sinr_db / 5.0))
    return min(max(cqi, 0), 15)
