from dataclasses import dataclass
import logging
import math

from sidelink.channel import SpectrumChannel, compute_pathloss
from sidelink.config import default_params
from sidelink.events import EventScheduler
from sidelink.frames import get_frame_params
from sidelink.link_adaptation import sinr_to_cqi
from sidelink.phy import SidelinkPhy
from sidelink.spectrum_phy import SidelinkSpectrumPhy, effective_sinr_db
from sidelink.traffic import PeriodicTrafficSource

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
#    SIMULATION RESULT
# ────────────────────────────────────────────────────────────

@dataclass
class LinkResult:
    # One tx -> rx link at a fixed distance: counters, SINR per block, rx log
    distance_m:    float
    tx_packets:    int
    dispatched:    int
    rx_packets:    int
    sinr_db:       list
    rx_log:        list

    @property
    def prr(self) -> float:
        return self.rx_packets / self.tx_packets if self.tx_packets else 0.0

    @property
    def avg_sinr_db(self) -> float:
        # Plain average of the per-block dB values
        finite = [s for s in self.sinr_db if math.isfinite(s)]
        return sum(finite) / len(finite) if finite else float("nan")


def _validate(cfg: dict):
    for key in ("distance_m", "sim_time_ms", "interval_us"):
        if cfg[key] <= 0:
            raise ValueError(f"{key} must be positive, got {cfg[key]}")
    if cfg["packet_size_bytes"] < 0 or cfg["num_symbols"] < 0:
        raise ValueError("packet_size_bytes and num_symbols cannot be negative")


# ────────────────────────────────────────────────────────────
#    MAIN SIMULATION FUNCTION
# ────────────────────────────────────────────────────────────

def run_scenario(params: dict = None) -> LinkResult:
    # 1) Base configuration overridden by the given parameters
    cfg = default_params.copy()
    if params:
        cfg.update(params)
    _validate(cfg)

    # 2) Numerology snapshot shared by both devices
    pmc = get_frame_params(cfg["scs_mu"], cfg["bandwidth_mhz"], cfg["center_frequency_ghz"])
    sched = EventScheduler()
    channel = SpectrumChannel(sched, pmc.center_frequency_ghz, cfg["pathloss_exponent"])

    # 3) Tx node at the origin, rx node distance_m away on the x axis
    d = cfg["distance_m"]
    tx_ssp = SidelinkSpectrumPhy(sched, cfg["tx_rnti"], (0.0, 0.0, 0.0),
                                 cfg["noise_figure_db"], seed=cfg["seed"])
    rx_ssp = SidelinkSpectrumPhy(sched, cfg["rx_rnti"], (d, 0.0, 0.0),
                                 cfg["noise_figure_db"], seed=cfg["seed"])
    tx_ssp.set_channel(channel)
    rx_ssp.set_channel(channel)

    tx_phy = SidelinkPhy(sched, tx_ssp, pmc, cfg["tx_power_dbm"], cfg["noise_figure_db"])
    rx_phy = SidelinkPhy(sched, rx_ssp, pmc, cfg["tx_power_dbm"], cfg["noise_figure_db"])

    # 4) Receive-side sinks: SINR per block, then ok / error
    sinr_values, rx_log = [], []
    pending = {}

    def on_sinr(sinr):
        pending["sinr_db"] = effective_sinr_db(sinr, sinr > 0)

    def on_rx(burst, ok):
        sinr_db = pending.pop("sinr_db", float("-inf"))
        sinr_values.append(sinr_db)
        rx_log.append({
            "time_us":    round(sched.now, 3),
            "size_bytes": burst.size,
            "sinr_db":    round(sinr_db, 2),
            "cqi":        sinr_to_cqi(sinr_db),
            "ok":         ok,
        })

    rx_ssp.add_sinr_callback(on_sinr)
    rx_ssp.set_rx_ok_callback(lambda burst: on_rx(burst, True))
    rx_ssp.set_rx_error_callback(lambda burst: on_rx(burst, False))

    source = PeriodicTrafficSource(
        sched, tx_phy,
        interval_us=cfg["interval_us"],
        packet_size_bytes=cfg["packet_size_bytes"],
        mcs=cfg["mcs"],
        num_symbols=cfg["num_symbols"],
        src_rnti=cfg["tx_rnti"],
        dst_rnti=cfg["rx_rnti"],
    )

    # 5) Run: traffic stops at sim_time, then two more slots flush the buffer
    end_us = cfg["sim_time_ms"] * 1000.0
    tx_phy.start()
    rx_phy.start()
    source.start(cfg["start_time_us"])
    logger.info("distance %.1f m: PL %.2f dB, %d RBs, slot %.2f us",
                d, compute_pathloss(d, pmc.center_frequency_ghz, cfg["pathloss_exponent"]),
                pmc.num_rb, pmc.slot_duration_us)
    sched.run(until_us=end_us)
    source.stop()
    sched.run(until_us=end_us + 2 * pmc.slot_duration_us)
    tx_phy.dispose()
    rx_phy.dispose()
    sched.run()

    rx_ok = sum(1 for r in rx_log if r["ok"])
    result = LinkResult(
        distance_m=d,
        tx_packets=source.tx_count,
        dispatched=tx_phy.tx_count,
        rx_packets=rx_ok,
        sinr_db=sinr_values,
        rx_log=rx_log,
    )
    logger.info("distance %.1f m: average SINR %.2f dB, PRR %.3f",
                d, result.avg_sinr_db, result.prr)
    return result


def run_distance_sweep(distances, params: dict = None) -> list:
    results = []
    for d in distances:
        run_params = dict(params or {})
        run_params["distance_m"] = d
        results.append(run_scenario(run_params))
    return results
