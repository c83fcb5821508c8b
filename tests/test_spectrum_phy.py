import numpy as np
import pytest

from sidelink.allocation import make_burst
from sidelink.channel import (
    SpectrumChannel,
    compute_pathloss,
    noise_psd,
    propagation_delay_us,
)
from sidelink.config import BROADCAST_RNTI
from sidelink.phy import SidelinkPhy
from sidelink.rb import build_mask
from sidelink.spectrum import SpectrumSignal
from sidelink.spectrum_phy import SidelinkSpectrumPhy, SpectrumPhyState

from conftest import make_info


def make_signal(pmc, dst, src=1, power_dbm=30.0, num_sym=3, mcs=0, start_us=0.0):
    mask = build_mask(pmc, power_dbm)
    return SpectrumSignal(
        burst=make_burst(100), psd=mask.psd, bitmap=mask.bitmap,
        duration_us=pmc.symbols_duration_us(num_sym), tx_rnti=src, dst_rnti=dst,
        mcs=mcs, tb_size=100, num_sym=num_sym, slot_idx=0, start_us=start_us,
    )


class Sinks:
    def __init__(self, phy):
        self.ok, self.err, self.sinr = [], [], []
        phy.set_rx_ok_callback(self.ok.append)
        phy.set_rx_error_callback(self.err.append)
        phy.add_sinr_callback(self.sinr.append)


@pytest.fixture
def link(scheduler):
    channel = SpectrumChannel(scheduler, fc_ghz=28.0)
    tx = SidelinkSpectrumPhy(scheduler, 1, (0.0, 0.0, 0.0), seed=3)
    rx = SidelinkSpectrumPhy(scheduler, 2, (50.0, 0.0, 0.0), seed=3)
    tx.set_channel(channel)
    rx.set_channel(channel)
    return channel, tx, rx


def test_pathloss_free_space_reference():
    # free space loss at 1 m for 28 GHz
    assert compute_pathloss(1.0, 28.0) == pytest.approx(61.39, abs=0.02)
    assert compute_pathloss(10.0, 28.0) == pytest.approx(81.39, abs=0.02)
    assert compute_pathloss(0.1, 28.0) == compute_pathloss(1.0, 28.0)
    assert compute_pathloss(100.0, 28.0, exponent=3.0) > compute_pathloss(100.0, 28.0)


def test_propagation_delay():
    assert propagation_delay_us(300.0) == pytest.approx(1.0)


def test_noise_psd_level():
    n = noise_psd(0.0, 4)
    assert n.shape == (4,)
    assert 10 * np.log10(n[0]) + 30 == pytest.approx(-174.0)


def test_receiver_gets_attenuated_signal_after_delay(scheduler, link, pmc):
    channel, tx, rx = link
    arrivals = []
    rx.start_rx = lambda sig: arrivals.append((scheduler.now, sig))
    signal = make_signal(pmc, dst=2)
    tx.transmit(signal)
    assert tx.state == SpectrumPhyState.TX
    scheduler.run()

    (when, rx_sig), = arrivals
    assert when == pytest.approx(propagation_delay_us(50.0))
    gain = 10 ** (-compute_pathloss(50.0, 28.0) / 10)
    assert np.allclose(rx_sig.psd, signal.psd * gain)
    assert rx_sig.start_us == pytest.approx(when)
    assert tx.state == SpectrumPhyState.IDLE


def test_channel_tracks_attached_phys(link):
    channel, tx, rx = link
    assert channel.receivers == [tx, rx]


def test_close_link_is_decoded(scheduler, link, pmc):
    channel, tx, rx = link
    sinks = Sinks(rx)
    tx.transmit(make_signal(pmc, dst=2))
    scheduler.run()
    assert len(sinks.ok) == 1 and sinks.err == []
    assert sinks.ok[0].size == 100
    assert sinks.sinr[0].shape == (pmc.num_rb,)

    # noise limited: SINR = S / N on every RB
    gain = 10 ** (-compute_pathloss(50.0, 28.0) / 10)
    expected = build_mask(pmc, 30.0).psd * gain / noise_psd(5.0, pmc.num_rb)
    assert np.allclose(sinks.sinr[0], expected)


def test_far_link_fails(scheduler, pmc):
    channel = SpectrumChannel(scheduler)
    tx = SidelinkSpectrumPhy(scheduler, 1, (0.0, 0.0, 0.0))
    rx = SidelinkSpectrumPhy(scheduler, 2, (1e6, 0.0, 0.0))
    tx.set_channel(channel)
    rx.set_channel(channel)
    sinks = Sinks(rx)
    tx.transmit(make_signal(pmc, dst=2))
    scheduler.run()
    assert sinks.ok == [] and len(sinks.err) == 1


def test_signal_for_someone_else_is_not_decoded(scheduler, link, pmc):
    channel, tx, rx = link
    sinks = Sinks(rx)
    tx.transmit(make_signal(pmc, dst=9))
    scheduler.run()
    assert sinks.ok == [] and sinks.err == [] and sinks.sinr == []


def test_broadcast_is_decoded(scheduler, link, pmc):
    channel, tx, rx = link
    sinks = Sinks(rx)
    tx.transmit(make_signal(pmc, dst=BROADCAST_RNTI))
    scheduler.run()
    assert len(sinks.ok) == 1


def test_concurrent_transmission_lowers_sinr(scheduler, link, pmc):
    channel, tx, rx = link
    sinks = Sinks(rx)
    tx.transmit(make_signal(pmc, dst=2))
    scheduler.run()
    clean = sinks.sinr[0].copy()

    other = SidelinkSpectrumPhy(scheduler, 3, (50.0, 10.0, 0.0))
    other.set_channel(channel)
    tx.transmit(make_signal(pmc, dst=2, start_us=scheduler.now))
    other.transmit(make_signal(pmc, dst=7, src=3, start_us=scheduler.now))
    scheduler.run()
    assert len(sinks.sinr) == 2
    assert np.all(sinks.sinr[1] < clean)


def test_half_duplex_drops_reception_while_transmitting(scheduler, link, pmc):
    channel, tx, rx = link
    sinks = Sinks(rx)
    rx.transmit(make_signal(pmc, dst=1, src=2, num_sym=14))
    tx.transmit(make_signal(pmc, dst=2))
    scheduler.run()
    assert sinks.ok == [] and sinks.err == []


def test_transmit_without_channel_fails(scheduler, pmc):
    lonely = SidelinkSpectrumPhy(scheduler, 5)
    with pytest.raises(RuntimeError):
        lonely.transmit(make_signal(pmc, dst=2))


@pytest.mark.parametrize("slot", [0, 3])
def test_both_blocks_of_one_slot_are_decoded(scheduler, link, pmc, slot):
    channel, tx, rx = link
    sinks = Sinks(rx)
    phy = SidelinkPhy(scheduler, tx, pmc)

    def on_slot(sfn):
        if phy.slot_counter == slot:
            phy.add_transport_block(make_burst(100), make_info(sym_start=0, num_sym=3))
            phy.add_transport_block(make_burst(200), make_info(sym_start=3, num_sym=3))

    phy.set_slot_indication_callback(on_slot)
    phy.start()
    scheduler.run(until_us=(slot + 2) * pmc.slot_duration_us)

    assert [b.size for b in sinks.ok] == [100, 200]
    assert sinks.err == []
    # no self-interference between consecutive blocks: both see the noise-limited SINR
    gain = 10 ** (-compute_pathloss(50.0, 28.0) / 10)
    expected = build_mask(pmc, 30.0).psd * gain / noise_psd(5.0, pmc.num_rb)
    assert len(sinks.sinr) == 2
    assert all(np.allclose(s, expected) for s in sinks.sinr)
