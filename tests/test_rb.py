import numpy as np
import pytest

from sidelink.rb import (
    build_mask,
    create_tx_psd,
    dbm_to_watts,
    select_subchannels,
    watts_to_dbm,
)


def test_full_band_selection(pmc):
    bitmap = select_subchannels(pmc.num_rb)
    assert bitmap.shape == (pmc.num_rb,)
    assert np.count_nonzero(bitmap) == pmc.num_rb


@pytest.mark.parametrize("power_dbm", [-10.0, 0.0, 23.0, 30.0])
def test_psd_conserves_power(pmc, power_dbm):
    mask = build_mask(pmc, power_dbm)
    assert mask.active_count == pmc.num_rb
    assert mask.total_power_w() == pytest.approx(dbm_to_watts(power_dbm), rel=1e-12)
    assert watts_to_dbm(mask.total_power_w()) == pytest.approx(power_dbm)


def test_psd_is_uniform_over_active_blocks(pmc):
    mask = build_mask(pmc, 30.0)
    expected = 1.0 / pmc.num_rb / pmc.rb_bandwidth_hz
    assert np.allclose(mask.psd, expected)


def test_partial_bitmap_leaves_unused_blocks_empty():
    bitmap = np.array([1, 0, 1, 0])
    psd = create_tx_psd(bitmap, 30.0, 1e6)
    assert psd[1] == 0.0 and psd[3] == 0.0
    assert psd[0] == pytest.approx(0.5 / 1e6)
    assert np.sum(psd * 1e6) == pytest.approx(1.0)


def test_empty_bitmap_gives_zero_psd():
    psd = create_tx_psd(np.zeros(5, dtype=int), 30.0, 1e6)
    assert not psd.any()


def test_dbm_conversions():
    assert dbm_to_watts(30.0) == pytest.approx(1.0)
    assert dbm_to_watts(0.0) == pytest.approx(1e-3)
    assert watts_to_dbm(1.0) == pytest.approx(30.0)
