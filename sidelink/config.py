NUMEROLOGIES = {
    0: 15,
    1: 30,
    2: 60,
    3: 120,
}

SUBCARRIERS_PER_RB = 12
SYMBOLS_PER_SLOT = 14
SUBFRAME_PERIOD_US = 1000.0
SUBFRAMES_PER_FRAME = 10

MCS_TABLE = {
    0:  (2,  0.12),
    1:  (2,  0.19),
    2:  (2,  0.25),
    3:  (2,  0.37),
    4:  (4,  0.60),
    5:  (4,  0.88),
    6:  (6,  0.36),
    7:  (6,  0.48),
    8:  (6,  0.60),
    9:  (6,  0.74),
    10: (6,  0.88),
    11: (8,  0.37),
    12: (8,  0.48),
    13: (8,  0.60),
    14: (8,  0.74),
    15: (8,  0.93),
}

SPEED_OF_LIGHT = 3e8
BOLTZMANN_NOISE_DBM_HZ = -174.0
BROADCAST_RNTI = 0

default_params = {
    'scs_mu': 2,
    'bandwidth_mhz': 100,
    'center_frequency_ghz': 28.0,
    'tx_power_dbm': 30.0,
    'noise_figure_db': 5.0,
    'distance_m': 400.0,
    'sim_time_ms': 200.0,
    'start_time_us': 1000.0,
    'interval_us': 1000.0,
    'packet_size_bytes': 1024,
    'mcs': 0,
    'num_symbols': 3,
    'tx_rnti': 1,
    'rx_rnti': 2,
    'pathloss_exponent': 2.0,
    'seed': 1,
}
