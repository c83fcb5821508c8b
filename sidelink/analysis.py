import pandas as pd
import matplotlib.pyplot as plt
from sidelink.simulator import LinkResult


def build_dataframe(results: list[LinkResult]) -> pd.DataFrame:
    df = pd.DataFrame({
        'distance_m': [r.distance_m for r in results],
        'tx_packets': [r.tx_packets for r in results],
        'rx_packets': [r.rx_packets for r in results],
        'prr': [r.prr for r in results],
        'avg_sinr_db': [r.avg_sinr_db for r in results],
    })
    return df


def build_rx_dataframe(results: list[LinkResult]) -> pd.DataFrame:
    rows = [
        {'distance_m': r.distance_m, **entry}
        for r in results
        for entry in r.rx_log
    ]
    return pd.DataFrame(rows, columns=['distance_m', 'time_us', 'size_bytes', 'sinr_db', 'cqi', 'ok'])


def p5(x: pd.Series) -> float:
    return x.quantile(0.05)


def compute_statistics(rx_df: pd.DataFrame) -> pd.DataFrame:
    stats = rx_df.groupby('distance_m')['sinr_db'].agg(['mean', 'median', 'min', 'max', p5])
    return stats


def plot_sinr_vs_distance(df: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots()
    ax.plot(df['distance_m'], df['avg_sinr_db'], marker='o')
    ax.set_title('Average SINR vs Distance')
    ax.set_xlabel('Distance (m)')
    ax.set_ylabel('SINR (dB)')
    return fig


def plot_prr_vs_distance(df: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots()
    ax.plot(df['distance_m'], df['prr'], marker='s')
    ax.set_ylim(0, 1.05)
    ax.set_title('Packet Reception Ratio vs Distance')
    ax.set_xlabel('Distance (m)')
    ax.set_ylabel('PRR')
    return fig


def plot_sinr_histogram(rx_df: pd.DataFrame, bins: int = 30) -> plt.Figure:
    fig, ax = plt.subplots()
    for distance, group in rx_df.groupby('distance_m'):
        ax.hist(group['sinr_db'], bins=bins, alpha=0.5, label=f'{distance:g} m')
    ax.set_title('Histogram of per-block SINR')
    ax.set_xlabel('SINR (dB)')
    ax.set_ylabel('Count')
    if len(rx_df):
        ax.legend()
    return fig
