import os
import logging
from flask import Flask, render_template, request
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from sidelink.config import default_params
from sidelink.simulator import run_distance_sweep
from sidelink.analysis import (
    build_dataframe,
    build_rx_dataframe,
    compute_statistics,
    plot_prr_vs_distance,
    plot_sinr_histogram,
    plot_sinr_vs_distance,
)
from sidelink.log_utils import get_logger

logger = get_logger("sidelink", log_level=logging.INFO)

# Flask application and directory for the generated plots
app = Flask(__name__)
images_dir = os.path.join(app.static_folder, "images")
os.makedirs(images_dir, exist_ok=True)


def _parse_form(form) -> tuple[dict, list]:
    params = {
        "scs_mu":            int(form.get("scs_mu", default_params["scs_mu"])),
        "bandwidth_mhz":     float(form.get("bandwidth_mhz", default_params["bandwidth_mhz"])),
        "tx_power_dbm":      float(form.get("tx_power_dbm", default_params["tx_power_dbm"])),
        "noise_figure_db":   float(form.get("noise_figure_db", default_params["noise_figure_db"])),
        "mcs":               int(form.get("mcs", default_params["mcs"])),
        "num_symbols":       int(form.get("num_symbols", default_params["num_symbols"])),
        "packet_size_bytes": int(form.get("packet_size_bytes", default_params["packet_size_bytes"])),
        "interval_us":       float(form.get("interval_us", default_params["interval_us"])),
        "sim_time_ms":       float(form.get("sim_time_ms", default_params["sim_time_ms"])),
    }
    raw = form.get("distances_m", "400, 450, 500, 550, 600")
    distances = [float(x) for x in raw.replace(";", ",").split(",") if x.strip()]
    if not distances:
        raise ValueError("at least one distance is required")
    return params, distances


def _save(fig, name: str) -> str:
    fig.tight_layout()
    fig.savefig(os.path.join(images_dir, name))
    plt.close(fig)
    return f"images/{name}"


@app.route("/", methods=["GET", "POST"])
def index():
    error = None

    if request.method == "POST":
        # 1) Read the form
        try:
            params, distances = _parse_form(request.form)
            results = run_distance_sweep(distances, params)
        except ValueError as exc:
            logger.warning("rejected scenario: %s", exc)
            error = str(exc)
            return render_template("index.html", error=error, defaults=default_params), 400

        # 2) Summary per distance and SINR statistics
        df = build_dataframe(results)
        rx_df = build_rx_dataframe(results)
        summary_html = df.round(3).to_html(classes="table table-sm", index=False)
        stats_html = (compute_statistics(rx_df).round(2).reset_index()
                      .to_html(classes="table table-sm", index=False))

        # 3) Plots
        images = {
            "sinr_image": _save(plot_sinr_vs_distance(df), "sinr_vs_distance.png"),
            "prr_image":  _save(plot_prr_vs_distance(df), "prr_vs_distance.png"),
            "hist_image": _save(plot_sinr_histogram(rx_df), "sinr_histogram.png"),
        }

        return render_template(
            "results.html",
            summary_table=summary_html,
            stats_table=stats_html,
            **images,
        )

    # GET: main page with the form
    return render_template("index.html", error=error, defaults=default_params)


if __name__ == "__main__":
    app.run(debug=True)
