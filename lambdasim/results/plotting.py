import logging
import os
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from ..config import RESULTS_DIR

logger = logging.getLogger(__name__)


def ensure_results_directory(results_dir: str = RESULTS_DIR):
    """Ensure the results directory exists."""
    os.makedirs(results_dir, exist_ok=True)


def plot_worker_request_distribution(requests_dict: Dict[int, int], policy_name: str = "default_policy",
                                     results_dir: str = RESULTS_DIR) -> Optional[str]:
    """
    Saves a bar chart with the number of invocations placed on each worker.
    """
    ensure_results_directory(results_dir)

    df = pd.DataFrame(list(requests_dict.items()), columns=["WorkerID", "RequestCount"])
    df = df.sort_values(by="WorkerID").reset_index(drop=True)

    if df.empty or df["RequestCount"].max() == 0:
        logger.warning(f"No invocations found for policy {policy_name}, skipping request plot")
        return None

    cmap = sns.color_palette("YlOrRd", as_cmap=True)
    norm = plt.Normalize(df["RequestCount"].min(), df["RequestCount"].max())
    colors = [cmap(norm(val)) for val in df["RequestCount"]]

    plt.figure(figsize=(10, 5))
    bars = plt.bar(df["WorkerID"].astype(str), df["RequestCount"], color=colors)

    for bar, val in zip(bars, df["RequestCount"]):
        plt.text(bar.get_x() + bar.get_width() / 2, val + 0.1, str(val), ha='center', va='bottom', fontsize=9)

    plt.title(f"Invocations per Worker\n({policy_name})", fontsize=14, fontweight='bold')
    plt.xlabel("Worker ID")
    plt.ylabel("Number of Invocations")
    plt.grid(axis='y', linestyle='--', alpha=0.4)
    plt.tight_layout()

    filename = os.path.join(results_dir, f"worker_requests_{policy_name}.png")
    plt.savefig(filename)
    plt.close()
    return filename


def plot_memory_usage_timeline(timeline_df: pd.DataFrame, policy_name: str = "default_policy",
                               results_dir: str = RESULTS_DIR) -> Optional[str]:
    """
    Step plot of memory in use per worker over simulated time.
    `timeline_df` needs `worker_id`, `timestamp` and `memory_in_use` columns.
    """
    ensure_results_directory(results_dir)

    if timeline_df.empty:
        logger.warning(f"No ledger events for policy {policy_name}, skipping memory timeline")
        return None

    palette = sns.color_palette("tab10", n_colors=timeline_df["worker_id"].nunique())

    plt.figure(figsize=(12, 5))
    for color, (worker_id, group) in zip(palette, timeline_df.groupby("worker_id")):
        group = group.sort_values("timestamp")
        # start every worker from an empty VM
        times = np.concatenate(([0.0], group["timestamp"].to_numpy()))
        usage = np.concatenate(([0.0], group["memory_in_use"].to_numpy()))
        plt.step(times, usage, where="post", label=f"VM {worker_id}", color=color)

    plt.xlabel("Simulated Time (s)")
    plt.ylabel("Memory in Use (MB)")
    plt.title(f"Memory Usage per Worker: {policy_name}")
    plt.legend()
    plt.tight_layout()

    filename = os.path.join(results_dir, f"memory_timeline_{policy_name}.png")
    plt.savefig(filename)
    plt.close()
    return filename


def plot_comparison_results(comparison_results: List[dict], results_dir: str = RESULTS_DIR):
    """
    Generates and saves comparison plots for all policy runs.
    """
    ensure_results_directory(results_dir)

    policy_names = [res["policy_name"] for res in comparison_results]

    # 1. Cold Starts per Policy
    cold_starts = [res["cold_starts"] for res in comparison_results]
    plt.figure(figsize=(10, 5))
    sns.barplot(x=policy_names, y=cold_starts, hue=policy_names, legend=False, palette="Reds_d")
    plt.ylabel("Cold Starts")
    plt.xlabel("Policy")
    plt.title("Policy Comparison – Cold Start Counts")
    plt.xticks(rotation=30)
    plt.tight_layout()
    plt.savefig(os.path.join(results_dir, "comparison_cold_starts.png"))
    plt.close()

    # 2. Warm vs Cold Starts
    warm_starts = [res["warm_starts"] for res in comparison_results]
    x = np.arange(len(policy_names))
    plt.figure(figsize=(10, 5))
    plt.bar(x, warm_starts, label="Warm", color='skyblue')
    plt.bar(x, cold_starts, bottom=warm_starts, label="Cold", color='lightgray')
    plt.xticks(x, policy_names, rotation=30)
    plt.ylabel("Number of Invocations")
    plt.title("Policy Comparison – Warm vs Cold Starts")
    plt.legend()
    plt.tight_layout()
    plt.savefig(os.path.join(results_dir, "comparison_warm_cold_ratio.png"))
    plt.close()

    # 3. Load balance across workers (lower is more even)
    load_spread = [float(np.std(list(res["requests_per_worker"].values()))) for res in comparison_results]
    plt.figure(figsize=(10, 5))
    sns.barplot(x=policy_names, y=load_spread, hue=policy_names, legend=False, palette="viridis")
    plt.ylabel("Std. Dev. of Invocations per Worker")
    plt.xlabel("Policy")
    plt.title("Policy Comparison – Load Spread")
    plt.xticks(rotation=30)
    plt.tight_layout()
    plt.savefig(os.path.join(results_dir, "comparison_load_spread.png"))
    plt.close()

    # 4. Peak memory on the busiest worker
    peak_memory = [max(res["peak_memory_per_worker"].values(), default=0.0) for res in comparison_results]
    plt.figure(figsize=(10, 5))
    sns.barplot(x=policy_names, y=peak_memory, hue=policy_names, legend=False, palette="Greens_d")
    plt.ylabel("Peak Memory on a Worker (MB)")
    plt.xlabel("Policy")
    plt.title("Policy Comparison – Peak Memory")
    plt.xticks(rotation=30)
    plt.tight_layout()
    plt.savefig(os.path.join(results_dir, "comparison_peak_memory.png"))
    plt.close()


class PDFReport(FPDF):
    def header(self):
        self.set_font("Helvetica", "B", 14)
        self.cell(0, 10, "Serverless Warm-Pool Simulation Report", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="C")
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")

    def section_title(self, title):
        self.set_font("Helvetica", "B", 12)
        self.cell(0, 10, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

    def add_image(self, img_path, w=180):
        if os.path.exists(img_path):
            self.image(img_path, w=w)
            self.ln(10)
        else:
            self.set_font("Helvetica", "I", 10)
            self.cell(0, 10, f"Image not found: {img_path}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.ln(5)


def generate_pdf_report_from_summary(results_dir: str = RESULTS_DIR) -> Optional[str]:
    """
    Generate a PDF report from the simulation summary and the comparison plots.
    """
    summary_path = os.path.join(results_dir, "simulation_summary.csv")
    if not os.path.exists(summary_path):
        logger.warning(f"'{summary_path}' not found. Skipping PDF report generation.")
        return None

    df = pd.read_csv(summary_path)

    pdf = PDFReport()
    pdf.add_page()

    pdf.section_title("Simulation Summary Table")
    pdf.set_font("Helvetica", "", 8)

    col_widths = [50, 25, 20, 20, 20, 25, 25]
    header = ["Policy", "Placement", "Window (s)", "Warm", "Cold", "Warm Hit (%)", "Peak Mem (MB)"]

    for i, col in enumerate(header):
        pdf.cell(col_widths[i], 8, col, border=1, align="C")
    pdf.ln()

    for _, row in df.iterrows():
        row_data = [
            str(row["Policy"])[:32],
            str(row["Placement"]),
            f'{row["Warm Window (s)"]:g}',
            str(row["Warm Starts"]),
            str(row["Cold Starts"]),
            f'{row["Warm Hit Rate (%)"]:.1f}',
            f'{row["Peak Memory (MB)"]:.1f}',
        ]
        for i, val in enumerate(row_data):
            pdf.cell(col_widths[i], 8, val, border=1, align="C")
        pdf.ln()

    pdf.add_page()
    pdf.section_title("Cold Starts Comparison")
    pdf.add_image(os.path.join(results_dir, "comparison_cold_starts.png"))

    pdf.section_title("Warm vs Cold Starts")
    pdf.add_image(os.path.join(results_dir, "comparison_warm_cold_ratio.png"))

    pdf.add_page()
    pdf.section_title("Load Spread Comparison")
    pdf.add_image(os.path.join(results_dir, "comparison_load_spread.png"))

    pdf.section_title("Peak Memory Comparison")
    pdf.add_image(os.path.join(results_dir, "comparison_peak_memory.png"))

    report_path = os.path.join(results_dir, "warm_pool_simulation_report.pdf")
    pdf.output(report_path)
    logger.info(f"PDF report saved to: {report_path}")
    return report_path
