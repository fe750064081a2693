from pathlib import Path

import matplotlib.pyplot as plt

from osmplot.config import config
from osmplot.utils import create_logger

logger = create_logger(
    name="PlotHighwayCycle",
    log_level=config.log_level,
    log_file=config.log_file,
)


def plot_highway_cycle(highways, result=None, output_dir=None,
                       title="Highway Cycle"):
    """
    Diagnostic plot of the highways handed to the cycle connection.

    Each highway gets its own colour and every segment endpoint is numbered
    with the segment index, so nested or stray highways that keep a cycle
    from closing are easy to spot.

    Args:
        highways: List of Highway objects (as extracted, or after a run)
        result: Optional HighwayCycleResult; its bridges, stitches and
            boundary path are drawn on top
        output_dir: Directory to save the output plot, defaults to the
            configured output directory
        title: Title for the plot

    Returns:
        str: Path to the saved plot file
    """
    if output_dir is None:
        output_dir = config.get_output_path("plots")
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if not highways:
        logger.error("No highways to visualize")
        return None

    _, ax = plt.subplots(figsize=(12, 12))
    colours = plt.get_cmap('tab10')

    for h, highway in enumerate(highways):
        colour = colours(h % 10)
        for s, segment in enumerate(highway.segments):
            if segment.synthetic:
                continue
            xs, ys = zip(*segment.coords)
            ax.plot(xs, ys, color=colour, linewidth=2.0,
                    label=highway.name if s == 0 else None)
            for node in segment.endpoints:
                ax.annotate(str(s), (node.lon, node.lat), color=colour,
                            fontsize=9, xytext=(3, 3), textcoords='offset points')
            ax.scatter([p.lon for p in segment.endpoints],
                       [p.lat for p in segment.endpoints], color=colour, s=12)

    if result is not None:
        for bridge in result.bridges:
            ax.plot([bridge.start.lon, bridge.end.lon], [bridge.start.lat, bridge.end.lat],
                    color='red', linestyle='--', linewidth=1.5)
        for stitch in result.stitches:
            ax.plot([stitch.start.lon, stitch.end.lon], [stitch.start.lat, stitch.end.lat],
                    color='orange', linestyle='--', linewidth=1.5)
        if len(result.path) > 1:
            xs, ys = zip(*result.coords)
            ax.plot(xs, ys, color='black', linewidth=0.8, alpha=0.6,
                    label='boundary' if result.complete else 'boundary (incomplete)')

    ax.set_aspect('equal', adjustable='datalim')
    ax.legend(loc='best', fontsize=9)
    plt.title(title, fontsize=16)

    output_file = output_dir / "highway_cycle.png"
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close()

    logger.info(f"Highway cycle visualization saved to: {output_file}")
    return str(output_file)
