"""
Sample usage of the Image Compression library.

Demonstrates estimation, batch compression and downloads.
Replace file paths with your own images before running.
"""

import asyncio
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from imgsqueeze.archive import DirectorySaver
from imgsqueeze.backends import HttpBackend, LocalBackend
from imgsqueeze.estimator import estimate_size
from imgsqueeze.orchestrator import BatchOrchestrator
from imgsqueeze.session import CompressionSession
from imgsqueeze.utils import format_size


def example_estimates():
    """Size estimates for each preset."""
    print("\n" + "=" * 60)
    print("EXAMPLE 1: Size Estimates")
    print("=" * 60)

    original = 2_500_000
    print(f"\n{'Preset':<10} {'Estimate':<12}")
    print("-" * 25)
    for preset in ("high", "medium", "low"):
        print(f"{preset:<10} {format_size(estimate_size(original, preset)):<12}")
    for quality in (20, 55, 85):
        label = f"custom {quality}"
        print(f"{label:<10} {format_size(estimate_size(original, 'custom', quality)):<12}")


def example_batch():
    """Compress a few files in-process and save them one by one."""
    print("\n" + "=" * 60)
    print("EXAMPLE 2: Batch Compression")
    print("=" * 60)

    session = CompressionSession(preset="high", output_format="webp")
    session.add_paths(["sample_image.jpg", "sample_image.png"])

    orchestrator = BatchOrchestrator(session, LocalBackend(), DirectorySaver("output"))
    asyncio.run(orchestrator.start_batch())

    for record in session:
        if record.is_done:
            path = orchestrator.download_single(record)
            print(f"  {record.name} -> {path} (-{record.compression_ratio:.0f}%)")
        else:
            print(f"  {record.name}: {record.status.value} {record.error_message or ''}")

    totals = session.totals()
    print(f"Saved {round(totals.compression_percent)}% overall")


def example_server_archive():
    """Compress through a running server and bundle the results in a ZIP."""
    print("\n" + "=" * 60)
    print("EXAMPLE 3: Server + ZIP Archive")
    print("=" * 60)

    session = CompressionSession()
    session.set_quality(60)
    session.add_paths(Path("images").glob("*"))

    orchestrator = BatchOrchestrator(
        session,
        HttpBackend("http://127.0.0.1:5000"),
        DirectorySaver("output"),
    )
    asyncio.run(orchestrator.start_batch())
    archive = asyncio.run(orchestrator.download_archive())
    print(f"Archive: {archive}")


if __name__ == "__main__":
    example_estimates()
    example_batch()
    example_server_archive()
