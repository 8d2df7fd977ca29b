"""
Minimal working example for spcpeaks.

This script demonstrates the user-facing workflow:
1) Load a two-column spectrum CSV ('Wavenumber' + one intensity column)
2) Run the FTIR pipeline (baseline correction + derivative peak detection)
3) Print the verdict and save peaks, band matches and shape fits as CSV

Intended audience:
- Users with limited programming experience
- Quick sanity check after installation

Usage:
    python scripts/run_examples.py [path/to/spectrum.csv]
"""

import sys
from pathlib import Path

from spcpeaks import FTIRPipeline, PeakConfig
from spcpeaks.io import (
    fits_to_frame,
    load_spectrum_csv,
    matches_to_frame,
    peaks_to_frame,
    save_frame_csv,
)


def main():
    # Paths
    project_root = Path(__file__).resolve().parent.parent
    data_dir = project_root / "data" / "examples"
    sample_path = Path(sys.argv[1]) if len(sys.argv) > 1 else data_dir / "sample.csv"
    out_dir = sample_path.parent / "output"
    out_dir.mkdir(parents=True, exist_ok=True)

    # Load example data
    spectrum = load_spectrum_csv(sample_path)

    # Run pipeline
    pipeline = FTIRPipeline(detection=PeakConfig(mode="deriv"))
    result = pipeline.run(spectrum, correct_baseline=True)

    # Save results
    stem = sample_path.stem
    save_frame_csv(peaks_to_frame(result.peaks), out_dir / f"{stem}_peaks.csv")
    save_frame_csv(matches_to_frame(result.matches), out_dir / f"{stem}_bands.csv")
    save_frame_csv(fits_to_frame(result.fits), out_dir / f"{stem}_fits.csv")

    print(f"Detected {len(result.peaks)} peaks.")
    for peak in result.top_peaks:
        print(f"  {peak.x:8.1f} cm-1  prominence={peak.prominence:.3f}")
    print(f"Verdict: {result.verdict.value}")
    print(f"Output written to: {out_dir}")


if __name__ == "__main__":
    main()
