from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from spcpeaks.core.bands import BandMatch
from spcpeaks.core.fitting import FitResult
from spcpeaks.core.spectrum import Peak, Spectrum

DATA_DIR = Path(__file__).resolve().parent.parent.parent.parent / "data"

PathLike = Union[str, Path]

X_COLUMN = "Wavenumber"
Y_COLUMN = "absorbance"


def _ensure_wavenumber(df: pd.DataFrame, source=None) -> pd.DataFrame:
    if X_COLUMN not in df.columns:
        src = f" ({source})" if source else ""
        raise ValueError(f"DataFrame{src} must contain a '{X_COLUMN}' column.")
    return df


def _resolve_path(path: PathLike, use_data_dir: bool) -> Path:
    return DATA_DIR / path if use_data_dir else Path(path)


def spectrum_from_frame(df: pd.DataFrame, y_col: Optional[str] = None, source=None) -> Spectrum:
    """
    Build a Spectrum from a 'Wavenumber' column and one intensity column.
    Without ``y_col`` the frame must hold exactly one other column.
    Rows with non-numeric or non-finite values are dropped.
    """
    df = _ensure_wavenumber(df, source)
    src = f" ({source})" if source else ""

    if y_col is None:
        other_cols = [c for c in df.columns if c != X_COLUMN]
        if len(other_cols) != 1:
            raise ValueError(
                f"DataFrame{src} must contain exactly one non-'{X_COLUMN}' column, "
                f"or the intensity column must be named explicitly (got {other_cols})."
            )
        y_col = other_cols[0]
    elif y_col not in df.columns:
        raise ValueError(f"DataFrame{src} has no column '{y_col}'.")

    x = pd.to_numeric(df[X_COLUMN], errors="coerce").to_numpy(dtype=float)
    y = pd.to_numeric(df[y_col], errors="coerce").to_numpy(dtype=float)
    finite = np.isfinite(x) & np.isfinite(y)
    return Spectrum(x[finite], y[finite])


def load_spectrum_csv(
    path: PathLike,
    use_data_dir: bool = False,
    y_col: Optional[str] = None,
) -> Spectrum:
    """Load a two-column spectrum CSV."""
    fpath = _resolve_path(path, use_data_dir)
    return spectrum_from_frame(pd.read_csv(fpath), y_col=y_col, source=fpath)


def spectrum_to_frame(spectrum: Spectrum, y_col: str = Y_COLUMN) -> pd.DataFrame:
    return pd.DataFrame({X_COLUMN: spectrum.x, y_col: spectrum.y})


def peaks_to_frame(peaks: Sequence[Peak]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                X_COLUMN: p.x,
                "intensity": p.y,
                "prominence": p.prominence,
                "width": p.width,
                "index": p.index,
                "mf_response": p.mf_response,
            }
            for p in peaks
        ],
        columns=[X_COLUMN, "intensity", "prominence", "width", "index", "mf_response"],
    )


def matches_to_frame(matches: Sequence[BandMatch]) -> pd.DataFrame:
    rows = []
    for m in matches:
        rows.append({
            "band": m.band.name,
            "class": m.band.band_class.value,
            "low": m.band.low,
            "high": m.band.high,
            "detected": m.hit is not None,
            "peak_x": m.hit.x if m.hit else np.nan,
            "prominence": m.hit.prominence if m.hit else np.nan,
        })
    return pd.DataFrame(
        rows, columns=["band", "class", "low", "high", "detected", "peak_x", "prominence"]
    )


def fits_to_frame(fits: Sequence[Optional[FitResult]]) -> pd.DataFrame:
    """One row per successful fit; missing fits are skipped."""
    return pd.DataFrame(
        [
            {
                "peak_x": f.peak_x,
                "kind": f.kind.value,
                "pos": f.pos,
                "height": f.height,
                "fwhm": f.fwhm,
                "area": f.area,
                "sse": f.sse,
            }
            for f in fits
            if f is not None
        ],
        columns=["peak_x", "kind", "pos", "height", "fwhm", "area", "sse"],
    )


def save_frame_csv(df: pd.DataFrame, filename: PathLike, use_data_dir: bool = False) -> Path:
    path = _resolve_path(filename, use_data_dir)
    df.to_csv(path, index=False)
    return path
