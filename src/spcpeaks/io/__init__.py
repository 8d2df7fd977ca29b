from .loader import (
    spectrum_from_frame,
    load_spectrum_csv,
    spectrum_to_frame,
    peaks_to_frame,
    matches_to_frame,
    fits_to_frame,
    save_frame_csv,
)

__all__ = [
    "spectrum_from_frame",
    "load_spectrum_csv",
    "spectrum_to_frame",
    "peaks_to_frame",
    "matches_to_frame",
    "fits_to_frame",
    "save_frame_csv",
]
