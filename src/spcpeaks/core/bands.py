"""
Target absorption bands for graphene oxide (GO) / graphene FTIR spectra, band
matching and the presence verdict.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from spcpeaks.core.spectrum import Peak

GO_MIN_PROMINENCE: float = 0.03
SP2_MIN_PROMINENCE: float = 0.02
DEFAULT_TOP_PEAKS: int = 10


class BandClass(str, Enum):
    GO = "GO"
    SP2 = "sp2"


@dataclass(frozen=True)
class Band:
    name: str
    low: float
    high: float
    band_class: BandClass

    @property
    def range(self) -> Tuple[float, float]:
        return (self.low, self.high)

    def contains(self, x: float) -> bool:
        return self.low <= x <= self.high


DEFAULT_BANDS: Tuple[Band, ...] = (
    Band("O–H (ancho)", 3200.0, 3550.0, BandClass.GO),
    Band("O–H ácido", 2500.0, 3300.0, BandClass.GO),
    Band("C=O (carbonilo)", 1700.0, 1750.0, BandClass.GO),
    Band("Aromático C=C", 1580.0, 1620.0, BandClass.SP2),
    Band("C–O (fenólico)", 1220.0, 1260.0, BandClass.GO),
    Band("Epoxi C–O–C", 1050.0, 1150.0, BandClass.GO),
    Band("C–H aromático", 3050.0, 3100.0, BandClass.SP2),
)


@dataclass(frozen=True)
class BandMatch:
    band: Band
    hit: Optional[Peak] = None


class Verdict(str, Enum):
    GO_AND_SP2 = (
        "GO (oxygenated) present; evaluate rGO if C=O/C–O/epoxy decrease after reduction"
    )
    GO_ONLY = "GO (oxygenated) with detectable O–H/C=O/C–O/epoxy"
    SP2_ONLY = (
        "Graphene/graphite with little functionalization "
        "(oxygenated bands absent or weak in FTIR)"
    )
    INDETERMINATE = "Indeterminate by FTIR; confirm with Raman/XPS"


def match_bands(peaks: Sequence[Peak], bands: Sequence[Band] = DEFAULT_BANDS) -> List[BandMatch]:
    """Pick, for each band, the most prominent peak inside its range."""
    matches = []
    for band in bands:
        best = None
        for peak in peaks:
            if band.contains(peak.x) and (best is None or peak.prominence > best.prominence):
                best = peak
        matches.append(BandMatch(band=band, hit=best))
    return matches


def _has_class(matches: Sequence[BandMatch], band_class: BandClass, threshold: float) -> bool:
    return any(
        m.band.band_class == band_class and m.hit is not None and m.hit.prominence >= threshold
        for m in matches
    )


def decide_presence(matches: Sequence[BandMatch]) -> Verdict:
    has_go = _has_class(matches, BandClass.GO, GO_MIN_PROMINENCE)
    has_sp2 = _has_class(matches, BandClass.SP2, SP2_MIN_PROMINENCE)

    if has_go and has_sp2:
        return Verdict.GO_AND_SP2
    if has_go:
        return Verdict.GO_ONLY
    if has_sp2:
        return Verdict.SP2_ONLY
    return Verdict.INDETERMINATE


def top_peaks(
    peaks: Sequence[Peak],
    bands: Sequence[Band] = DEFAULT_BANDS,
    prefer_in_band: bool = False,
    limit: int = DEFAULT_TOP_PEAKS,
) -> List[Peak]:
    """
    Short list of peaks for display, in x order.

    With ``prefer_in_band`` the list is restricted to peaks inside some band,
    unless none of them is.
    """
    pool = list(peaks)
    if prefer_in_band:
        in_band = [p for p in pool if any(b.contains(p.x) for b in bands)]
        if in_band:
            pool = in_band
    return pool[:limit]
