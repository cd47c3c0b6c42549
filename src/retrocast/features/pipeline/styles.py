"""Static ffmpeg filter tables for the built-in style profiles.

Each style maps to a fixed, ordered sequence of video filters. The audio
chain is shared by every style.
"""

from enum import Enum
from types import MappingProxyType


class StyleProfile(str, Enum):
    """Built-in visual styles."""

    CRT = "CRT"
    VHS = "VHS"
    ARCADE = "ARCADE"


STYLE_FILTERS = MappingProxyType({
    # Scanlines, vignette, warm tint, CRT softness
    StyleProfile.CRT: (
        "geq=lum='lum(X,Y)':cb='if(mod(Y,2),cb(X,Y)*0.7,cb(X,Y))':cr='if(mod(Y,2),cr(X,Y)*0.7,cr(X,Y))'",
        "vignette=PI/4",
        "colorbalance=rs=0.1:gs=-0.05:bs=-0.1",
        "gblur=sigma=0.5",
        "eq=saturation=0.85",
    ),
    # Tape grain, thick scanlines, aged colour, tape blur
    StyleProfile.VHS: (
        "noise=c0s=15:c0f=t",
        "eq=saturation=0.75",
        "geq=lum='lum(X,Y)*if(mod(Y,4)<2,0.85,1.0)'",
        "colorbalance=rs=0.15:gs=0.05:bs=-0.1",
        "gblur=sigma=0.8",
    ),
    # High contrast, vivid colour, phosphor rows, glow
    StyleProfile.ARCADE: (
        "eq=contrast=1.2:brightness=0.05:saturation=1.2",
        "colorbalance=rs=0.1:gs=0.1:bs=0.05",
        "geq=lum='lum(X,Y)*if(mod(Y,3),0.9,1.0)'",
        "gblur=sigma=1.5",
    ),
})

# Static, old TV speaker band limit, light compression
AUDIO_FILTERS = (
    "aeval='val(0)+random(0)*0.015':c=same",
    "lowpass=f=8000",
    "acompressor=threshold=0.5:ratio=3:attack=10:release=100",
)


def video_filter_chain(style: StyleProfile) -> str:
    """Return the comma-joined ``-vf`` argument for a style."""
    return ",".join(STYLE_FILTERS[StyleProfile(style)])


def audio_filter_chain() -> str:
    """Return the comma-joined ``-af`` argument."""
    return ",".join(AUDIO_FILTERS)
