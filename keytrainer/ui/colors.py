"""Theme colors and color utilities for the UI."""


class TrainerColors:
    """Dark palette of the trainer window."""

    BACKGROUND = "#191923"

    TITLE = "#64B4FF"
    GOLD = "#FFD700"
    TARGET = "#50DC78"
    INPUT_IDLE = "#969696"
    INPUT_OK = "#64FF64"
    INPUT_PERFECT = "#00FF00"
    INPUT_RETRY = "#FFC864"

    STATUS_ERROR = "#FF6464"
    STATUS_RETRY = "#FFB464"
    STATUS_STOPPED = "#C8C864"
    STATUS_MUTED = "#969696"

    PROGRESS = "#9696B4"
    HINT = "#505064"
    NO_RECORD = "#646464"

    BOX_UPCOMING = "#2A2A38"
    BOX_BORDER = "#3C3C50"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    try:
        a = a.strip()
        b = b.strip()
        if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
            return a
        t = max(0.0, min(1.0, float(t)))
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
