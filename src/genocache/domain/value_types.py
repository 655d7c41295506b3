from __future__ import annotations
from typing import NewType, Literal

Contig = NewType("Contig", str)           # reference name, e.g. "chrM" or "17"
Resolution = Literal[1, 10, 100, 1000]    # base pairs aggregated per cached unit
NotificationKind = Literal["newdata", "networkprogress", "networkdone", "networkfailure"]
SourceKind = Literal["features", "variants", "genotypes", "coverage", "alignments", "karyogram"]
Strand = Literal["+", "-", "."]

RESOLUTIONS: tuple[int, ...] = (1, 10, 100, 1000)
NOTIFICATION_KINDS: tuple[str, ...] = ("newdata", "networkprogress", "networkdone", "networkfailure")
