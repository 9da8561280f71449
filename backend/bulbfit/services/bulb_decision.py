"""
Bulb technology classification and result decision.

Takes the bulb candidates for a fully specified selection and picks exactly
one presentation mode:

1. EMPTY                 - nothing fits this configuration
2. SINGLE                - one distinct part number, show it directly
3. BINARY_COLOR_CHOICE   - one H-family halogen + one D-family xenon part;
                           yellow light = halogen, white light = xenon
4. ESCALATE_SAME_FAMILY  - one technology, several equivalent parts
5. ESCALATE_AMBIGUOUS    - any other mix

Rules are evaluated in that order; the first match wins.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from bulbfit.data.bulb_links import resolve_bulb_url

logger = logging.getLogger(__name__)


class Technology(str, Enum):
    HALOGEN = "halogen"
    XENON = "xenon"


class DecisionMode(str, Enum):
    EMPTY = "empty"
    SINGLE = "single"
    BINARY_COLOR_CHOICE = "binary_color_choice"
    ESCALATE_SAME_FAMILY = "escalate_same_family"
    ESCALATE_AMBIGUOUS = "escalate_ambiguous"


ESCALATION_MODES = frozenset({DecisionMode.ESCALATE_SAME_FAMILY, DecisionMode.ESCALATE_AMBIGUOUS})


@dataclass(frozen=True)
class BulbCandidate:
    part_number: str
    technology: str | None = None


@dataclass
class TechnologyBuckets:
    halogen: list[str] = field(default_factory=list)
    xenon: list[str] = field(default_factory=list)

    @property
    def union(self) -> list[str]:
        """Distinct part numbers across both buckets, first-seen order."""
        return list(dict.fromkeys([*self.halogen, *self.xenon]))


@dataclass
class BulbChoice:
    part_number: str
    link_url: str | None = None

    @property
    def link_missing(self) -> bool:
        return self.link_url is None


@dataclass
class BulbDecision:
    mode: DecisionMode
    single: BulbChoice | None = None
    halogen: BulbChoice | None = None  # yellow light
    xenon: BulbChoice | None = None  # white light
    candidates: list[str] = field(default_factory=list)
    reason: str | None = None

    @property
    def needs_support(self) -> bool:
        return self.mode in ESCALATION_MODES


def is_h_family(part_number: str) -> bool:
    """H/HB connector family, including the numeric 9005/9006 codes."""
    pn = part_number.strip().upper()
    return pn.startswith("H") or pn.startswith("HB") or pn in ("9005", "9006")


def is_d_family(part_number: str) -> bool:
    """D-series (xenon discharge) connector family."""
    return part_number.strip().upper().startswith("D")


def classify_candidate(candidate: BulbCandidate) -> Technology:
    """
    Assign a candidate to exactly one technology bucket.

    An explicit catalog label wins. Unlabeled parts are inferred from the part
    number: D-prefixed parts are xenon, everything else falls back to halogen.
    """
    label = (candidate.technology or "").lower()
    if "halogen" in label:
        return Technology.HALOGEN
    if "xenon" in label:
        return Technology.XENON
    if is_d_family(candidate.part_number):
        return Technology.XENON
    return Technology.HALOGEN


def split_by_technology(candidates: Iterable[BulbCandidate]) -> TechnologyBuckets:
    """Classify candidates into deduplicated halogen/xenon buckets."""
    buckets = TechnologyBuckets()
    for candidate in candidates:
        part_number = (candidate.part_number or "").strip()
        if not part_number:
            continue
        target = buckets.halogen if classify_candidate(candidate) == Technology.HALOGEN else buckets.xenon
        if part_number not in target:
            target.append(part_number)
    return buckets


def decide(
    candidates: Iterable[BulbCandidate],
    resolve_link: Callable[[str], str | None] = resolve_bulb_url,
) -> BulbDecision:
    """Pick the presentation mode for a candidate set."""
    buckets = split_by_technology(candidates)
    hal, xen = buckets.halogen, buckets.xenon
    union = buckets.union

    if not union:
        return BulbDecision(mode=DecisionMode.EMPTY, reason="no_bulbs_for_configuration")

    if len(union) == 1:
        pn = union[0]
        return BulbDecision(
            mode=DecisionMode.SINGLE,
            single=BulbChoice(pn, resolve_link(pn)),
            candidates=union,
        )

    if len(hal) == 1 and len(xen) == 1 and is_h_family(hal[0]) and is_d_family(xen[0]):
        return BulbDecision(
            mode=DecisionMode.BINARY_COLOR_CHOICE,
            halogen=BulbChoice(hal[0], resolve_link(hal[0])),
            xenon=BulbChoice(xen[0], resolve_link(xen[0])),
            candidates=union,
        )

    only_halogen = bool(hal) and not xen
    only_xenon = bool(xen) and not hal
    if only_halogen and len(hal) >= 2 and all(is_h_family(pn) for pn in hal):
        return BulbDecision(mode=DecisionMode.ESCALATE_SAME_FAMILY, candidates=union, reason="multiple_halogen_options")
    if only_xenon and len(xen) >= 2 and all(is_d_family(pn) for pn in xen):
        return BulbDecision(mode=DecisionMode.ESCALATE_SAME_FAMILY, candidates=union, reason="multiple_xenon_options")

    logger.debug(f"Ambiguous bulb set: halogen={hal} xenon={xen}")
    return BulbDecision(mode=DecisionMode.ESCALATE_AMBIGUOUS, candidates=union, reason="mixed_bulb_options")
