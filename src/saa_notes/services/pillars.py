"""
Well-Architected Pillars

Canonical slugs for the six Well-Architected Framework pillars and the
normalizer that maps free-form category labels onto them.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum
from types import MappingProxyType
from typing import Final

logger = logging.getLogger(__name__)


class Pillar(StrEnum):
    """The six Well-Architected Framework pillars, as stored tag values."""

    COST_OPTIMIZATION = "cost-optimization"
    PERFORMANCE_EFFICIENCY = "performance-efficiency"
    RELIABILITY = "reliability"
    SECURITY = "security"
    OPERATIONAL_EXCELLENCE = "operational-excellence"
    SUSTAINABILITY = "sustainability"


PILLAR_NAMES_JA: Final = MappingProxyType(
    {
        Pillar.COST_OPTIMIZATION: "コスト最適化",
        Pillar.PERFORMANCE_EFFICIENCY: "パフォーマンス効率",
        Pillar.RELIABILITY: "信頼性",
        Pillar.SECURITY: "セキュリティ",
        Pillar.OPERATIONAL_EXCELLENCE: "運用の優秀性",
        Pillar.SUSTAINABILITY: "持続可能性",
    }
)

PILLAR_DESCRIPTIONS_JA: Final = MappingProxyType(
    {
        Pillar.COST_OPTIMIZATION: "システムを実行するコストを削減し、ビジネス価値を最大化する",
        Pillar.PERFORMANCE_EFFICIENCY: "コンピューティングリソースを効率的に使用して要件を満たす",
        Pillar.RELIABILITY: "システムが期待通りに動作し、障害から回復する能力",
        Pillar.SECURITY: "情報、システム、資産を保護し、ビジネス価値をリスクから守る",
        Pillar.OPERATIONAL_EXCELLENCE: "運用プロセスと手順を実行・改善する能力",
        Pillar.SUSTAINABILITY: "環境への影響を最小限に抑えながら、長期的なビジネス価値を実現する",
    }
)

PILLAR_SLUGS: Final = frozenset(pillar.value for pillar in Pillar)

_SEPARATORS = re.compile(r"[\s_\-]+")
_WHITESPACE = re.compile(r"\s+")


def _compact(key: str) -> str:
    return _SEPARATORS.sub("", key)


def _build_aliases() -> dict[str, Pillar]:
    aliases: dict[str, Pillar] = {}
    for pillar in Pillar:
        spaced = pillar.value.replace("-", " ")  # "cost optimization"
        aliases[pillar.value] = pillar
        aliases[spaced] = pillar
        aliases[spaced.title()] = pillar  # "Cost Optimization"
        aliases[_compact(spaced)] = pillar  # "costoptimization"
        aliases[PILLAR_NAMES_JA[pillar]] = pillar
    return aliases


PILLAR_ALIASES: Final = MappingProxyType(_build_aliases())


def normalize_pillar(label: str) -> str:
    """
    Canonicalize a category label to its pillar slug.

    Known labels ("Cost Optimization", "cost optimization", "costoptimization",
    "コスト最適化", "cost-optimization") map to the Pillar value. Anything else
    falls back to lower-case with whitespace runs replaced by a hyphen; that
    result is best-effort and may not be a Pillar.

    Idempotent: normalize_pillar(normalize_pillar(x)) == normalize_pillar(x).
    """
    stripped = label.strip()
    key = stripped.lower()
    # Exact alias first (title case, Japanese), then case and separator folds
    pillar = (
        PILLAR_ALIASES.get(stripped)
        or PILLAR_ALIASES.get(key)
        or PILLAR_ALIASES.get(_compact(key))
    )
    if pillar is not None:
        return pillar.value

    slug = _WHITESPACE.sub("-", key)
    logger.debug("Unknown Well-Architected category %r kept as %r", label, slug)
    return slug


def is_known_pillar(slug: str) -> bool:
    """True if ``slug`` is one of the six canonical pillar values."""
    return slug in PILLAR_SLUGS


def describe_pillars() -> list[str]:
    """One ``slug  名前: 説明`` line per pillar, in declaration order."""
    width = max(len(pillar.value) for pillar in Pillar)
    return [
        f"{pillar.value:<{width}}  {PILLAR_NAMES_JA[pillar]}: {PILLAR_DESCRIPTIONS_JA[pillar]}"
        for pillar in Pillar
    ]
