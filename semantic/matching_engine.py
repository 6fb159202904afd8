"""
Matching Engine Module
Pairs design text nodes with rendered text nodes when the two trees share no identifiers.

Strategy, in descending confidence passes:
1. Exact or near-exact text content
2. Fuzzy text content (Levenshtein) helped by spatial proximity
3. Spatial proximity and semantic role alone (icon-only or empty nodes)

Within a pass the single best remaining pair is taken repeatedly. This greedy
highest-first selection is deterministic and cheap but not globally optimal;
a maximum-weight bipartite assignment would be the exact alternative.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .config import AuditConfig, DEFAULT_CONFIG
from .snapshots import TextNode

logger = logging.getLogger(__name__)

HEADING_KEYWORDS = ('title', 'heading', 'header')
BODY_KEYWORDS = ('body', 'text', 'description', 'paragraph')
ACTION_KEYWORDS = ('link', 'button', 'cta', 'item')

ROLE_KEYWORDS = {
    'heading': HEADING_KEYWORDS,
    'paragraph': BODY_KEYWORDS,
    'actionable': ACTION_KEYWORDS,
}

NEUTRAL_TYPE_SCORE = 0.5


@dataclass(frozen=True)
class Match:
    design: TextNode
    rendered: TextNode
    confidence: float


def normalize_for_matching(s: str) -> str:
    """Lowercase, unify smart quotes and dashes, drop punctuation, collapse whitespace."""
    if not s:
        return ''
    s = s.lower().strip()
    s = re.sub('[–—]', '-', s)
    s = re.sub('[“”‘’]', "'", s)
    s = re.sub(r'[^a-z0-9\s]', '', s)
    return re.sub(r'\s+', ' ', s).strip()


def levenshtein(s1: str, s2: str) -> int:
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        current = [i]
        for j, c2 in enumerate(s2, 1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


class MatchingEngine:
    def __init__(self, config: AuditConfig = DEFAULT_CONFIG):
        self.config = config

    def text_score(self, a: str, b: str) -> float:
        n1 = normalize_for_matching(a)
        n2 = normalize_for_matching(b)
        if not n1 or not n2:
            return 0.0
        if n1 == n2:
            return 1.0
        # Containment handles text blocks split differently on each side
        min_len = self.config.containment_min_length
        if len(n1) > min_len and len(n2) > min_len and (n1 in n2 or n2 in n1):
            return 0.85
        similarity = 1.0 - levenshtein(n1, n2) / max(len(n1), len(n2))
        return similarity if similarity > self.config.fuzzy_text_floor else 0.0

    def spatial_score(self, design: TextNode, rendered: TextNode) -> float:
        falloff = self.config.spatial_falloff_px
        distance = math.hypot(design.x - rendered.x, design.y - rendered.y)
        if falloff <= 0 or distance > falloff:
            return 0.0
        return max(0.0, 1.0 - distance / falloff)

    def type_score(self, design: TextNode, rendered: TextNode) -> float:
        keywords = ROLE_KEYWORDS.get(rendered.role)
        name = (design.name or '').lower()
        if keywords and any(k in name for k in keywords):
            return 1.0
        return NEUTRAL_TYPE_SCORE

    def score(self, design: TextNode, rendered: TextNode) -> float:
        cfg = self.config
        total_weight = cfg.match_text_weight + cfg.match_spatial_weight + cfg.match_type_weight
        return (self.text_score(design.text, rendered.text) * cfg.match_text_weight
                + self.spatial_score(design, rendered) * cfg.match_spatial_weight
                + self.type_score(design, rendered) * cfg.match_type_weight) / total_weight

    def match_text_nodes(self, design_nodes: Sequence[TextNode],
                         rendered_nodes: Sequence[TextNode]) -> List[Match]:
        """Return matches in the order they were found; each input node is used at most once."""
        pairs, _, _ = self.match_indices(design_nodes, rendered_nodes)
        return [Match(design_nodes[i], rendered_nodes[j], s) for i, j, s in pairs]

    def match_indices(self, design_nodes: Sequence[TextNode],
                      rendered_nodes: Sequence[TextNode]) -> Tuple[List[Tuple[int, int, float]], List[int], List[int]]:
        """Match by position in the input lists, also returning the unmatched positions on each side."""
        remaining_design = list(range(len(design_nodes)))
        remaining_rendered = list(range(len(rendered_nodes)))
        # Scores never change between passes, so compute the cross product once
        scores = {
            (i, j): self.score(design_nodes[i], rendered_nodes[j])
            for i in remaining_design for j in remaining_rendered
        }
        pairs = []
        for floor in self.config.match_floors:
            found = self._find_matches(scores, remaining_design, remaining_rendered, floor)
            logger.debug(f"Match pass at floor {floor}: {len(found)} pairs")
            pairs.extend(found)
        logger.info(f"Matched {len(pairs)} text nodes "
                    f"({len(remaining_design)} design-only, {len(remaining_rendered)} rendered-only)")
        return pairs, remaining_design, remaining_rendered

    def _find_matches(self, scores, design_pool: List[int], rendered_pool: List[int],
                      floor: float) -> List[Tuple[int, int, float]]:
        found = []
        while design_pool and rendered_pool:
            best = None
            best_score = -1.0
            for i in design_pool:
                for j in rendered_pool:
                    s = scores[(i, j)]
                    # strict > keeps the first pair in scan order on ties
                    if s >= floor and s > best_score:
                        best_score = s
                        best = (i, j)
            if best is None:
                break
            i, j = best
            found.append((i, j, best_score))
            design_pool.remove(i)
            rendered_pool.remove(j)
        return found
