"""
Attribute-selection statistics for gain-ratio tree induction.

Entropy of a class distribution (in bits):
    H(D) = - sum_k p_k log2 p_k,   with 0 log 0 = 0

Conditional entropy of the target given feature A with values a_1..a_v:
    H(D | A) = sum_i |D_i| / |D| * H(D_i)

Split information (entropy of the feature's own marginal):
    SI(A) = - sum_i |D_i| / |D| log2(|D_i| / |D|)

Gain ratio (Quinlan, C4.5):
    GR(A) = (H(D) - H(D | A)) / SI(A)

A feature whose split information is zero has a single observed value in the
partition; splitting on it cannot separate anything, so it is treated as
ineligible (ratio ``-inf``) instead of dividing by zero.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Optional
import math
import numpy as np

from .records import BRACKETS, FEATURES, CategoricalRecord, Feature, PriceBracket, ordinal

INELIGIBLE = -math.inf


@dataclass
class Tabulation:
    """
    Target marginal and per-feature contingency tables of one partition.

    Attributes:
        target: Counts per price bracket, shape ``(6,)``
        tables: Feature -> counts of shape ``(|feature domain|, 6)``; row i is
                the bracket distribution of records holding the i-th value
        n_records: Size of the partition
    """
    target: np.ndarray
    tables: dict[Feature, np.ndarray]
    n_records: int = 0


@dataclass
class Selection:
    """
    Outcome of the attribute-selection rule on one partition.

    Attributes:
        feature: Chosen splitting feature, ``None`` when no split applies
        parent_entropy: Target entropy of the partition
        pure_bracket: The only bracket present when the partition is pure
        ratios: Gain ratio per feature (empty when selection short-circuited)
    """
    feature: Optional[Feature]
    parent_entropy: float
    pure_bracket: Optional[PriceBracket] = None
    ratios: dict[Feature, float] = field(default_factory=dict)


def tabulate(records: Iterable[CategoricalRecord]) -> Tabulation:
    """
    Count bracket occurrences overall and per value of every candidate feature.

    Args:
        records: Partition to scan

    Returns:
        Tabulation whose tables each sum to the number of records
    """
    records = list(records)
    n_brackets = len(BRACKETS)
    target = np.zeros(n_brackets, dtype=float)
    tables = {f: np.zeros((len(f.domain), n_brackets), dtype=float) for f in FEATURES}
    if not records:
        return Tabulation(target=target, tables=tables, n_records=0)

    y_idx = np.fromiter((ordinal(r.price_bracket) for r in records),
                        count=len(records), dtype=int)
    np.add.at(target, y_idx, 1.0)
    for f in FEATURES:
        x_idx = np.fromiter((ordinal(r.value_of(f)) for r in records),
                            count=len(records), dtype=int)
        np.add.at(tables[f], (x_idx, y_idx), 1.0)
    return Tabulation(target=target, tables=tables, n_records=len(records))


def entropy(distribution) -> float:
    """Shannon entropy in bits of raw (non-normalized) counts."""
    dist = np.asarray(distribution, dtype=float)
    tot = dist.sum()
    if tot <= 0:
        return 0.0
    p = dist / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def conditional_entropy_and_split_info(contingency_table) -> tuple[float, float]:
    """
    Weighted row entropy and split information of a contingency table.

    Args:
        contingency_table: v x k counts, one row per feature value

    Returns:
        Tuple of (conditional entropy of the target, entropy of the row sums)
    """
    table = np.asarray(contingency_table, dtype=float)
    row_sums = table.sum(axis=1)
    total = row_sums.sum()
    if total <= 0:
        return 0.0, 0.0
    weights = row_sums / total
    conditional = sum(w * entropy(row) for w, row in zip(weights, table) if w > 0)
    return float(conditional), entropy(row_sums)


def gain_ratio(parent_entropy: float, conditional_entropy: float, split_info: float) -> float:
    """Information gain normalized by split information; ``-inf`` if ``split_info`` is 0."""
    if split_info <= 0:
        return INELIGIBLE
    return float((parent_entropy - conditional_entropy) / split_info)


def select_feature(tabulation: Tabulation) -> Selection:
    """
    Apply the gain-ratio attribute-selection rule to a tabulated partition.

    A pure (or empty) partition short-circuits without computing any ratio.
    Otherwise the feature with the strictly greatest gain ratio is chosen;
    on an exact tie the earlier feature in :data:`~pricetree.records.FEATURES`
    order is kept.  ``feature`` is ``None`` when every feature is ineligible.
    """
    parent = entropy(tabulation.target)
    if parent == 0.0:
        present = np.flatnonzero(tabulation.target)
        pure = BRACKETS[int(present[0])] if present.size else None
        return Selection(feature=None, parent_entropy=parent, pure_bracket=pure)

    ratios: dict[Feature, float] = {}
    best_feat, best_ratio = None, INELIGIBLE
    for f in FEATURES:
        cond, split = conditional_entropy_and_split_info(tabulation.tables[f])
        gr = gain_ratio(parent, cond, split)
        ratios[f] = gr
        if gr > best_ratio:
            best_feat, best_ratio = f, gr
    return Selection(feature=best_feat, parent_entropy=parent, ratios=ratios)
