# -*- coding: utf-8 -*-
"""
pricetree.tree
==============

This module implements gain-ratio decision tree induction over categorical
listing records.  Each internal node splits a partition on one candidate
feature into one branch per value of that feature (in declaration order);
empty branches are kept and become "no data" leaves.  Features are not
consumed by a split, but a feature with a single observed value in a
partition is never eligible, so every root-to-leaf path uses each feature at
most once.

Construction is pure: :func:`build` returns an owned subtree and
:func:`flatten` lays it out as an append-only arena (:class:`DecisionTree`)
that :func:`classify` walks.  :class:`PriceBracketClassifier` wraps the
procedure behind a scikit-learn-like API together with the rule tracing,
rule export, pretty printing and Graphviz export utilities.
"""

# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from .records import BRACKETS, CategoricalRecord, Feature, PriceBracket, ordinal
from .statistics import select_feature, tabulate

logger = logging.getLogger(__name__)

NO_DATA_LABEL = "NoData"


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LeafNode:
    """Terminal node predicting ``bracket``."""
    bracket: PriceBracket

    def __str__(self) -> str:
        return self.bracket.value


@dataclass(frozen=True)
class EmptyLeafNode:
    """Terminal node of a partition that received no training records."""

    def __str__(self) -> str:
        return NO_DATA_LABEL


@dataclass(frozen=True)
class SplitNode:
    """Internal node of an owned subtree; ``children`` follow ``feature.values`` order."""
    feature: Feature
    children: tuple

    def __str__(self) -> str:
        return f"{self.feature.label} -> {len(self.children)} branches"


@dataclass(frozen=True)
class ArenaSplit:
    """Internal node stored in an arena; ``children`` are arena indices."""
    feature: Feature
    children: tuple[int, ...]

    def __str__(self) -> str:
        return f"{self.feature.label} -> {list(self.children)}"


Node = Union[LeafNode, EmptyLeafNode, SplitNode]
ArenaNode = Union[LeafNode, EmptyLeafNode, ArenaSplit]


@dataclass(frozen=True)
class DecisionTree:
    """
    Append-only arena of nodes with a designated root.

    Children are always stored before their parent, so the root is the last
    node and every edge points to a strictly smaller index.
    """
    nodes: tuple
    root: int

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> ArenaNode:
        return self.nodes[index]


# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------
def _partition(records: list[CategoricalRecord], feature: Feature) -> list[list[CategoricalRecord]]:
    buckets: list[list[CategoricalRecord]] = [[] for _ in feature.values]
    for r in records:
        buckets[ordinal(r.value_of(feature))].append(r)
    return buckets


def build(records: Iterable[CategoricalRecord]) -> Node:
    """
    Recursively induce a subtree from ``records``.

    A pure partition becomes a leaf of its only bracket and an empty one a
    :class:`EmptyLeafNode`.  Otherwise the partition is split on the feature
    chosen by :func:`~pricetree.statistics.select_feature` and every bucket,
    empty or not, is built in turn.  When no feature is eligible (all records
    agree on every feature but not on the bracket) the majority bracket is
    returned as a leaf, the earliest bracket winning a tie.

    Parameters
    ----------
    records : iterable of CategoricalRecord
        Training partition.

    Returns
    -------
    LeafNode, EmptyLeafNode or SplitNode
        Root of the induced subtree.
    """
    records = list(records)
    tab = tabulate(records)
    sel = select_feature(tab)
    if sel.feature is None:
        if not records:
            return EmptyLeafNode()
        if sel.pure_bracket is not None:
            return LeafNode(sel.pure_bracket)
        majority = BRACKETS[int(np.argmax(tab.target))]
        logger.debug("no eligible feature for %d records; majority leaf %s",
                     len(records), majority.value)
        return LeafNode(majority)

    logger.debug("split %d records on %s (gain ratio %.4f)",
                 len(records), sel.feature.label, sel.ratios[sel.feature])
    buckets = _partition(records, sel.feature)
    return SplitNode(sel.feature, tuple(build(b) for b in buckets))


def flatten(node: Node) -> DecisionTree:
    """Lay out an owned subtree as an arena, children before their parent."""
    nodes: list[ArenaNode] = []

    def _append(n: Node) -> int:
        if isinstance(n, SplitNode):
            n = ArenaSplit(n.feature, tuple(_append(ch) for ch in n.children))
        nodes.append(n)
        return len(nodes) - 1

    root = _append(node)
    return DecisionTree(nodes=tuple(nodes), root=root)


def build_tree(records: Iterable[CategoricalRecord]) -> DecisionTree:
    return flatten(build(records))


# -----------------------------------------------------------------------------
# Prediction
# -----------------------------------------------------------------------------
def classify(tree: DecisionTree, record: CategoricalRecord) -> Optional[PriceBracket]:
    """
    Walk ``tree`` from its root following ``record``'s feature values.

    Returns the predicted bracket, or ``None`` when the record lands on a
    leaf that received no training data.
    """
    node = tree.nodes[tree.root]
    while isinstance(node, ArenaSplit):
        node = tree.nodes[node.children[ordinal(record.value_of(node.feature))]]
    if isinstance(node, LeafNode):
        return node.bracket
    return None


def matches(tree: DecisionTree, record: CategoricalRecord) -> bool:
    """True if the prediction for ``record`` equals its own ``price_bracket``."""
    return classify(tree, record) == record.price_bracket


def accuracy(tree: DecisionTree, records: Iterable[CategoricalRecord]) -> float:
    hits = [matches(tree, r) for r in records]
    if not hits:
        return 0.0
    return float(np.mean(hits))


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class PriceBracketClassifier(ClassifierMixin, BaseEstimator):
    """
    Gain-ratio decision tree classifier for discretized listing records.

    The tree is grown until every partition is pure, empty or cannot be
    split any further; there is no pruning.  Records carry their own target
    (``price_bracket``), so :meth:`fit` takes the training records only.

    Parameters
    ----------
    verbose : int, default=0
        When positive, a summary of each fit is logged at INFO level on the
        ``pricetree.tree`` logger.  Per-split details are always emitted at
        DEBUG level.

    Attributes
    ----------
    tree_ : DecisionTree
        Arena of the fitted tree.
    classes_ : ndarray of PriceBracket
        The six price brackets in declaration order.
    n_records_ : int
        Number of training records seen by :meth:`fit`.

    Notes
    -----
    Rule tracing and export utilities (`predict_rule`, `export_rules`,
    `export_graphviz`, `print_tree`, `format_arena`) raise ``ValueError``
    when called before :meth:`fit`.
    """

    def __init__(self, *, verbose: int = 0):
        self.verbose = verbose

    def fit(self, records):
        records = list(records)
        self.classes_ = np.array(BRACKETS, dtype=object)
        self.tree_ = build_tree(records)
        self.n_records_ = len(records)
        if self.verbose:
            n_leaves = sum(not isinstance(n, ArenaSplit) for n in self.tree_.nodes)
            logger.info("fitted tree on %d records: %d nodes, %d leaves",
                        self.n_records_, len(self.tree_), n_leaves)
        return self

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def predict(self, records):
        """
        Predict the price bracket of each record.

        Parameters
        ----------
        records : iterable of CategoricalRecord
            Records to classify; their ``price_bracket`` is ignored.

        Returns
        -------
        ndarray of shape (n_records,), dtype=object
            Predicted :class:`PriceBracket` values, ``None`` where the record
            reached a leaf without training data.

        Raises
        ------
        ValueError
            If the estimator has not been fitted.
        """
        self._check_fitted()
        return np.array([classify(self.tree_, r) for r in records], dtype=object)

    def score(self, records, y=None, sample_weight=None):
        """
        Share of ``records`` whose predicted bracket is correct.

        Parameters
        ----------
        records : iterable of CategoricalRecord
            Evaluation records.
        y : sequence of PriceBracket, optional
            True brackets; defaults to each record's own ``price_bracket``.
        sample_weight : array-like, optional
            Per-record weights of the accuracy.

        Returns
        -------
        float
            Accuracy in [0, 1]; ``0.0`` for an empty evaluation set.
        """
        self._check_fitted()
        records = list(records)
        if y is None and sample_weight is None:
            return accuracy(self.tree_, records)
        if y is None:
            y = [r.price_bracket for r in records]
        if len(y) != len(records):
            raise ValueError("y must have the same length as records")
        if not records:
            return 0.0
        hits = [classify(self.tree_, r) == t for r, t in zip(records, y)]
        return float(np.average(hits, weights=sample_weight))

    def predict_rule(self, records):
        """
        Return the decision rule (antecedent) followed by each record.

        Each string is the conjunction of ``Feature = Value`` conditions from
        the root to the leaf used for the prediction, ``<root>`` when the
        tree is a single leaf.
        """
        self._check_fitted()
        return [self._trace_rule(r) for r in records]

    def export_rules(self):
        """
        Export every root-to-leaf path as ``"cond AND cond => BRACKET"``.

        Returns
        -------
        list[str]
            One rule per leaf, in branch order.
        """
        self._check_fitted()
        rules: list[str] = []
        self._collect_rules(self.tree_.root, [], rules)
        return rules

    def format_arena(self):
        """Return one ``"index - node"`` line per arena node, in storage order."""
        self._check_fitted()
        return [f"{i} - {node}" for i, node in enumerate(self.tree_.nodes)]

    def print_tree(self):
        """Pretty-print the decision tree to ``stdout``."""
        self._check_fitted()
        self._print_node(self.tree_.root, "")

    def export_graphviz(self, filename=None, format="dot"):
        """
        Export the fitted tree using Graphviz.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file (the extension is determined by
            ``format``).  If None, the DOT source is returned and no file is
            written.
        format : str, default="dot"
            ``'dot'`` writes the DOT source directly without calling the
            external ``dot`` command; other formats (``'png'``, ``'svg'``,
            ...) are rendered with it, falling back to a ``.dot`` file when the
            executable is unavailable.

        Returns
        -------
        str
            Path to the written file, or the DOT source if filename is None.

        Raises
        ------
        ValueError
            If the estimator is not fitted.
        RuntimeError
            If the ``graphviz`` package is not installed.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, self.tree_.root)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("dot executable not found; writing %s.dot instead", filename)
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    # ------------------------------------------------------------------
    # Rule tracing / Graphviz / printing helpers
    # ------------------------------------------------------------------
    def _trace_rule(self, record: CategoricalRecord) -> str:
        parts = []
        node = self.tree_.nodes[self.tree_.root]
        while isinstance(node, ArenaSplit):
            value = record.value_of(node.feature)
            parts.append(f"{node.feature.label} = {value.value}")
            node = self.tree_.nodes[node.children[ordinal(value)]]
        return " AND ".join(parts) if parts else "<root>"

    def _collect_rules(self, index: int, parts, rules):
        node = self.tree_.nodes[index]
        if not isinstance(node, ArenaSplit):
            body = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{body} => {node}")
            return
        for value, child in zip(node.feature.values, node.children):
            self._collect_rules(child, parts + [f"{node.feature.label} = {value.value}"], rules)

    def _add_graph_nodes(self, dot, index: int):
        node = self.tree_.nodes[index]
        name = str(index)
        if not isinstance(node, ArenaSplit):
            dot.node(name, str(node), shape="box", style="filled", color="lightgrey")
            return
        dot.node(name, node.feature.label, shape="ellipse", style="filled", color="lightblue")
        for value, child in zip(node.feature.values, node.children):
            self._add_graph_nodes(dot, child)
            dot.edge(name, str(child), label=value.value)

    def _print_node(self, index: int, indent=""):
        node = self.tree_.nodes[index]
        if not isinstance(node, ArenaSplit):
            print(f"{indent}Predict {node}")
            return
        for value, child in zip(node.feature.values, node.children):
            print(f"{indent}if {node.feature.label} = {value.value}:")
            self._print_node(child, indent + "  ")
