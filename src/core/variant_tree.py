"""
Variant Tree Module
Tree of mutually exclusive hypotheses about the hidden game state

Nodes live in an arena keyed by integer id; parents and children refer to
each other by id. Every leaf is one fully specified hypothesis ("variant")
whose cumulative probability is the product of the weights on its
root-to-leaf path. Invariant: the direct children of any internal node sum
to 1 within the configured tolerance.
"""

import itertools
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from config import config
from models import GameState, Resource

logger = logging.getLogger(__name__)


class VariantTreeError(Exception):
    """Invalid operation on the variant tree (programming error)"""

    pass


class ProbabilityInvariantError(VariantTreeError):
    """Sibling probabilities do not sum to 1"""

    pass


class RootRemovalError(VariantTreeError):
    """The root node can never be removed directly"""

    pass


@dataclass
class VariantNode:
    """
    One snapshot in the tree

    Attributes:
        node_id: Stable arena id
        parent_id: Parent id, None for the root
        probability: Weight relative to siblings
        game_state: Snapshot owned by this node
        transaction_id: Ambiguous transaction that produced this branch
        resource: Resource this branch assumes was moved
        children: Child ids, in creation order
        inherited_tags: Tags of ancestors folded away by chain collapse
    """

    node_id: int
    parent_id: int | None
    probability: float
    game_state: GameState
    transaction_id: str | None = None
    resource: Resource | None = None
    children: list[int] = field(default_factory=list)
    inherited_tags: dict[str, Resource | None] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class Branch:
    """A child to attach: weight, cloned snapshot and optional tag"""

    probability: float
    game_state: GameState
    transaction_id: str | None = None
    resource: Resource | None = None


@dataclass
class Variant:
    """A merged hypothesis: identical leaves collapse into one entry"""

    probability: float
    game_state: GameState
    leaf_ids: list[int] = field(default_factory=list)


class VariantTree:
    """
    Owns the hypothesis tree for one game session

    Removal rebalances the remaining siblings, propagates upward through
    parents left childless, and re-roots the tree at the single leaf when
    only an unbranching chain remains. When the root loses its last child
    (or the root leaf itself is pruned) no hypothesis survives and the tree
    is empty.
    """

    def __init__(self, initial_state: GameState, tolerance: float | None = None):
        if tolerance is None:
            tolerance = config.get("tracker", "probability_tolerance", 1e-8)
        self._tolerance = tolerance
        self._nodes: dict[int, VariantNode] = {}
        self._ids = itertools.count()
        self._empty = False
        self.root_id = self._new_node(None, 1.0, initial_state).node_id

    # ========== Access ==========

    @property
    def root(self) -> VariantNode:
        return self._nodes[self.root_id]

    @property
    def is_empty(self) -> bool:
        """True once every hypothesis has been pruned"""
        return self._empty

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def leaf_count(self) -> int:
        return len(self.leaf_ids())

    def node(self, node_id: int) -> VariantNode:
        return self._nodes[node_id]

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def leaf_ids(self) -> list[int]:
        """All current leaves, depth-first in creation order"""
        if self._empty:
            return []
        leaves = []
        stack = [self.root_id]
        while stack:
            node = self._nodes[stack.pop()]
            if node.children:
                stack.extend(reversed(node.children))
            else:
                leaves.append(node.node_id)
        return leaves

    def cumulative_probability(self, node_id: int) -> float:
        """Product of weights from the root down to node_id"""
        probability = 1.0
        node = self._nodes[node_id]
        while node.parent_id is not None:
            probability *= node.probability
            node = self._nodes[node.parent_id]
        return probability * node.probability

    # ========== Mutation ==========

    def add_children(self, parent_id: int, branches: Iterable[Branch]) -> list[int]:
        """
        Attach branches under parent_id

        Raises:
            ProbabilityInvariantError: If the parent's children would not sum to 1
            VariantTreeError: If the tree is empty
        """
        branches = list(branches)
        if not branches:
            return []
        if self._empty:
            raise VariantTreeError("Cannot branch an empty variant tree")

        parent = self._nodes[parent_id]
        total = sum(self._nodes[c].probability for c in parent.children)
        total += sum(branch.probability for branch in branches)
        if abs(total - 1.0) > self._tolerance:
            raise ProbabilityInvariantError(
                f"Sum of variant probabilities must be 1, got {total} under node {parent_id}"
            )

        child_ids = []
        for branch in branches:
            child = self._new_node(
                parent_id,
                branch.probability,
                branch.game_state,
                branch.transaction_id,
                branch.resource,
            )
            parent.children.append(child.node_id)
            child_ids.append(child.node_id)

        logger.debug(f"Node {parent_id} branched into {child_ids}")
        return child_ids

    def remove(self, node_id: int):
        """
        Remove a non-root node and its subtree

        Raises:
            RootRemovalError: If node_id is the root
        """
        if node_id == self.root_id:
            raise RootRemovalError("Cannot remove root node")
        self._detach(node_id)
        self._collapse_chain()

    def prune(self, node_id: int):
        """Discard an impossible hypothesis; pruning the root leaf empties the tree"""
        if node_id == self.root_id:
            if self._nodes[node_id].children:
                raise VariantTreeError("Only a leaf root can be pruned")
            self._mark_empty()
            return
        self.remove(node_id)

    def prune_invalid(self) -> int:
        """Remove every leaf holding a negative count. Returns how many were removed."""
        removed = 0
        for leaf_id in self.leaf_ids():
            if leaf_id in self._nodes and not self._empty:
                if self._nodes[leaf_id].game_state.has_negative():
                    self.prune(leaf_id)
                    removed += 1
        if removed:
            logger.debug(f"Pruned {removed} invalid variant(s)")
        return removed

    def _new_node(
        self,
        parent_id: int | None,
        probability: float,
        game_state: GameState,
        transaction_id: str | None = None,
        resource: Resource | None = None,
    ) -> VariantNode:
        node = VariantNode(
            node_id=next(self._ids),
            parent_id=parent_id,
            probability=probability,
            game_state=game_state,
            transaction_id=transaction_id,
            resource=resource,
        )
        self._nodes[node.node_id] = node
        return node

    def _detach(self, node_id: int):
        node = self._nodes[node_id]
        parent = self._nodes[node.parent_id]
        parent.children.remove(node_id)
        self._discard_subtree(node_id)

        if parent.children and self._rebalance(parent, node.probability):
            return

        if parent.parent_id is not None:
            self._detach(parent.node_id)
        else:
            self._mark_empty()

    def _rebalance(self, parent: VariantNode, removed_probability: float) -> bool:
        """Spread the removed mass over the remaining siblings in proportion to their weight"""
        remaining = sum(self._nodes[c].probability for c in parent.children)
        if remaining <= 0:
            return False
        scale = removed_probability / remaining
        for child_id in parent.children:
            child = self._nodes[child_id]
            child.probability += child.probability * scale
        return True

    def _discard_subtree(self, node_id: int):
        stack = [node_id]
        while stack:
            node = self._nodes.pop(stack.pop())
            stack.extend(node.children)

    def _collapse_chain(self):
        """Re-root at the only leaf when the tree is a single unbranching chain"""
        if self._empty:
            return
        chain = []
        current = self.root
        while len(current.children) == 1:
            chain.append(current)
            current = self._nodes[current.children[0]]
        if current.children or not chain:
            return

        tags: dict[str, Resource | None] = {}
        for ancestor in chain:
            tags.update(ancestor.inherited_tags)
            if ancestor.transaction_id:
                tags[ancestor.transaction_id] = ancestor.resource
            del self._nodes[ancestor.node_id]

        current.parent_id = None
        current.probability = 1.0
        current.inherited_tags = tags
        self.root_id = current.node_id
        logger.debug(f"Collapsed {len(chain)}-node chain, re-rooted at {current.node_id}")

    def _mark_empty(self):
        self._empty = True
        logger.warning("Every variant has been pruned; no hypothesis survives")

    # ========== Queries ==========

    def current_variants(self) -> list[Variant]:
        """Leaves with cumulative probability, identical states merged, most likely first"""
        merged: dict[tuple, Variant] = {}
        for leaf_id in self.leaf_ids():
            leaf = self._nodes[leaf_id]
            probability = self.cumulative_probability(leaf_id)
            key = leaf.game_state.key()
            variant = merged.get(key)
            if variant is None:
                merged[key] = Variant(probability, leaf.game_state, [leaf_id])
            else:
                variant.probability += probability
                variant.leaf_ids.append(leaf_id)
        return sorted(merged.values(), key=lambda v: v.probability, reverse=True)

    def transaction_tags(self, node_id: int) -> list[tuple[str, Resource | None]]:
        """(transaction_id, resource) tags on the path to node_id, oldest first"""
        path = []
        node = self._nodes[node_id]
        while node is not None:
            path.append(node)
            node = self._nodes[node.parent_id] if node.parent_id is not None else None

        tags = []
        for ancestor in reversed(path):
            tags.extend(ancestor.inherited_tags.items())
            if ancestor.transaction_id:
                tags.append((ancestor.transaction_id, ancestor.resource))
        return tags

    def transaction_chain(self, node_id: int) -> list[str]:
        return [transaction_id for transaction_id, _ in self.transaction_tags(node_id)]

    def has_transaction_id(self, node_id: int, transaction_id: str) -> bool:
        return transaction_id in self.transaction_chain(node_id)

    def tagged_resource(self, node_id: int, transaction_id: str) -> Resource | None:
        """Resource assumed by the branch point for transaction_id on this path"""
        for tag, resource in reversed(self.transaction_tags(node_id)):
            if tag == transaction_id:
                return resource
        return None

    def dump(self) -> list[str]:
        """Indented one-line-per-node rendering for debugging"""
        if self._empty:
            return ["<empty>"]
        lines = []
        stack = [(self.root_id, 0)]
        while stack:
            node_id, depth = stack.pop()
            node = self._nodes[node_id]
            tag = ""
            if node.transaction_id:
                tag = f" [{node.transaction_id}:{node.resource.value if node.resource else '?'}]"
            holdings = "; ".join(
                f"{name}: " + ",".join(f"{r.value}={c}" for r, c in node.game_state[name].resources.items() if c)
                for name in node.game_state
            )
            lines.append(f"{'  ' * depth}#{node_id} p={node.probability:.4f}{tag} {{{holdings}}}")
            stack.extend((child_id, depth + 1) for child_id in reversed(node.children))
        return lines
