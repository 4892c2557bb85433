"""
Transaction processor
Applies classified events across every live hypothesis of the variant tree
"""

import itertools
import logging
from collections import defaultdict
from collections.abc import Mapping

from config import config
from models import RESOURCE_TYPES, AmbiguousTransaction, GameState, PlayerState, Resource

from .variant_tree import Branch, VariantTree

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Advances, prunes and branches the variant tree one event at a time

    Responsibilities:
    - Apply fully revealed movements to every leaf, pruning leaves that
      cannot afford them
    - Branch leaves on hidden steals, weighted by the victim's hand
    - Keep the registry of ambiguous transactions and resolve them as the
      tree narrows

    A leaf that does not contain a referenced player is logged and left
    untouched; other leaves are still processed.
    """

    def __init__(self, variant_tree: VariantTree):
        self.tree = variant_tree
        self._transactions: dict[str, AmbiguousTransaction] = {}
        self._sequence = itertools.count(1)
        self._prefix = config.get("tracker", "transaction_id_prefix", "steal")

    # ========================================================================
    # DETERMINISTIC EVENTS
    # ========================================================================

    def process_resource_gain(self, player_name: str, resources: Mapping[Resource, int]):
        """Player gains resources in every leaf. A gain is never infeasible."""
        for leaf_id in self.tree.leaf_ids():
            player = self._player(leaf_id, player_name)
            if player is not None:
                player.resources.apply(resources)

    def process_resource_loss(self, player_name: str, resources: Mapping[Resource, int]):
        """Player loses resources; leaves where they cannot pay are pruned."""
        for leaf_id in self.tree.leaf_ids():
            player = self._player(leaf_id, player_name)
            if player is None:
                continue
            if player.resources.can_afford(resources):
                player.resources.apply(resources, sign=-1)
            else:
                self.tree.prune(leaf_id)
        self.tree.prune_invalid()

    def process_bank_trade(self, player_name: str, resource_changes: Mapping[Resource, int]):
        """Signed deltas with the bank; leaves that cannot cover the given side are pruned."""
        given = _negated_negatives(resource_changes)
        for leaf_id in self.tree.leaf_ids():
            player = self._player(leaf_id, player_name)
            if player is None:
                continue
            if player.resources.can_afford(given):
                player.resources.apply(resource_changes)
            else:
                self.tree.prune(leaf_id)
        self.tree.prune_invalid()

    def process_trade(
        self,
        player_a: str,
        player_b: str,
        resource_changes: Mapping[Resource, int],
    ):
        """
        Exchange between two players

        resource_changes is from player A's side: negative entries are what
        A gives, positive entries are what B gives.
        """
        a_gives = _negated_negatives(resource_changes)
        b_gives = {r: amount for r, amount in resource_changes.items() if amount > 0}

        for leaf_id in self.tree.leaf_ids():
            first = self._player(leaf_id, player_a)
            second = self._player(leaf_id, player_b)
            if first is None or second is None:
                continue
            if not (first.resources.can_afford(a_gives) and second.resources.can_afford(b_gives)):
                self.tree.prune(leaf_id)
                continue
            first.resources.apply(a_gives, sign=-1)
            first.resources.apply(b_gives)
            second.resources.apply(b_gives, sign=-1)
            second.resources.apply(a_gives)
        self.tree.prune_invalid()

    def process_trade_offer(self, player_name: str, offered_resources: Mapping[Resource, int]):
        """Pure constraint: prune leaves where the player could not make this offer."""
        for leaf_id in self.tree.leaf_ids():
            player = self._player(leaf_id, player_name)
            if player is not None and not player.resources.can_afford(offered_resources):
                self.tree.prune(leaf_id)

    def process_known_steal(self, thief: str, victim: str, resource: Resource):
        """Move one visible card; leaves where the victim lacks it are contradicted."""
        resource = Resource.parse(resource)
        for leaf_id in self.tree.leaf_ids():
            victim_state = self._player(leaf_id, victim)
            thief_state = self._player(leaf_id, thief)
            if victim_state is None or thief_state is None:
                continue
            if victim_state.resources.get(resource) > 0:
                victim_state.resources.add(resource, -1)
                thief_state.resources.add(resource, 1)
            else:
                self.tree.prune(leaf_id)
        self.tree.prune_invalid()

    def process_monopoly(self, player_name: str, resource_type: Resource, total_stolen: int):
        """
        Player takes every card of one kind from all other players

        The public total is exact: leaves where the others did not hold
        exactly total_stolen are pruned.
        """
        resource_type = Resource.parse(resource_type)
        for leaf_id in self.tree.leaf_ids():
            state = self.tree.node(leaf_id).game_state
            if self._player(leaf_id, player_name) is None:
                continue
            actual = sum(
                state[name].resources.get(resource_type) for name in state if name != player_name
            )
            if actual != total_stolen:
                logger.debug(
                    f"Variant {leaf_id}: others hold {actual} {resource_type.value}, "
                    f"monopoly took {total_stolen}; pruning"
                )
                self.tree.prune(leaf_id)

        for leaf_id in self.tree.leaf_ids():
            state = self.tree.node(leaf_id).game_state
            if player_name not in state:
                continue
            for name in state:
                if name == player_name:
                    state[name].resources.add(resource_type, total_stolen)
                else:
                    state[name].resources.set(resource_type, 0)

    # ========================================================================
    # UNCERTAIN EVENTS
    # ========================================================================

    def process_unknown_steal(self, thief: str, victim: str) -> str | None:
        """
        Branch every leaf on the card the thief could have drawn

        Each child is weighted count/total of the victim's hand in that leaf.
        When no leaf offers more than one possibility the steal is certain:
        it is applied in place and no transaction is registered.

        Returns:
            The new transaction id, or None if the steal was certain
        """
        plans: list[tuple[int, list[tuple[Resource, float]]]] = []
        for leaf_id in self.tree.leaf_ids():
            victim_state = self._player(leaf_id, victim)
            thief_state = self._player(leaf_id, thief)
            if victim_state is None or thief_state is None:
                continue
            hand_size = victim_state.resources.total()
            if hand_size <= 0:
                logger.debug(f"Variant {leaf_id}: {victim} has no cards to steal; pruning")
                self.tree.prune(leaf_id)
                continue
            options = [
                (resource, victim_state.resources.get(resource) / hand_size)
                for resource in victim_state.resources.held()
            ]
            plans.append((leaf_id, options))

        if not any(len(options) > 1 for _, options in plans):
            for leaf_id, options in plans:
                _transfer(self.tree.node(leaf_id).game_state, victim, thief, options[0][0])
            self.tree.prune_invalid()
            return None

        transaction_id = f"{self._prefix}-{len(self._transactions) + 1:04d}"
        pooled: dict[Resource, float] = defaultdict(float)
        for leaf_id, options in plans:
            if leaf_id not in self.tree:
                continue
            weight = self.tree.cumulative_probability(leaf_id)
            source = self.tree.node(leaf_id).game_state
            branches = []
            for resource, probability in options:
                state = source.clone()
                _transfer(state, victim, thief, resource)
                branches.append(Branch(probability, state, transaction_id, resource))
                pooled[resource] += weight * probability
            self.tree.add_children(leaf_id, branches)
        self.tree.prune_invalid()

        mass = sum(pooled.values())
        transaction = AmbiguousTransaction(
            id=transaction_id,
            sequence=next(self._sequence),
            thief=thief,
            victim=victim,
            possible_resources={
                resource: pooled[resource] / mass for resource in RESOURCE_TYPES if resource in pooled
            },
        )
        self._transactions[transaction_id] = transaction
        logger.info(
            f"{thief} stole an unseen card from {victim} (transaction {transaction_id}, "
            f"{len(transaction.possible_resources)} possible resources)"
        )
        return transaction_id

    # ========================================================================
    # RESOLUTION
    # ========================================================================

    def resolve_all(self) -> list[AmbiguousTransaction]:
        """
        Resolve every open transaction the tree no longer keeps ambiguous

        Returns:
            Transactions whose status changed in this pass
        """
        changed = []
        for transaction in self.get_unresolved_transactions():
            tracking = self._tracking_leaves(transaction.id)
            if not tracking:
                transaction.mark_unknowable()
                logger.info(f"Transaction {transaction.id} pruned away; stolen resource unknowable")
                changed.append(transaction)
                continue

            resources = {self.tree.tagged_resource(leaf_id, transaction.id) for leaf_id in tracking}
            resources.discard(None)
            if len(resources) == 1:
                transaction.resolve(resources.pop())
                logger.info(
                    f"Transaction {transaction.id} resolved: "
                    f"{transaction.thief} stole {transaction.resolved_resource.value}"
                )
                changed.append(transaction)
        return changed

    def resolve(self, transaction_id: str, resource: Resource | str) -> bool:
        """
        Apply independent knowledge of what a steal took

        Leaves tagged with transaction_id that assumed another resource are
        discarded. A resource no remaining leaf supports is rejected.

        Returns:
            True if the transaction now resolves to resource
        """
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            logger.warning(f"Unknown transaction {transaction_id}")
            return False
        resource = Resource.parse(resource)
        if transaction.is_resolved:
            return transaction.resolved_resource == resource

        tracking = self._tracking_leaves(transaction_id)
        contradicted = [
            leaf_id for leaf_id in tracking
            if self.tree.tagged_resource(leaf_id, transaction_id) != resource
        ]
        if len(contradicted) == len(tracking):
            logger.warning(
                f"Cannot resolve {transaction_id} to {resource.value}: no remaining variant supports it"
            )
            return False

        for leaf_id in contradicted:
            if leaf_id in self.tree:
                self.tree.prune(leaf_id)
        transaction.resolve(resource)
        logger.info(f"Transaction {transaction_id} manually resolved to {resource.value}")
        return True

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_transaction(self, transaction_id: str) -> AmbiguousTransaction | None:
        return self._transactions.get(transaction_id)

    def get_transactions(self) -> list[AmbiguousTransaction]:
        """Every registered transaction in creation order, resolved ones included"""
        return list(self._transactions.values())

    def get_unresolved_transactions(self) -> list[AmbiguousTransaction]:
        return [t for t in self._transactions.values() if not t.is_resolved]

    def get_transaction_resource_probabilities(self, transaction_id: str) -> dict[Resource, float] | None:
        """
        Distribution over the stolen resource, from leaves still carrying the id

        Returns:
            Probability per resource (all five kinds, zeros included), all
            zeros when no leaf carries the id, None for an unknown id
        """
        if transaction_id not in self._transactions:
            return None
        mass: dict[Resource, float] = {resource: 0.0 for resource in RESOURCE_TYPES}
        for leaf_id in self._tracking_leaves(transaction_id):
            resource = self.tree.tagged_resource(leaf_id, transaction_id)
            if resource is not None:
                mass[resource] += self.tree.cumulative_probability(leaf_id)
        total = sum(mass.values())
        if total <= 0:
            return mass
        return {resource: value / total for resource, value in mass.items()}

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _tracking_leaves(self, transaction_id: str) -> list[int]:
        return [
            leaf_id for leaf_id in self.tree.leaf_ids()
            if self.tree.has_transaction_id(leaf_id, transaction_id)
        ]

    def _player(self, leaf_id: int, name: str) -> PlayerState | None:
        player = self.tree.node(leaf_id).game_state.get(name)
        if player is None:
            logger.warning(f"Player {name} not found in variant {leaf_id}, skipping")
        return player


def _negated_negatives(resource_changes: Mapping[Resource, int]) -> dict[Resource, int]:
    return {resource: -amount for resource, amount in resource_changes.items() if amount < 0}


def _transfer(state: GameState, source: str, target: str, resource: Resource, amount: int = 1):
    state[source].resources.add(resource, -amount)
    state[target].resources.add(resource, amount)
