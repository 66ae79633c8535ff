"""
Tests for the next-item queue RNG.
"""

import dataclasses
from collections import Counter

import pytest

from merge_game.merge_core.config_loader import RngConfig
from merge_game.merge_core.rng import DropQueue


@pytest.fixture
def bag_config(config):
    return dataclasses.replace(
        config,
        rng=RngConfig(droppable_count=5, strategy="bag", bag_size=20, weights=(6, 5, 4, 3, 2))
    )


def draw(queue, count):
    """Current item followed by `count - 1` advances."""
    items = [queue.current_item_id]
    for _ in range(count - 1):
        queue.advance()
        items.append(queue.current_item_id)
    return items


class TestUniformQueue:
    """Test the default uniform strategy."""

    def test_default_strategy(self, config):
        """The shipped config draws uniformly."""
        assert DropQueue(config, seed=1).strategy == "uniform"

    def test_deterministic_with_seed(self, config):
        """Same seed should produce same sequence."""
        q1 = DropQueue(config, seed=42)
        q2 = DropQueue(config, seed=42)

        assert draw(q1, 50) == draw(q2, 50)

    def test_different_seeds_differ(self, config):
        """Different seeds should produce different sequences."""
        q1 = DropQueue(config, seed=42)
        q2 = DropQueue(config, seed=123)

        assert draw(q1, 50) != draw(q2, 50)

    def test_only_droppable_items(self, config):
        """Queue should only produce droppable item IDs."""
        queue = DropQueue(config, seed=42)

        for item_id in draw(queue, 300):
            assert 0 <= item_id < config.rng.droppable_count

    def test_every_droppable_item_appears(self, config):
        """Over many draws every droppable tier shows up."""
        counts = Counter(draw(DropQueue(config, seed=3), 500))
        assert set(counts) == set(range(config.rng.droppable_count))

    def test_advance_returns_consumed_item(self, config):
        """advance() hands back the item that was current."""
        queue = DropQueue(config, seed=8)
        current = queue.current_item_id
        assert queue.advance() == current


class TestPeekAndReset:
    """Test look-ahead and reseeding."""

    def test_peek_does_not_consume(self, config):
        """Peeking twice gives the same answer and leaves the queue alone."""
        queue = DropQueue(config, seed=11)
        first = queue.peek(5)
        assert queue.peek(5) == first
        assert queue.current_item_id == first[0]

    def test_peek_matches_advance(self, config):
        """Peeked items are exactly what advancing produces."""
        queue = DropQueue(config, seed=11)
        assert queue.peek(6) == draw(queue, 6)

    def test_peek_non_positive(self, config):
        """Peeking zero items returns an empty list."""
        assert DropQueue(config, seed=1).peek(0) == []

    def test_reset_with_seed_restarts_sequence(self, config):
        """Resetting with the construction seed replays the same items."""
        queue = DropQueue(config, seed=77)
        expected = draw(queue, 20)

        queue.reset(77)
        assert draw(queue, 20) == expected

    def test_reset_with_other_seed_matches_new_queue(self, config):
        """reset(seed) behaves like constructing with that seed."""
        queue = DropQueue(config, seed=1)
        draw(queue, 5)
        queue.reset(99)

        assert draw(queue, 20) == draw(DropQueue(config, seed=99), 20)


class TestBagQueue:
    """Test the weighted shuffle-bag strategy."""

    def test_bag_deterministic(self, bag_config):
        """Bag sequences are reproducible from the seed."""
        assert draw(DropQueue(bag_config, seed=5), 60) == draw(DropQueue(bag_config, seed=5), 60)

    def test_first_bag_matches_weights(self, bag_config):
        """One full bag holds each tier exactly as often as its weight."""
        queue = DropQueue(bag_config, seed=5)
        counts = Counter(draw(queue, 20))
        assert counts == Counter({0: 6, 1: 5, 2: 4, 3: 3, 4: 2})

    def test_bag_reset_reproduces(self, bag_config):
        """Construction and reset with the same seed agree under the bag strategy."""
        queue = DropQueue(bag_config, seed=21)
        expected = draw(queue, 45)
        queue.reset(21)
        assert draw(queue, 45) == expected

    def test_bag_peek_across_refill(self, bag_config):
        """Peeking past the end of a bag still predicts the refill."""
        queue = DropQueue(bag_config, seed=4)
        draw(queue, 18)
        assert queue.peek(6) == draw(queue, 6)
