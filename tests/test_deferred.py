import numpy as np
import pytest

from game_rng import DeferRand, GameRNG, Stream


@pytest.fixture
def rng():
    return GameRNG(seed=2718)


def test_node_starts_unborn_and_resolves_once(rng):
    node = DeferRand(rng)
    assert not node.resolved
    before = rng.registry.draw_count(Stream.GAMEPLAY)
    first = node.fraction
    assert node.resolved
    assert 0.0 <= first < 1.0
    assert node.fraction == first
    node.x_chance_in_y(1, 3)
    node.random2(7)
    assert node.fraction == pytest.approx(first)
    assert rng.registry.draw_count(Stream.GAMEPLAY) >= before + 1


def test_trivial_chances_do_not_resolve(rng):
    node = DeferRand(rng)
    assert node.x_chance_in_y(5, 5)
    assert not node.x_chance_in_y(0, 5)
    assert node.random2(1) == 0
    assert not node.resolved


def test_scale_invariance(rng):
    for _ in range(500):
        node = DeferRand(rng)
        assert node.x_chance_in_y(1, 2) == node.x_chance_in_y(50, 100)
        assert node.x_chance_in_y(1, 3) == node.x_chance_in_y(1000, 3000)
        assert node.random2(10) == node.random2(100) // 10
        assert node.one_chance_in(4) == node.x_chance_in_y(0.25, 1.0)


def test_memoised_answers(rng):
    node = DeferRand(rng)
    answers = [node.x_chance_in_y(37, 100) for _ in range(20)]
    assert len(set(answers)) == 1
    values = [node.random2(1000) for _ in range(20)]
    assert len(set(values)) == 1


def test_monotonic_in_ratio(rng):
    for _ in range(100):
        node = DeferRand(rng)
        verdicts = [node.x_chance_in_y(k, 100) for k in range(101)]
        # once true, stays true
        assert verdicts == sorted(verdicts)
        assert verdicts[100]
        for m in range(1, 200):
            assert 0 <= node.random2(m) < m


def test_consistent_with_fraction(rng):
    for _ in range(200):
        node = DeferRand(rng)
        f = node.fraction
        assert node.x_chance_in_y(3, 7) == (f < 3 / 7)
        assert node.random2(13) == int(f * 13)


def test_chance_frequency(rng):
    trials = 4000
    hits = sum(DeferRand(rng).x_chance_in_y(1, 4) for _ in range(trials))
    assert hits / trials == pytest.approx(0.25, abs=0.03)


def test_undecided_prefix_draws_more_words(rng):
    node = DeferRand(rng)
    node.fraction
    word = node._words[0]
    # boundaries on the first word are decided without extra draws
    node.x_chance_in_y(word, 1 << 32)
    node.x_chance_in_y(word + 1, 1 << 32)
    assert len(node._words) == 1
    # a boundary halfway through the first word needs the second one
    verdict = node.x_chance_in_y(2 * word + 1, 1 << 33)
    assert len(node._words) == 2
    assert verdict == (node._words[1] < 1 << 31)
    assert node.x_chance_in_y(2 * word + 1, 1 << 33) == verdict


def test_children_are_created_on_demand_and_kept(rng):
    root = DeferRand(rng)
    assert len(root) == 0
    child = root[3]
    assert 3 in root
    assert root[3] is child
    assert root.child(3) is child
    grandchild = root[3][-1]
    assert root[3][-1] is grandchild
    assert list(root) == [3]
    assert root.node_count() == 3
    assert not root.resolved


def test_same_path_same_answer(rng):
    tree = DeferRand(rng)
    first = [tree[x][y].one_chance_in(5) for x in range(10) for y in range(10)]
    again = [tree[x][y].one_chance_in(5) for x in range(10) for y in range(10)]
    assert first == again


def test_children_are_independent(rng):
    root = DeferRand(rng)
    a = np.array([root[i][0].fraction for i in range(2000)])
    b = np.array([root[i][1].fraction for i in range(2000)])
    assert abs(np.corrcoef(a, b)[0, 1]) < 0.1


def test_random_range(rng):
    node = DeferRand(rng)
    value = node.random_range(10, 20)
    assert 10 <= value <= 20
    assert node.random_range(10, 20) == value
    with pytest.raises(ValueError):
        node.random_range(5, 1)


def test_random2avg_uses_children(rng):
    node = DeferRand(rng)
    value = node.random2avg(10, 3)
    assert 0 <= value < 10
    assert len(node) == 3
    assert node.random2avg(10, 3) == value
    with pytest.raises(ValueError):
        node.random2avg(10, 0)


def test_children_share_stream(rng):
    tree = DeferRand(rng, stream=Stream.COSMETIC)
    tree[0][1].fraction
    assert rng.registry.draw_count(Stream.COSMETIC) == 1
    assert rng.registry.draw_count(Stream.GAMEPLAY) == 0


def test_reproducible_with_seed():
    a = DeferRand(GameRNG(seed=5))
    b = DeferRand(GameRNG(seed=5))
    assert [a[i].random2(100) for i in range(30)] == [b[i].random2(100) for i in range(30)]


def test_requires_rng():
    with pytest.raises(ValueError):
        DeferRand(None)


def test_stream_is_fixed_when_tree_is_created(rng):
    tree = DeferRand(rng)
    assert tree.stream is Stream.GAMEPLAY
    with rng.use_stream(Stream.UI):
        tree[0].fraction
        ui_tree = DeferRand(rng)
    assert rng.registry.draw_count(Stream.GAMEPLAY) == 1
    assert rng.registry.draw_count(Stream.UI) == 0
    ui_tree[4].fraction
    assert ui_tree[4].stream is Stream.UI
    assert rng.registry.draw_count(Stream.UI) == 1
    assert rng.registry.draw_count(Stream.GAMEPLAY) == 1
