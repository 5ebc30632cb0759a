import json
import random
from typing import Iterable, Set

import pytest
from graphviz import Digraph

from acmatch.alphabet import ASCII, EXTENDED_ASCII, UNICODE
from acmatch.automaton import Automaton, AutomatonBuilder, build
from acmatch.errors import BuilderStateError, ConstructionIncompleteError, InvalidInputError
from acmatch.trie import Trie
from acmatch.utils import ROOT

WORDS = ['he', 'she', 'his', 'hers', 'her']


def random_patterns(rng: random.Random, alphabet: str, n: int) -> list:
    return [
        ''.join(rng.choice(alphabet) for _ in range(rng.randint(1, 5)))
        for _ in range(n)
    ]


def state_of(automaton: Automaton, path: str) -> int:
    for s in automaton.states:
        if automaton.path(s) == path:
            return s
    raise KeyError(path)


def trie_paths(automaton: Automaton) -> Set[str]:
    return set(automaton.path(s) for s in automaton.states)


def longest_suffix_in(paths: Iterable[str], text: str, proper: bool) -> str:
    paths = set(paths)
    start = 1 if proper else 0
    for i in range(start, len(text) + 1):
        if text[i:] in paths:
            return text[i:]
    return ''


def test_states_and_failure_links_of_the_classic_example():
    automaton = build(WORDS)
    assert len(automaton) == 10
    she = state_of(automaton, 'she')
    he = state_of(automaton, 'he')
    hers = state_of(automaton, 'hers')
    s = state_of(automaton, 's')
    assert automaton.failure(she) == he
    assert automaton.failure(hers) == s
    assert automaton.failure(ROOT) == ROOT
    assert automaton.outputs(she) == frozenset({1, 2})
    assert automaton.outputs(he) == frozenset({1})
    assert automaton.depth(hers) == 4


def test_root_children_do_not_include_closure_edges():
    automaton = build(WORDS)
    assert list(automaton.child_symbols(ROOT)) == [ord('h'), ord('s')]
    assert automaton.child(ROOT, ord('x')) is None
    assert automaton.next_state(ROOT, ord('x')) == ROOT


@pytest.mark.parametrize('alphabet', [ASCII, EXTENDED_ASCII])
def test_every_state_has_a_total_transition_function(alphabet):
    automaton = build(WORDS + ['cipher', 'ip'], alphabet)
    for s in automaton.states:
        for c in range(alphabet.radix):
            target = automaton.next_state(s, c)
            assert 0 <= target < len(automaton)


def test_real_edges_extend_the_path_by_one_symbol():
    automaton = build(WORDS)
    for u in automaton.states:
        for c in automaton.child_symbols(u):
            v = automaton.child(u, c)
            assert v is not None
            assert automaton.path(v) == automaton.path(u) + chr(c)
            assert automaton.next_state(u, c) == v


def test_failure_links_point_to_the_longest_proper_suffix():
    rng = random.Random(7)
    for _ in range(30):
        automaton = build(random_patterns(rng, 'abc', rng.randint(1, 8)))
        paths = trie_paths(automaton)
        for v in automaton.states:
            if v == ROOT:
                continue
            expected = longest_suffix_in(paths, automaton.path(v), proper=True)
            assert automaton.path(automaton.failure(v)) == expected
            assert automaton.depth(automaton.failure(v)) < automaton.depth(v)


def test_transitions_reach_the_longest_suffix_in_the_trie():
    rng = random.Random(11)
    for _ in range(20):
        automaton = build(random_patterns(rng, 'ab', rng.randint(1, 6)))
        paths = trie_paths(automaton)
        for s in automaton.states:
            for ch in 'abz':
                expected = longest_suffix_in(paths, automaton.path(s) + ch,
                                             proper=False)
                assert automaton.path(automaton.next_state(s, ord(ch))) == expected


def test_outputs_are_closed_under_failure_links():
    rng = random.Random(3)
    for _ in range(30):
        patterns = random_patterns(rng, 'ab', rng.randint(1, 8))
        automaton = build(patterns)
        for v in automaton.states:
            assert automaton.outputs(v) >= automaton.outputs(automaton.failure(v))
            path = automaton.path(v)
            expected = frozenset(i for i, p in automaton.patterns.items()
                                 if path.endswith(p))
            assert automaton.outputs(v) == expected


def test_sparse_rows_agree_with_dense_rows():
    dense = build(WORDS, EXTENDED_ASCII)
    sparse = build(WORDS, UNICODE)
    assert len(dense) == len(sparse)
    for s in dense.states:
        for c in range(EXTENDED_ASCII.radix):
            assert dense.next_state(s, c) == sparse.next_state(s, c)
        assert sparse.next_state(s, 0x4e2d) == ROOT


def test_unicode_patterns():
    automaton = build(['中文', '文字'], UNICODE)
    zh = state_of(automaton, '中文')
    assert automaton.path(automaton.failure(zh)) == '文'


def test_empty_pattern_set_has_only_the_root():
    automaton = build([])
    assert len(automaton) == 1
    assert all(automaton.next_state(ROOT, c) == ROOT for c in range(256))
    assert automaton.outputs(ROOT) == frozenset()


def test_duplicate_patterns_share_a_state():
    automaton = build(['ab', 'ab'])
    assert len(automaton) == 3
    assert automaton.outputs(state_of(automaton, 'ab')) == frozenset({1, 2})
    assert dict(automaton.patterns) == {1: 'ab', 2: 'ab'}


@pytest.mark.parametrize('patterns', [[''], ['a', ''], ['a', None], [3]])
def test_invalid_patterns(patterns):
    with pytest.raises(InvalidInputError):
        build(patterns)


def test_pattern_outside_alphabet():
    with pytest.raises(InvalidInputError) as e:
        build(['ok', 'café'], ASCII)
    assert isinstance(e.value, ValueError)
    assert 'café' in str(e.value)


def test_builder_is_one_shot():
    builder = AutomatonBuilder()
    assert builder.add_patterns(['a', 'b']) == [1, 2]
    assert builder.add_pattern('c') == 3
    builder.build()
    with pytest.raises(BuilderStateError):
        builder.build()
    with pytest.raises(BuilderStateError):
        builder.add_pattern('d')


def test_incomplete_tables_are_refused():
    trie = Trie()
    trie.insert('a', 1)
    with pytest.raises(ConstructionIncompleteError):
        Automaton(trie, {1: 'a'}, [0, None], [frozenset(), frozenset({1})],
                  [tuple([0] * 256), None])
    with pytest.raises(ConstructionIncompleteError):
        Automaton(trie, {1: 'a'}, [0], [frozenset()], [tuple([0] * 256)])


def test_pattern_registry_is_read_only():
    automaton = build(WORDS)
    assert automaton.pattern(4) == 'hers'
    with pytest.raises(TypeError):
        automaton.patterns[1] = 'x'  # type: ignore


def test_dict_round_trip():
    automaton = build(WORDS)
    data = automaton.to_dict()
    assert data == {
        'type': 'Automaton',
        'alphabet': 'extended-ascii',
        'patterns': WORDS
    }
    loaded = json.loads(json.dumps(data), object_hook=Automaton.from_dict)
    assert isinstance(loaded, Automaton)
    assert dict(loaded.patterns) == dict(automaton.patterns)
    assert len(loaded) == len(automaton)


def test_dict_round_trip_with_bytes_patterns():
    automaton = build([b'\x00\xff', 'ab'])
    data = automaton.to_dict()
    assert data['patterns'] == [[0, 255], 'ab']
    loaded = Automaton.from_dict(json.loads(json.dumps(data)))
    assert loaded.pattern(1) == b'\x00\xff'


def test_from_dict_rejects_other_objects():
    with pytest.raises(ValueError):
        Automaton.from_dict({'type': 'DFA'})
    with pytest.raises(InvalidInputError):
        Automaton.from_dict({
            'type': 'Automaton',
            'alphabet': 'klingon',
            'patterns': []
        })


def test_repr_and_visualize():
    automaton = build(WORDS)
    text = repr(automaton)
    assert '-> q0' in text
    assert 'FAIL' in text
    g = automaton.visualize()
    assert isinstance(g, Digraph)
    assert 'dashed' in g.source


def test_sparse_rows_hold_only_real_edges():
    patterns = [chr(0x4e00 + i) * 2 for i in range(500)]
    automaton = build(patterns, UNICODE)
    assert len(automaton) == 1001
    assert sum(len(row) for row in automaton._rows) == len(automaton) - 1
    for i in (1, 250, 499):
        s = state_of(automaton, patterns[i])
        assert automaton.next_state(s, 0x4e00 + i) == s
        assert automaton.next_state(s, 0x4e00) == state_of(automaton, chr(0x4e00))
        assert automaton.next_state(s, ord('a')) == ROOT


def test_built_automaton_cannot_be_changed_through_its_trie():
    builder = AutomatonBuilder()
    builder.add_patterns(['ab'])
    automaton = builder.build()
    assert builder.trie.frozen
    with pytest.raises(BuilderStateError):
        builder.trie.insert('xyz', 9)
    root = builder.trie.root
    with pytest.raises(TypeError):
        root.children[ord('x')] = 5  # type: ignore
    with pytest.raises(AttributeError):
        builder.trie.lookup('ab').marks.add(9)  # type: ignore
    assert list(automaton.child_symbols(ROOT)) == [ord('a')]
    assert automaton.child(ROOT, ord('x')) is None
    assert len(automaton) == 3


@pytest.mark.parametrize('patterns', ['ab', [['a']], [[300]], [1]])
def test_from_dict_rejects_malformed_patterns(patterns):
    with pytest.raises(InvalidInputError):
        Automaton.from_dict({
            'type': 'Automaton',
            'alphabet': 'extended-ascii',
            'patterns': patterns
        })


def test_from_dict_rejects_missing_alphabet():
    with pytest.raises(InvalidInputError):
        Automaton.from_dict({'type': 'Automaton', 'patterns': ['a']})
