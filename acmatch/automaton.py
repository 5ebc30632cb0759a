'''
Aho-Corasick automaton over a trie of patterns.

Construction runs in two phases:

1. every pattern is inserted into a `Trie`, the node at the end of a pattern
   is marked with the pattern id (ids start from 1).
2. the trie is visited in breadth-first order. Each node gets a failure link
   to the node spelling the longest proper suffix of its path, its output set
   is extended with the output set of that node, and its transition row is
   closed so that every symbol of the alphabet leads somewhere.

After phase 2 the scanner only ever follows `next_state`. Dense rows are
fully closed; sparse rows keep the real edges only and `next_state` falls
back along failure links for the other symbols.
'''
import logging
from collections import deque
from types import MappingProxyType
from typing import Any, Deque, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union, cast
from graphviz import Digraph
from prettytable import PrettyTable

if __name__ == '__main__':
    # always shit here to make it available in both case
    import os
    import sys
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    sys.path.append(os.path.dirname(SCRIPT_DIR))

from acmatch.utils import Oslash, Symbol, StateId, PatternId, ROOT, IntAllocator, Timer, check_type, check_array_type, state_name
from acmatch.alphabet import Alphabet, EXTENDED_ASCII, get_alphabet
from acmatch.trie import Trie
from acmatch.errors import BuilderStateError, ConstructionIncompleteError, InvalidInputError, UnsupportedSymbolError

logger = logging.getLogger(__name__)

Pattern = Union[str, bytes]

# dense rows hold one target per symbol, sparse rows only the real trie edges
TransitionRow = Union[Tuple[StateId, ...], Dict[Symbol, StateId]]


class Automaton:
    '''
    completed automaton, immutable once created

    instances come from `AutomatonBuilder.build` (or `build`), the constructor
    refuses tables where a state lacks a failure link or a transition row
    '''

    def __init__(self, trie: Trie, patterns: Mapping[PatternId, Pattern],
                 failure: List[Optional[StateId]],
                 outputs: List[FrozenSet[PatternId]],
                 rows: List[Optional[TransitionRow]]) -> None:
        n = len(trie)
        if len(failure) != n or len(outputs) != n or len(rows) != n:
            raise ConstructionIncompleteError(
                f'automaton tables do not cover all {n} states')
        missing = [
            s for s in range(n) if failure[s] is None or rows[s] is None
        ]
        if len(missing) != 0:
            raise ConstructionIncompleteError(
                f'states {",".join(map(state_name, missing))} were never completed'
            )
        # the tables only cover the nodes that exist now
        trie.freeze()
        self._trie = trie
        self._alphabet = trie.alphabet
        self._dense = trie.alphabet.is_dense
        self._patterns: Mapping[PatternId, Pattern] = MappingProxyType(
            dict(patterns))
        self._failure: Tuple[StateId, ...] = tuple(cast(List[StateId], failure))
        self._outputs: Tuple[FrozenSet[PatternId], ...] = tuple(outputs)
        self._rows: Tuple[TransitionRow, ...] = tuple(
            cast(List[TransitionRow], rows))

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def patterns(self) -> Mapping[PatternId, Pattern]:
        return self._patterns

    @property
    def root(self) -> StateId:
        return ROOT

    @property
    def states(self) -> range:
        return range(len(self._failure))

    def __len__(self) -> int:
        return len(self._failure)

    def pattern(self, pattern_id: PatternId) -> Pattern:
        return self._patterns[pattern_id]

    def next_state(self, state: StateId, symbol: Symbol) -> StateId:
        if self._dense:
            return cast(Tuple[StateId, ...], self._rows[state])[symbol]
        while True:
            target = cast(Dict[Symbol, StateId], self._rows[state]).get(symbol)
            if target is not None:
                return target
            if state == ROOT:
                return ROOT
            state = self._failure[state]

    def failure(self, state: StateId) -> StateId:
        return self._failure[state]

    def outputs(self, state: StateId) -> FrozenSet[PatternId]:
        return self._outputs[state]

    def depth(self, state: StateId) -> int:
        return self._trie.node(state).depth

    def symbols(self, state: StateId) -> List[Symbol]:
        return self._trie.path(self._trie.node(state))

    def path(self, state: StateId) -> str:
        return self._alphabet.decode(self.symbols(state))

    def child_symbols(self, state: StateId) -> Trie.SymbolView:
        return self._trie.child_symbols(self._trie.node(state))

    def child(self, state: StateId, symbol: Symbol) -> Optional[StateId]:
        '''
        target of the real trie edge labelled `symbol`, None when the move
        only exists through the closure
        '''
        return self._trie.node(state).children.get(symbol)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Automaton':
        type_name = cast(str, data.get('type'))
        if type_name != 'Automaton':
            raise ValueError(
                f'type field of json object must be `Automaton`, requested: {type_name}'
            )
        alphabet_name = cast(str, data.get('alphabet'))
        patterns = cast(List[Union[str, List[int]]], data.get('patterns'))
        try:
            check_type(alphabet_name, str, 'alphabet')
            check_array_type(patterns, (str, list), list, 'patterns', True)
            decoded = [p if isinstance(p, str) else bytes(p) for p in patterns]
        except (AssertionError, TypeError, ValueError) as e:
            raise InvalidInputError(f'malformed automaton object: {e}') from e
        return build(decoded, get_alphabet(alphabet_name))

    def to_dict(self) -> Dict[str, Any]:
        # bytes patterns are written as lists of ints
        return {
            'type': 'Automaton',
            'alphabet': self._alphabet.name,
            'patterns': [
                p if isinstance(p, str) else list(p)
                for _, p in sorted(self._patterns.items())
            ]
        }

    def __repr__(self) -> str:
        table = PrettyTable(['STATE', 'PATH', 'DEPTH', 'FAIL', 'OUTPUT'])
        # right alignment
        table.align['STATE'] = 'r'
        table.align['PATH'] = 'l'

        def format_state(s: StateId) -> str:
            res = state_name(s)
            if s == ROOT:
                res = f'-> {res}'
            if len(self._outputs[s]) != 0:
                res = f'* {res}'
            return res

        for node in self._trie.breadth_first():
            s = node.id
            outputs = ','.join(map(str, sorted(self._outputs[s])))
            table.add_row([
                format_state(s),
                ''.join(map(self._alphabet.label, self.symbols(s))), node.depth,
                state_name(self._failure[s]), outputs or Oslash
            ])
        return table.get_string()

    def visualize(self) -> Digraph:
        '''
        visualize trie edges (solid) and failure links (dashed), closure
        edges are left out
        '''
        g = Digraph(name='automaton', graph_attr={'rankdir': 'LR'})

        g.node(name='vnode', label='', shape='none')

        for node in self._trie.breadth_first():
            name = state_name(node.id)
            outputs = self._outputs[node.id]
            label = name if len(outputs) == 0 else f'{name}\n{{{",".join(map(str, sorted(outputs)))}}}'
            shape = 'circle' if len(node.marks) == 0 else 'doublecircle'
            g.node(name=name, label=label, shape=shape)

        g.edge('vnode', state_name(ROOT), label='start', arrowsize='0.5')

        for node in self._trie.breadth_first():
            if node.parent is not None:
                g.edge(state_name(node.parent),
                       state_name(node.id),
                       self._alphabet.label(cast(Symbol, node.symbol)),
                       arrowsize='0.5')
            if node.id != ROOT and self._failure[node.id] != ROOT:
                g.edge(state_name(node.id),
                       state_name(self._failure[node.id]),
                       style='dashed',
                       color='gray',
                       constraint='false',
                       arrowsize='0.5')
        return g


class AutomatonBuilder:
    '''
    one-shot builder, `add_patterns` (phase 1) any number of times then
    `build` (phase 2) exactly once
    '''

    def __init__(self, alphabet: Alphabet = EXTENDED_ASCII) -> None:
        self._alphabet = alphabet
        self._trie = Trie(alphabet)
        self._patterns: Dict[PatternId, Pattern] = {}
        self._allocator = IntAllocator(start=1)
        self._built = False

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def trie(self) -> Trie:
        return self._trie

    def add_pattern(self, pattern: Pattern) -> PatternId:
        if self._built:
            raise BuilderStateError('automaton has already been built')
        if not isinstance(pattern, (str, bytes)):
            raise InvalidInputError(
                f'pattern must be str or bytes, requested {type(pattern)}')
        if len(pattern) == 0:
            raise InvalidInputError('empty patterns are not allowed')
        try:
            symbols = list(self._alphabet.encode(pattern))
        except UnsupportedSymbolError as e:
            raise InvalidInputError(
                f'pattern {pattern!r} does not fit alphabet `{self._alphabet.name}`: {e}'
            ) from e
        pattern_id = self._allocator.next
        self._patterns[pattern_id] = pattern
        node = self._trie.insert(symbols, pattern_id)
        if len(node.marks) > 1:
            logger.debug('pattern %d %r shares %s with patterns %s',
                         pattern_id, pattern, state_name(node.id),
                         sorted(node.marks - {pattern_id}))
        return pattern_id

    def add_patterns(self, patterns: Iterable[Pattern]) -> List[PatternId]:
        return [self.add_pattern(p) for p in patterns]

    def _root_row(self) -> TransitionRow:
        children = self._trie.root.children
        if self._alphabet.is_dense:
            row = [ROOT] * self._alphabet.radix
            for symbol, target in children.items():
                row[symbol] = target
            return tuple(row)
        return dict(children)

    def _close(self, node: Trie.Node, fallback: TransitionRow) -> TransitionRow:
        # real edges win, every other symbol moves like the failure target;
        # sparse rows leave that move to `Automaton.next_state`
        if self._alphabet.is_dense:
            row = list(fallback)
            for symbol, target in node.children.items():
                row[symbol] = target
            return tuple(row)
        return dict(node.children)

    def _goto(self, state: StateId, symbol: Symbol,
              root_row: TransitionRow) -> Optional[StateId]:
        # root is total after its closure, the other states only know their
        # real edges
        if state == ROOT:
            if self._alphabet.is_dense:
                return cast(Tuple[StateId, ...], root_row)[symbol]
            return cast(Dict[Symbol, StateId], root_row).get(symbol, ROOT)
        return self._trie.node(state).children.get(symbol)

    def build(self) -> Automaton:
        if self._built:
            raise BuilderStateError('automaton has already been built')
        self._built = True
        self._trie.freeze()

        trie = self._trie
        n = len(trie)
        failure: List[Optional[StateId]] = [None] * n
        outputs: List[FrozenSet[PatternId]] = [frozenset()] * n
        rows: List[Optional[TransitionRow]] = [None] * n

        with Timer('failure links', logger) as timer:
            root = trie.root
            failure[ROOT] = ROOT
            outputs[ROOT] = frozenset(root.marks)

            queue: Deque[StateId] = deque()
            for symbol in trie.child_symbols(root):
                v = root.children[symbol]
                failure[v] = ROOT
                outputs[v] = frozenset(trie.node(v).marks)
                queue.append(v)

            root_row = self._root_row()
            rows[ROOT] = root_row

            while len(queue) != 0:
                u = queue.popleft()
                node = trie.node(u)
                f_u = cast(StateId, failure[u])
                # failure targets are shallower, so their rows are complete
                rows[u] = self._close(node, cast(TransitionRow, rows[f_u]))
                for symbol in trie.child_symbols(node):
                    v = node.children[symbol]
                    w = f_u
                    target = self._goto(w, symbol, root_row)
                    while target is None:
                        w = cast(StateId, failure[w])
                        target = self._goto(w, symbol, root_row)
                    failure[v] = target
                    outputs[v] = frozenset(trie.node(v).marks
                                           | outputs[target])
                    queue.append(v)

        automaton = Automaton(trie, self._patterns, failure, outputs, rows)
        logger.debug('built automaton: %d patterns, %d states, alphabet %s (%s rows) in %.2fms',
                     len(self._patterns), n, self._alphabet.name,
                     'dense' if self._alphabet.is_dense else 'sparse',
                     timer.elapsed_ms)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('state table:\n%s', automaton)
        return automaton


def build(patterns: Iterable[Pattern],
          alphabet: Alphabet = EXTENDED_ASCII) -> Automaton:
    '''
    build a complete automaton for `patterns`, pattern ids follow the input
    order starting from 1
    '''
    builder = AutomatonBuilder(alphabet)
    builder.add_patterns(patterns)
    return builder.build()


def main():
    automaton = build(['he', 'she', 'his', 'hers', 'her'])
    print(automaton)
    g = automaton.visualize()
    g.view(cleanup=True)


if __name__ == '__main__':
    main()
