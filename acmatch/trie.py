from collections import deque
from types import MappingProxyType
from typing import Deque, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set, Union
from graphviz import Digraph
from prettytable import PrettyTable

if __name__ == '__main__':
    # always shit here to make it available in both case
    import os
    import sys
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    sys.path.append(os.path.dirname(SCRIPT_DIR))

from acmatch.utils import Oslash, Symbol, StateId, PatternId, ROOT, IntAllocator, state_name
from acmatch.alphabet import Alphabet, EXTENDED_ASCII
from acmatch.errors import BuilderStateError

Path = Iterable[Union[Symbol, str]]


class Trie:
    '''
    prefix tree over the symbols of an alphabet

    nodes live in an arena (a list) and refer to each other by id, a node
    owns the real edges to its children only
    '''

    class Node:

        def __init__(self,
                     id: StateId,
                     parent: Optional[StateId] = None,
                     symbol: Optional[Symbol] = None,
                     depth: int = 0) -> None:
            self._id = id
            self._parent = parent
            self._symbol = symbol
            self._depth = depth
            self._children: Dict[Symbol, StateId] = {}
            self._marks: Set[PatternId] = set()

        def __repr__(self) -> str:
            return f'<id={self._id},depth={self._depth},children={len(self._children)},marks={sorted(self._marks)}>'

        @property
        def id(self) -> StateId:
            return self._id

        @property
        def parent(self) -> Optional[StateId]:
            return self._parent

        @property
        def symbol(self) -> Optional[Symbol]:
            return self._symbol

        @property
        def depth(self) -> int:
            return self._depth

        @property
        def children(self) -> Mapping[Symbol, StateId]:
            return MappingProxyType(self._children)

        @property
        def marks(self) -> FrozenSet[PatternId]:
            return frozenset(self._marks)

        @property
        def is_root(self) -> bool:
            return self._parent is None

        @property
        def is_leaf(self) -> bool:
            return len(self._children) == 0

        @property
        def is_marked(self) -> bool:
            return len(self._marks) != 0

    class SymbolView:
        '''
        symbols on the real edges leaving a node, ascending, sorted again on
        every iteration
        '''

        def __init__(self, node: 'Trie.Node') -> None:
            self._node = node

        def __iter__(self) -> Iterator[Symbol]:
            return iter(sorted(self._node.children))

        def __len__(self) -> int:
            return len(self._node.children)

        def __contains__(self, symbol: object) -> bool:
            return symbol in self._node.children

        def __repr__(self) -> str:
            return f'SymbolView({list(self)})'

    def __init__(self, alphabet: Alphabet = EXTENDED_ASCII) -> None:
        self._alphabet = alphabet
        self._allocator = IntAllocator()
        self._nodes: List[Trie.Node] = [Trie.Node(self._allocator.next)]
        self._frozen = False

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def root(self) -> 'Trie.Node':
        return self._nodes[ROOT]

    def node(self, state: StateId) -> 'Trie.Node':
        return self._nodes[state]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator['Trie.Node']:
        return iter(self._nodes)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def __contains__(self, path: Path) -> bool:
        node = self.lookup(path)
        return node is not None and node.is_marked

    def insert(self, path: Path, mark: PatternId) -> 'Trie.Node':
        if self._frozen:
            raise BuilderStateError('trie is frozen, no more paths can be inserted')
        # validate the whole path first so a bad symbol leaves no dangling nodes
        symbols = [
            self._alphabet.index(s, offset) for offset, s in enumerate(path)
        ]
        node = self.root
        for symbol in symbols:
            nxt = node._children.get(symbol)
            if nxt is None:
                child = Trie.Node(self._allocator.next, node.id, symbol,
                                  node.depth + 1)
                self._nodes.append(child)
                node._children[symbol] = child.id
                nxt = child.id
            node = self._nodes[nxt]
        node._marks.add(mark)
        return node

    def lookup(self, path: Path) -> Optional['Trie.Node']:
        node = self.root
        for s in path:
            if s not in self._alphabet:
                return None
            nxt = node.children.get(self._alphabet.index(s))
            if nxt is None:
                return None
            node = self._nodes[nxt]
        return node

    def child(self, node: 'Trie.Node', symbol: Symbol) -> Optional['Trie.Node']:
        nxt = node.children.get(symbol)
        return None if nxt is None else self._nodes[nxt]

    def child_symbols(self, node: 'Trie.Node') -> 'Trie.SymbolView':
        return Trie.SymbolView(node)

    def path(self, node: 'Trie.Node') -> List[Symbol]:
        res: List[Symbol] = []
        while node.parent is not None:
            res.append(node.symbol)
            node = self._nodes[node.parent]
        res.reverse()
        return res

    def breadth_first(self) -> Iterator['Trie.Node']:
        queue: Deque[Trie.Node] = deque([self.root])
        while len(queue) != 0:
            node = queue.popleft()
            yield node
            for symbol in self.child_symbols(node):
                queue.append(self._nodes[node.children[symbol]])

    def __repr__(self) -> str:
        table = PrettyTable(['NODE', 'PATH', 'DEPTH', 'CHILDREN', 'MARKS'])
        table.align['NODE'] = 'r'
        table.align['PATH'] = 'l'
        for node in self.breadth_first():
            label = ''.join(map(self._alphabet.label, self.path(node)))
            children = ','.join(
                f'{self._alphabet.label(s)}:{state_name(node.children[s])}'
                for s in self.child_symbols(node))
            table.add_row([
                state_name(node.id), label, node.depth, children or Oslash,
                ','.join(map(str, sorted(node.marks))) or Oslash
            ])
        return table.get_string()

    def visualize(self) -> Digraph:
        '''
        visualize the tree, marked nodes are drawn with a double circle
        '''
        g = Digraph(name='trie', graph_attr={'rankdir': 'LR'})
        for node in self.breadth_first():
            name = state_name(node.id)
            shape = 'doublecircle' if node.is_marked else 'circle'
            g.node(name=name, label=name, shape=shape)
            if node.parent is not None:
                g.edge(state_name(node.parent),
                       name,
                       self._alphabet.label(node.symbol),
                       arrowsize='0.5')
        return g


def main():
    trie = Trie()
    for i, word in enumerate(['he', 'she', 'his', 'hers', 'her'], start=1):
        trie.insert(word, i)
    print(trie)
    print('her' in trie, 'hi' in trie)
    print(list(trie.child_symbols(trie.root)))
    g = trie.visualize()
    g.view(cleanup=True)


if __name__ == '__main__':
    main()
