import logging
from typing import Dict, Iterator, List, NamedTuple, Set
from prettytable import PrettyTable

if __name__ == '__main__':
    # always shit here to make it available in both case
    import os
    import sys
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    sys.path.append(os.path.dirname(SCRIPT_DIR))

from acmatch.utils import PatternId, ROOT
from acmatch.alphabet import Text
from acmatch.automaton import Automaton, Pattern, build

logger = logging.getLogger(__name__)


class Match(NamedTuple):
    pattern_id: PatternId
    pattern: Pattern
    # offset of the last symbol, inclusive
    end: int

    @property
    def length(self) -> int:
        return len(self.pattern)

    @property
    def start(self) -> int:
        return self.end - len(self.pattern) + 1


def finditer(automaton: Automaton, text: Text) -> Iterator[Match]:
    '''
    scan `text` once and yield every occurrence of every pattern, ordered by
    ending offset then by pattern id; overlapping occurrences are all reported

    the cursor belongs to this call only, so one automaton can serve any
    number of scans at the same time
    '''
    next_state = automaton.next_state
    outputs = automaton.outputs
    patterns = automaton.patterns
    state = ROOT
    scanned = 0
    for j, symbol in enumerate(automaton.alphabet.encode(text)):
        scanned = j + 1
        state = next_state(state, symbol)
        matched = outputs(state)
        if len(matched) != 0:
            for pattern_id in sorted(matched):
                yield Match(pattern_id, patterns[pattern_id], j)
    logger.debug('scanned %d symbols', scanned)


def search_ids(automaton: Automaton, text: Text) -> Dict[PatternId, Set[int]]:
    res: Dict[PatternId, Set[int]] = {}
    for m in finditer(automaton, text):
        if res.get(m.pattern_id) is None:
            res[m.pattern_id] = set()
        res[m.pattern_id].add(m.end)
    return res


def search(automaton: Automaton, text: Text) -> Dict[Pattern, Set[int]]:
    '''
    map every pattern found in `text` to the set of its ending offsets
    (0-indexed, inclusive)

    duplicated patterns share one entry
    '''
    res: Dict[Pattern, Set[int]] = {}
    for pattern_id, ends in search_ids(automaton, text).items():
        pattern = automaton.pattern(pattern_id)
        if res.get(pattern) is None:
            res[pattern] = set()
        res[pattern].update(ends)
    logger.debug('%d patterns found', len(res))
    return res


def count(automaton: Automaton, text: Text) -> Dict[Pattern, int]:
    return dict(
        (pattern, len(ends)) for pattern, ends in search(automaton, text).items())


def format_result(result: Dict[Pattern, Set[int]]) -> str:
    table = PrettyTable(['PATTERN', 'COUNT', 'ENDING OFFSETS'])
    table.align['PATTERN'] = 'l'
    table.align['ENDING OFFSETS'] = 'l'
    for pattern in sorted(result, key=repr):
        ends: List[int] = sorted(result[pattern])
        table.add_row([
            pattern if isinstance(pattern, str) else repr(pattern),
            len(ends), ','.join(map(str, ends))
        ])
    return table.get_string()


def main():
    automaton = build(['he', 'she', 'his', 'hers', 'her'])
    text = 'cipher'
    print(f'Text: {text}')
    print(format_result(search(automaton, text)))
    for m in finditer(automaton, 'ushers'):
        print(m, m.start)


if __name__ == '__main__':
    main()
