from typing import Dict, Iterable, Iterator, Sequence, Union

if __name__ == '__main__':
    import os
    import sys
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    sys.path.append(os.path.dirname(SCRIPT_DIR))

from acmatch.utils import Symbol, DENSE_RADIX_LIMIT
from acmatch.errors import InvalidInputError, UnsupportedSymbolError

# any iterable of symbols, so generators and streams can be scanned too
Text = Union[str, bytes, bytearray, Iterable[int]]


class Alphabet:
    '''
    symbol domain shared by every state of an automaton, symbols are the
    integers in [0, radix)
    '''

    def __init__(self, name: str, radix: int) -> None:
        if isinstance(radix, bool) or not isinstance(radix, int) or radix <= 0:
            raise InvalidInputError(
                f'alphabet radix must be a positive int, requested: {radix!r}')
        self._name = name
        self._radix = radix

    @property
    def name(self) -> str:
        return self._name

    @property
    def radix(self) -> int:
        return self._radix

    @property
    def is_dense(self) -> bool:
        return self._radix <= DENSE_RADIX_LIMIT

    def __contains__(self, symbol: object) -> bool:
        try:
            self.index(symbol)
        except UnsupportedSymbolError:
            return False
        return True

    def __eq__(self, __o: object) -> bool:
        if not isinstance(__o, Alphabet):
            return False
        return self.name == __o.name and self.radix == __o.radix

    def __hash__(self) -> int:
        return hash((self._name, self._radix))

    def __repr__(self) -> str:
        return f'Alphabet({self._name!r}, radix={self._radix})'

    def index(self, symbol: object, offset: int = -1) -> Symbol:
        if isinstance(symbol, str) and len(symbol) == 1:
            value = ord(symbol)
        elif isinstance(symbol, int) and not isinstance(symbol, bool):
            value = symbol
        else:
            raise UnsupportedSymbolError(symbol, self._radix, offset)
        if not 0 <= value < self._radix:
            raise UnsupportedSymbolError(symbol, self._radix, offset)
        return value

    def encode(self, text: Text) -> Iterator[Symbol]:
        # bytes iterate as ints, str as one-character strings
        for offset, symbol in enumerate(text):
            yield self.index(symbol, offset)

    def decode(self, symbols: Iterable[Symbol]) -> str:
        return ''.join(chr(s) for s in symbols)

    def label(self, symbol: Symbol) -> str:
        ch = chr(symbol)
        if ch.isprintable() and not ch.isspace():
            return ch
        if symbol < 0x100:
            return f'\\x{symbol:02x}'
        return f'U+{symbol:04X}'


ASCII = Alphabet('ascii', 0x80)

EXTENDED_ASCII = Alphabet('extended-ascii', 0x100)

UNICODE = Alphabet('unicode', 0x110000)

_ALPHABETS: Dict[str, Alphabet] = dict(
    (a.name, a) for a in (ASCII, EXTENDED_ASCII, UNICODE))


def get_alphabet(name: str) -> Alphabet:
    alphabet = _ALPHABETS.get(name)
    if alphabet is None:
        raise InvalidInputError(
            f'unknown alphabet `{name}`, choose one of: {", ".join(_ALPHABETS)}')
    return alphabet


def alphabet_names() -> Sequence[str]:
    return list(_ALPHABETS)


def main():
    for alphabet in _ALPHABETS.values():
        print(alphabet, 'dense' if alphabet.is_dense else 'sparse')
    print(list(EXTENDED_ASCII.encode('cipher')))
    print(EXTENDED_ASCII.decode(EXTENDED_ASCII.encode(b'cipher')))
    try:
        list(ASCII.encode('café'))
    except UnsupportedSymbolError as e:
        print(e)


if __name__ == '__main__':
    main()
