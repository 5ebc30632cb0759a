class AutomatonError(Exception):
    pass


class InvalidInputError(AutomatonError, ValueError):
    '''
    raised while building: empty pattern, wrong pattern type or a symbol
    outside the alphabet
    '''


class UnsupportedSymbolError(AutomatonError, ValueError):

    def __init__(self, symbol: object, radix: int, offset: int = -1) -> None:
        self.symbol = symbol
        self.radix = radix
        self.offset = offset
        where = '' if offset < 0 else f' at offset {offset}'
        super().__init__(
            f'symbol {symbol!r}{where} is outside the alphabet [0, {radix})')


class ConstructionIncompleteError(AutomatonError, RuntimeError):
    pass


class BuilderStateError(AutomatonError, RuntimeError):
    pass
